"""Create events, sales, purchases, check-in ledger and user roles.

Revision ID: 001
Revises:
Create Date: 2025-11-14
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'events',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date', sa.DateTime(), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'vendas',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('id_compra', sa.String(length=64), nullable=True),
        sa.Column('id_evento', sa.String(length=64), nullable=True),
        sa.Column('id_ingresso', sa.String(length=64), nullable=True),
        sa.Column('buyer_email', sa.String(length=255), nullable=True),
        sa.Column('buyer_name', sa.String(length=255), nullable=True),
        sa.Column('event_name', sa.String(length=255), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=True),
        sa.Column('used_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_vendas_id_compra', 'vendas', ['id_compra'])
    op.create_index('ix_vendas_id_evento', 'vendas', ['id_evento'])
    op.create_index('ix_vendas_id_ingresso', 'vendas', ['id_ingresso'])

    op.create_table(
        'purchases',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('id_compra', sa.String(length=64), nullable=True),
        sa.Column('id_evento', sa.String(length=64), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('buyer_name', sa.String(length=255), nullable=True),
        sa.Column('event_name', sa.String(length=255), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_purchases_id_compra', 'purchases', ['id_compra'])

    op.create_table(
        'checkins',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('id_compra', sa.String(length=64), nullable=True),
        sa.Column('id_evento', sa.String(length=64), nullable=True),
        sa.Column('id_ingresso', sa.String(length=64), nullable=True),
        sa.Column('buyer_email', sa.String(length=255), nullable=True),
        sa.Column('validated_by', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('qr_payload', sa.Text(), nullable=True),
        sa.Column('correlation_id', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_checkins_id', 'checkins', ['id'])
    op.create_index('ix_checkins_id_compra', 'checkins', ['id_compra'])
    op.create_index('ix_checkins_id_evento', 'checkins', ['id_evento'])
    op.create_index('ix_checkins_id_ingresso', 'checkins', ['id_ingresso'])
    op.create_index('ix_checkins_validated_by', 'checkins', ['validated_by'])
    op.create_index('ix_checkins_status', 'checkins', ['status'])
    op.create_index('ix_checkins_created_at', 'checkins', ['created_at'])
    # One successful check-in per ticket unit
    op.create_index(
        'uq_checkins_valid_ticket',
        'checkins',
        ['id_ingresso'],
        unique=True,
        postgresql_where=sa.text("status = 'valid'"),
    )

    op.create_table(
        'user_roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'role', name='uq_user_roles_user_role')
    )
    op.create_index('ix_user_roles_id', 'user_roles', ['id'])
    op.create_index('ix_user_roles_user_id', 'user_roles', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_user_roles_user_id', table_name='user_roles')
    op.drop_index('ix_user_roles_id', table_name='user_roles')
    op.drop_table('user_roles')
    op.drop_index('uq_checkins_valid_ticket', table_name='checkins')
    op.drop_index('ix_checkins_created_at', table_name='checkins')
    op.drop_index('ix_checkins_status', table_name='checkins')
    op.drop_index('ix_checkins_validated_by', table_name='checkins')
    op.drop_index('ix_checkins_id_ingresso', table_name='checkins')
    op.drop_index('ix_checkins_id_evento', table_name='checkins')
    op.drop_index('ix_checkins_id_compra', table_name='checkins')
    op.drop_index('ix_checkins_id', table_name='checkins')
    op.drop_table('checkins')
    op.drop_index('ix_purchases_id_compra', table_name='purchases')
    op.drop_table('purchases')
    op.drop_index('ix_vendas_id_ingresso', table_name='vendas')
    op.drop_index('ix_vendas_id_evento', table_name='vendas')
    op.drop_index('ix_vendas_id_compra', table_name='vendas')
    op.drop_table('vendas')
    op.drop_table('events')
