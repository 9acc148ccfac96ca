"""CLI commands for the check-in API."""

import click

from checkin_api.db.seed import seed_all
from checkin_api.db.session import SessionLocal
from checkin_api.ledger.service import CheckinLedger
from checkin_api.models import Venda
from checkin_api.tickets.locator import identity_from_sale
from checkin_api.tickets.payload import encode_payload


@click.group()
def cli():
    """Check-in API CLI."""
    pass


@cli.command()
@click.option("--admin-user-id", default=None, help="Identity-provider user id to grant the admin role.")
def seed(admin_user_id):
    """Seed demo data."""
    click.echo("Seeding demo data...")
    db = SessionLocal()
    try:
        seed_all(db, admin_user_id=admin_user_id)
        click.echo("✓ Seed data created.")
    except Exception as e:
        click.echo(f"✗ Error seeding data: {e}", err=True)
        db.rollback()
    finally:
        db.close()


@cli.command("encode-payload")
@click.argument("sale_id")
def encode_payload_command(sale_id):
    """Print the structured QR payload for a sale."""
    db = SessionLocal()
    try:
        sale = db.query(Venda).filter(Venda.id == sale_id).first()
        if not sale:
            raise click.ClickException(f"Sale {sale_id} not found")
        click.echo(encode_payload(identity_from_sale(sale, sale.id)))
    finally:
        db.close()


@cli.command()
@click.option("--limit", default=20, show_default=True, help="Entries to show.")
@click.option("--event-id", default=None, help="Only entries for this event.")
def history(limit, event_id):
    """Print recent check-in attempts."""
    db = SessionLocal()
    try:
        for entry in CheckinLedger(db).recent(limit=limit, event_id=event_id):
            click.echo(
                f"{entry.created_at.isoformat()}  {entry.status:<7}  "
                f"{entry.id_ingresso or '-'}  {entry.reason or ''}"
            )
    finally:
        db.close()


if __name__ == "__main__":
    cli()
