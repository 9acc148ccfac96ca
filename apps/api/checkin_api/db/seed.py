"""Seed data for development and testing."""

from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from checkin_api.models import Event, Purchase, UserRole, Venda

DEMO_EVENT_ID = "evt-demo"
DEMO_SALE_ID = "venda-demo-1"


def seed_event(db: Session) -> Event:
    """Seed the demo event."""
    event = db.query(Event).filter(Event.id == DEMO_EVENT_ID).first()
    if not event:
        event = Event(
            id=DEMO_EVENT_ID,
            title="Show de Demonstração",
            description="Evento de exemplo para testes de check-in",
            date=datetime.utcnow() + timedelta(days=30),
            location="Teatro Municipal",
        )
        db.add(event)
        db.flush()
    return event


def seed_sales(db: Session, event: Event):
    """Seed one confirmed sale with its paid purchase."""
    if db.query(Venda).filter(Venda.id == DEMO_SALE_ID).first():
        return
    db.add(
        Venda(
            id=DEMO_SALE_ID,
            id_compra="compra-demo-1",
            id_evento=event.id,
            id_ingresso="ingresso-demo-1",
            buyer_email="comprador@example.com",
            buyer_name="Comprador Demo",
            event_name=event.title,
            quantity=1,
            status="confirmado",
        )
    )
    db.add(
        Purchase(
            id="purchase-demo-1",
            id_compra="compra-demo-1",
            id_evento=event.id,
            email="comprador@example.com",
            buyer_name="Comprador Demo",
            quantity=1,
            status="paid",
        )
    )


def seed_admin(db: Session, admin_user_id: str):
    """Grant the admin role to an identity-provider user."""
    existing = (
        db.query(UserRole)
        .filter(UserRole.user_id == admin_user_id, UserRole.role == "admin")
        .first()
    )
    if not existing:
        db.add(UserRole(user_id=admin_user_id, role="admin"))


def seed_all(db: Session, admin_user_id: str = None):
    """Seed all demo data."""
    event = seed_event(db)
    seed_sales(db, event)
    if admin_user_id:
        seed_admin(db, admin_user_id)
    db.commit()
