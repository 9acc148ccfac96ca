"""Check-in history endpoint."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from checkin_api.auth.admin import require_admin
from checkin_api.auth.token import Caller
from checkin_api.db.session import get_db
from checkin_api.ledger.service import CheckinLedger
from checkin_api.settings import get_settings

router = APIRouter(tags=["checkins"])


class CheckinEntry(BaseModel):
    """Check-in ledger entry."""

    id: int
    id_compra: Optional[str] = None
    id_evento: Optional[str] = None
    id_ingresso: Optional[str] = None
    buyer_email: Optional[str] = None
    validated_by: str
    status: str
    reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


@router.get("/checkins", response_model=list[CheckinEntry])
async def list_checkins(
    limit: Optional[int] = Query(None, ge=1, description="Maximum entries to return"),
    event_id: Optional[str] = Query(None, description="Only entries recorded for this event"),
    caller: Caller = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Most recent check-in attempts, newest first."""
    settings = get_settings()
    limit = min(limit or settings.history_default_limit, settings.history_max_limit)
    return CheckinLedger(db).recent(limit=limit, event_id=event_id)
