# routers/admin.py

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from core.alerts import run_expiry_sweep
from core.logging_config import logger
from core.notifications import NotificationSender
from database import get_session
from dependencies.auth import CurrentUser, requires_permission
from models import SweepResult


router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
)


def get_notification_sender() -> NotificationSender:
    return NotificationSender()


# -----------------------------------------------------
# POST /admin/expiry-sweep
# Manual run of the daily sweep. Safe to repeat.
# -----------------------------------------------------
@router.post("/expiry-sweep", response_model=SweepResult, summary="Run the COI expiry sweep now")
def trigger_expiry_sweep(
    as_of: Optional[datetime] = None,
    current_user: CurrentUser = Depends(requires_permission("admin:expiry_sweep")),
    sender: NotificationSender = Depends(get_notification_sender),
    session: Session = Depends(get_session),
):
    logger.info(f"Manual expiry sweep requested by {current_user.id}")
    return run_expiry_sweep(session, sender=sender, as_of=as_of)
