# core/alerts.py

from datetime import datetime, timedelta
from typing import List, NamedTuple, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from core.errors import PersistenceError
from core.logging_config import logger
from core.notifications import NotificationSender, render_expiry_email, render_expiry_sms
from core.utils import start_of_day, to_naive_utc, utcnow, whole_days_until
from models.enums import COIStatus, NotificationType
from models import COI, Building, NotificationLog, SweepResult, Tenant, Vendor


# Days before expiration at which a reminder goes out.
# Only an exact match fires; a missed day is never caught up.
ALERT_THRESHOLDS = (30, 15, 7)
WINDOW_DAYS = 30

SENT = "sent"
DUPLICATE = "duplicate"
FAILED = "failed"


class ExpiryAlert(NamedTuple):
    coi_id: str
    days: int
    expiration_date: datetime
    holder_name: str
    building_name: str
    phone: Optional[str]
    email: Optional[str]


def alert_subject(channel: NotificationType, coi_id: str, days: int) -> str:
    """Idempotency key stored on the notification log row."""
    return f"COI_EXPIRY_{channel.value}_{coi_id}_D{days}"


# -----------------------------------------------------
# Selection
# -----------------------------------------------------
def _expiring_certificates(session: Session, as_of: datetime) -> List[COI]:
    # Day-granular window: anything expiring on day 30 is in,
    # whatever the time of day
    today = start_of_day(as_of)
    window_end = today + timedelta(days=WINDOW_DAYS + 1)

    try:
        return list(session.exec(
            select(COI)
            .where(COI.status.in_([COIStatus.APPROVED, COIStatus.PENDING]))
            .where(COI.expiration_date >= today)
            .where(COI.expiration_date < window_end)
            .order_by(COI.expiration_date, COI.id)
        ))
    except SQLAlchemyError as e:
        raise PersistenceError(f"Expiry sweep selection failed: {e}") from e


def _to_alert(session: Session, coi: COI, as_of: datetime) -> ExpiryAlert:
    # Plain values only: a rollback later in the sweep expires ORM instances
    holder_name, phone, email = "", None, None

    if coi.vendor_id:
        vendor = session.get(Vendor, coi.vendor_id)
        if vendor is not None:
            holder_name, phone, email = vendor.company_name, vendor.contact_phone, vendor.contact_email
    elif coi.tenant_id:
        tenant = session.get(Tenant, coi.tenant_id)
        if tenant is not None:
            holder_name, phone, email = tenant.business_name, tenant.contact_phone, tenant.contact_email

    building = session.get(Building, coi.building_id)
    expiration = to_naive_utc(coi.expiration_date)

    return ExpiryAlert(
        coi_id=coi.id,
        days=whole_days_until(expiration, as_of),
        expiration_date=expiration,
        holder_name=holder_name,
        building_name=building.name if building is not None else "",
        phone=phone,
        email=email,
    )


# -----------------------------------------------------
# One channel, one certificate
# -----------------------------------------------------
def _deliver(
    session: Session,
    sender,
    channel: NotificationType,
    recipient: str,
    log_subject: str,
    message_subject: str,
    content: str,
) -> str:
    existing = session.exec(
        select(NotificationLog.id)
        .where(NotificationLog.type == channel)
        .where(NotificationLog.recipient == recipient)
        .where(NotificationLog.subject == log_subject)
    ).first()
    if existing is not None:
        logger.debug(f"Skip duplicate {channel.value} {log_subject} to {recipient}")
        return DUPLICATE

    session.add(NotificationLog(
        type=channel,
        recipient=recipient,
        subject=log_subject,
        content=content,
        status="sent",
        sent_at=utcnow(),
    ))

    try:
        session.flush()
    except IntegrityError:
        # A concurrent sweep claimed the same key first
        session.rollback()
        logger.debug(f"Skip duplicate {channel.value} {log_subject} to {recipient} (concurrent)")
        return DUPLICATE

    try:
        delivered = sender.send(channel.value, recipient, message_subject, content)
    except Exception as e:
        session.rollback()
        logger.error(f"{channel.value} failed to {recipient} for {log_subject}: {e}")
        return FAILED

    if not delivered:
        session.rollback()
        logger.error(f"{channel.value} not delivered to {recipient} for {log_subject}")
        return FAILED

    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"{channel.value} sent to {recipient} but log write failed for {log_subject}: {e}")
        return FAILED

    logger.info(f"{channel.value} sent to {recipient} [{log_subject}]")
    return SENT


# -----------------------------------------------------
# Daily sweep
# -----------------------------------------------------
def run_expiry_sweep(
    session: Session,
    sender=None,
    as_of: Optional[datetime] = None,
) -> SweepResult:
    """
    Remind holders of APPROVED or PENDING certificates expiring in
    exactly 30, 15 or 7 days, once per (certificate, threshold, channel).

    Safe to re-run with the same `as_of`: the notification log's unique
    key turns every repeat into a skip.
    """
    as_of = utcnow() if as_of is None else to_naive_utc(as_of)
    sender = sender or NotificationSender()
    result = SweepResult()

    logger.info(f"Expiry sweep starting (as of {as_of.isoformat()})")

    certificates = _expiring_certificates(session, as_of)
    alerts = [_to_alert(session, coi, as_of) for coi in certificates]
    result.processed = len(alerts)

    for alert in alerts:
        if alert.days not in ALERT_THRESHOLDS:
            result.skipped += 1
            continue

        sms_text = render_expiry_sms(alert.holder_name, alert.building_name, alert.days, alert.expiration_date)
        email_subject, email_body = render_expiry_email(
            alert.holder_name, alert.building_name, alert.days, alert.expiration_date
        )

        channels = (
            (NotificationType.SMS, alert.phone, sms_text, sms_text),
            (NotificationType.EMAIL, alert.email, email_subject, email_body),
        )

        for channel, recipient, message_subject, content in channels:
            if not recipient:
                logger.warning(f"No {channel.value} contact for COI {alert.coi_id} [D{alert.days}]")
                result.failed += 1
                continue

            outcome = _deliver(
                session,
                sender,
                channel,
                recipient,
                alert_subject(channel, alert.coi_id, alert.days),
                message_subject,
                content,
            )

            if outcome == SENT:
                result.sent += 1
            elif outcome == DUPLICATE:
                result.skipped += 1
            else:
                result.failed += 1

    logger.info(
        f"Expiry sweep finished: processed={result.processed} sent={result.sent} "
        f"skipped={result.skipped} failed={result.failed}"
    )
    return result
