# core/scheduler.py
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlmodel import Session

from core.alerts import run_expiry_sweep
from core.config import settings
from core.logging_config import logger
from core.utils import utcnow
from database import engine


def run_scheduled_expiry_sweep():
    """Runs the COI expiry sweep in its own session and logs the outcome."""
    start_time = utcnow()
    logger.info("[SCHEDULER] Starting COI expiry sweep...")

    try:
        with Session(engine) as session:
            result = run_expiry_sweep(session)

        duration = (utcnow() - start_time).total_seconds()
        logger.info(
            f"[SCHEDULER] Expiry sweep completed in {duration:.1f}s: "
            f"{result.sent} sent, {result.failed} failed"
        )

    except Exception as e:
        # Keep the scheduler thread alive for tomorrow's run
        logger.exception(f"[SCHEDULER] Expiry sweep failed: {e}")


def start_scheduler() -> BackgroundScheduler:
    """
    Initialize the APScheduler background process.
    One sweep at a time; missed runs collapse into one.
    """
    scheduler = BackgroundScheduler(timezone="UTC")

    scheduler.add_job(
        run_scheduled_expiry_sweep,
        trigger=CronTrigger(hour=settings.EXPIRY_SWEEP_HOUR, minute=settings.EXPIRY_SWEEP_MINUTE),
        id="coi_expiry_sweep",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.start()
    logger.info(
        f"⏰ Scheduler started. COI expiry sweep set for "
        f"{settings.EXPIRY_SWEEP_HOUR:02d}:{settings.EXPIRY_SWEEP_MINUTE:02d} UTC."
    )
    return scheduler
