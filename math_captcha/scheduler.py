"""Background scheduler that reaps expired answers from the in-memory store."""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from math_captcha.logging_config import get_logger
from math_captcha.services.answer_store import MemoryAnswerStore

logger = get_logger(__name__)

REAPER_JOB_ID = "reap_expired_answers"


def reap_job(store: MemoryAnswerStore) -> None:
    """Drop answers whose TTL has passed."""
    try:
        reaped = store.purge_expired()
        if reaped:
            logger.info("answers_reaped", count=reaped)
    except Exception as e:
        logger.error("answer_reap_failed", error=str(e))


def start_scheduler(store: MemoryAnswerStore, interval_seconds: int) -> BackgroundScheduler:
    """Start a background scheduler that purges the store periodically."""
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        reap_job,
        trigger=IntervalTrigger(seconds=interval_seconds),
        args=[store],
        id=REAPER_JOB_ID,
        replace_existing=True,
    )
    scheduler.start()
    logger.info("scheduler_started", reap_interval_seconds=interval_seconds)
    return scheduler


def shutdown_scheduler(scheduler: BackgroundScheduler) -> None:
    """Shutdown the scheduler gracefully."""
    scheduler.shutdown()
    logger.info("scheduler_stopped")
