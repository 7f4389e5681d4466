import logging

from apscheduler.schedulers.blocking import BlockingScheduler
from sqlalchemy.orm import Session, sessionmaker

from personetl.config import Settings
from personetl.pipeline import PipelineRunner
from personetl.schemas import RunStatus


logger = logging.getLogger(__name__)


def _run_daily_import(settings: Settings, session_factory: sessionmaker[Session]) -> None:
    runner = PipelineRunner(settings, session_factory)
    report = runner.run(settings.default_source)
    if report.status is RunStatus.FAILED:
        logger.error(
            "scheduled import failed",
            extra={"job_id": report.job_id, "status": report.status.value, "reason": report.message},
        )
        return
    logger.info(
        "scheduled import completed",
        extra={"job_id": report.job_id, "status": report.status.value, "write_count": report.write_count},
    )


def start_scheduler(settings: Settings, session_factory: sessionmaker[Session], *, run_now: bool = False) -> None:
    scheduler = BlockingScheduler(timezone="UTC")
    scheduler.add_job(
        _run_daily_import,
        "cron",
        args=[settings, session_factory],
        hour=settings.schedule_hour_utc,
        minute=settings.schedule_minute_utc,
        id="daily_person_import",
        replace_existing=True,
    )

    logger.info(
        "scheduler started",
        extra={
            "schedule_hour_utc": settings.schedule_hour_utc,
            "schedule_minute_utc": settings.schedule_minute_utc,
            "source": settings.default_source,
        },
    )

    if run_now:
        _run_daily_import(settings, session_factory)

    scheduler.start()
