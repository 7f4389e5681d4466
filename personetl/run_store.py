from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from personetl.db_models import ImportRun
from personetl.schemas import RunReport, RunStatus


def utc_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def list_runs(db: Session, limit: int = 20) -> list[ImportRun]:
    stmt = select(ImportRun).order_by(ImportRun.id.desc()).limit(limit)
    return list(db.execute(stmt).scalars().all())


def create_run(db: Session, *, source: str, chunk_size: int) -> ImportRun:
    run = ImportRun(source=source, chunk_size=chunk_size, status=RunStatus.RUNNING.value, started_at=utc_now())
    db.add(run)
    db.commit()
    db.refresh(run)
    return run


def finish_run(db: Session, run: ImportRun, report: RunReport) -> None:
    run.status = report.status.value
    run.read_count = report.read_count
    run.write_count = report.write_count
    run.skip_count = report.skip_count
    run.duplicate_count = report.duplicate_count
    run.error_count = len(report.errors)
    run.message = report.message
    run.finished_at = report.finished_at or utc_now()
    db.commit()
