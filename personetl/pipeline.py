from collections.abc import Iterator
import json
import logging
from pathlib import Path

from sqlalchemy.orm import Session, sessionmaker

from personetl.config import WRITE_FAILURE_POLICIES, Settings
from personetl.db_models import ImportRun
from personetl.duplicates import DuplicateIndex, build_duplicate_index, name_key
from personetl.errors import SourceNotFound, SourceUnreadable, WriteFailed
from personetl.hooks import LoggingHooks, RunHooks, call_hook
from personetl.processor import process_record
from personetl.reader import Source, describe_source, open_source, read_chunks, resolve_source
from personetl.run_store import create_run, finish_run, utc_now
from personetl.schemas import (
    Accepted,
    CanonicalRecord,
    RawRecord,
    RunReport,
    RunStatistics,
    RunStatus,
    SkipReason,
    Skipped,
)
from personetl.store import SqlPersonStore
from personetl.writer import commit_chunk


logger = logging.getLogger(__name__)

JOB_NAME = "importPersonJob"


class PipelineRunner:
    def __init__(
        self,
        settings: Settings,
        session_factory: sessionmaker[Session],
        hooks: list[RunHooks] | None = None,
    ) -> None:
        self.settings = settings
        self.session_factory = session_factory
        self.hooks = list(hooks) if hooks is not None else [LoggingHooks()]

    def run(
        self,
        source: Source | None = None,
        *,
        chunk_size: int | None = None,
        write_failure_policy: str | None = None,
    ) -> RunReport:
        if chunk_size is None:
            chunk_size = self.settings.chunk_size
        policy = write_failure_policy
        if policy is None:
            policy = self.settings.write_failure_policy
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if policy not in WRITE_FAILURE_POLICIES:
            raise ValueError(f"unknown write failure policy: {policy!r}")

        if source is None:
            source = self.settings.default_source
        if isinstance(source, str):
            source = resolve_source(source, self.settings.input_dir)
        label = describe_source(source)

        stats = RunStatistics()
        with self.session_factory() as db:
            run = create_run(db, source=label, chunk_size=chunk_size)
            metadata = {"job_id": run.id, "source": label, "started_at": run.started_at}
            call_hook(self.hooks, "before_run", stats.snapshot(RunStatus.RUNNING, **metadata))

            store = SqlPersonStore(db)
            index = build_duplicate_index(self.settings.duplicate_index)
            try:
                index.refresh(store)
                records = open_source(source)
                self._run_chunks(records, store, index, stats, metadata, chunk_size=chunk_size, policy=policy)
            except (SourceNotFound, SourceUnreadable, WriteFailed) as exc:
                logger.error("import aborted: %s", exc, extra={"job_id": run.id})
                report = self._finish(stats, metadata, RunStatus.FAILED, message=str(exc), error_type=type(exc).__name__)
            except Exception as exc:
                db.rollback()
                logger.exception("import failed", extra={"job_id": run.id})
                report = self._finish(stats, metadata, RunStatus.FAILED, message=f"Error: {exc}", error_type=type(exc).__name__)
            else:
                report = self._finish(stats, metadata, self._final_status(stats), message=self._summary_message(stats))

            finish_run(db, run, report)

        self._publish_report(report)
        call_hook(self.hooks, "after_run", report)
        return report

    def _run_chunks(
        self,
        records: Iterator[RawRecord],
        store: SqlPersonStore,
        index: DuplicateIndex,
        stats: RunStatistics,
        metadata: dict[str, object],
        *,
        chunk_size: int,
        policy: str,
    ) -> None:
        # Chunk N+1 is only pulled after chunk N's commit returned.
        for chunk_number, chunk in enumerate(read_chunks(records, chunk_size), start=1):
            stats.read_count += len(chunk)
            accepted: list[CanonicalRecord] = []
            duplicates: list[str] = []

            for raw in chunk:
                call_hook(self.hooks, "before_record", stats.snapshot(RunStatus.RUNNING, **metadata), raw)
                outcome = process_record(raw, store, index)
                stats.record_outcome(outcome)
                if isinstance(outcome, Accepted):
                    accepted.append(outcome.record)
                elif isinstance(outcome, Skipped) and outcome.reason is SkipReason.DUPLICATE:
                    duplicates.append(str(outcome.name))
                call_hook(self.hooks, "after_record", stats.snapshot(RunStatus.RUNNING, **metadata), raw, outcome)

            if accepted:
                try:
                    persisted = commit_chunk(accepted, store)
                except WriteFailed as exc:
                    index.forget(record.name for record in accepted)
                    stats.errors.append(str(exc))
                    stats.errors.extend(
                        f"Not saved '{record.name}': chunk {chunk_number} was rolled back"
                        for position, record in enumerate(accepted)
                        if position != exc.index
                    )
                    # Duplicates of names this chunk accepted were never stored either.
                    rolled_back = {name_key(record.name) for record in accepted}
                    for name in duplicates:
                        if name_key(name) in rolled_back:
                            stats.withdraw_duplicate(name)
                            stats.errors.append(f"Not saved '{name}': chunk {chunk_number} was rolled back")
                    if policy == "abort":
                        raise
                    logger.warning("continuing after failed chunk", extra={"chunk": chunk_number})
                else:
                    stats.write_count += len(persisted)

            call_hook(self.hooks, "after_chunk", stats.snapshot(RunStatus.RUNNING, **metadata), chunk_number)

    def _final_status(self, stats: RunStatistics) -> RunStatus:
        if not stats.errors:
            return RunStatus.COMPLETED
        if stats.write_count + stats.skip_count > 0:
            return RunStatus.COMPLETED_WITH_ERRORS
        return RunStatus.FAILED

    def _summary_message(self, stats: RunStatistics) -> str:
        if stats.duplicate_count > 0:
            return f"Processed: {stats.write_count} saved, {stats.duplicate_count} duplicates skipped"
        if stats.errors:
            return f"Processed: {stats.write_count} saved, {stats.error_count} errors"
        return "File processed successfully"

    def _finish(
        self,
        stats: RunStatistics,
        metadata: dict[str, object],
        status: RunStatus,
        *,
        message: str,
        error_type: str | None = None,
    ) -> RunReport:
        return stats.snapshot(status, message=message, error_type=error_type, finished_at=utc_now(), **metadata)

    def _publish_report(self, report: RunReport) -> None:
        write_json(Path(self.report_path(report.job_id)), report.to_dict())

    def report_path(self, job_id: int) -> str:
        return str(Path(self.settings.output_dir) / "reports" / f"import-{job_id}.json")


def job_info(settings: Settings) -> dict[str, object]:
    return {
        "jobName": JOB_NAME,
        "description": "Imports person names from CSV into the people table",
        "architecture": "Reader -> Processor -> Writer with chunk commits",
        "restartable": False,
        "chunkSize": settings.chunk_size,
        "writeFailurePolicy": settings.write_failure_policy,
        "duplicateIndex": settings.duplicate_index,
    }


def report_from_run(run: ImportRun) -> dict[str, object]:
    payload: dict[str, object] = {
        "jobId": run.id,
        "source": run.source,
        "status": run.status,
        "readCount": run.read_count,
        "writeCount": run.write_count,
        "skipCount": run.skip_count,
        "duplicateCount": run.duplicate_count,
        "errorCount": run.error_count,
        "startTime": run.started_at.isoformat(),
    }
    if run.finished_at is not None:
        payload["endTime"] = run.finished_at.isoformat()
    if run.message:
        payload["message"] = run.message
    return payload


def write_json(path: Path, payload: dict[str, object]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as outfile:
        json.dump(payload, outfile, indent=2, sort_keys=True)
        outfile.write("\n")
