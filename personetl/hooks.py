import logging

from personetl.schemas import Accepted, Failed, ProcessOutcome, RawRecord, RunReport, RunStatus, Skipped


logger = logging.getLogger(__name__)


class RunHooks:
    """Observer called synchronously by the pipeline runner.

    Hooks receive frozen report snapshots and must not try to steer the run;
    an exception raised by a hook is logged and otherwise ignored.
    """

    def before_run(self, report: RunReport) -> None:
        pass

    def before_record(self, report: RunReport, record: RawRecord) -> None:
        pass

    def after_record(self, report: RunReport, record: RawRecord, outcome: ProcessOutcome) -> None:
        pass

    def after_chunk(self, report: RunReport, chunk_number: int) -> None:
        pass

    def after_run(self, report: RunReport) -> None:
        pass


class LoggingHooks(RunHooks):
    def before_run(self, report: RunReport) -> None:
        logger.info("import started", extra={"job_id": report.job_id, "source": report.source})

    def before_record(self, report: RunReport, record: RawRecord) -> None:
        logger.debug("processing record", extra={"line": record.source_line_number, "raw": record.raw_text})

    def after_record(self, report: RunReport, record: RawRecord, outcome: ProcessOutcome) -> None:
        if isinstance(outcome, Accepted):
            logger.debug("record accepted: %r -> %r", record.raw_text, outcome.record.name)
        elif isinstance(outcome, Skipped):
            logger.info("record skipped (%s): %r", outcome.reason.value, record.raw_text)
        elif isinstance(outcome, Failed):
            logger.error("record failed: %s", outcome.error, extra={"line": record.source_line_number})

    def after_chunk(self, report: RunReport, chunk_number: int) -> None:
        logger.info(
            "chunk %d done: read=%d written=%d skipped=%d",
            chunk_number,
            report.read_count,
            report.write_count,
            report.skip_count,
        )

    def after_run(self, report: RunReport) -> None:
        log = logger.error if report.status is RunStatus.FAILED else logger.info
        log(
            "import finished",
            extra={
                "job_id": report.job_id,
                "status": report.status.value,
                "read_count": report.read_count,
                "write_count": report.write_count,
                "skip_count": report.skip_count,
                "duplicate_count": report.duplicate_count,
                "error_count": len(report.errors),
            },
        )


def call_hook(hooks: list[RunHooks], event: str, *args: object) -> None:
    for hook in hooks:
        try:
            getattr(hook, event)(*args)
        except Exception:
            logger.exception("run hook failed", extra={"hook": type(hook).__name__, "event": event})
