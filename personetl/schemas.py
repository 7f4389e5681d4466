from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class RunStatus(str, Enum):
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    COMPLETED_WITH_ERRORS = "COMPLETED_WITH_ERRORS"
    FAILED = "FAILED"


class SkipReason(str, Enum):
    EMPTY_INPUT = "empty_input"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class RawRecord:
    raw_text: str
    source_line_number: int


@dataclass(frozen=True)
class CanonicalRecord:
    name: str


@dataclass(frozen=True)
class PersistedRecord:
    id: int
    name: str


@dataclass(frozen=True)
class Accepted:
    record: CanonicalRecord


@dataclass(frozen=True)
class Skipped:
    reason: SkipReason
    name: str | None = None


@dataclass(frozen=True)
class Failed:
    error: Exception
    raw_text: str


ProcessOutcome = Accepted | Skipped | Failed


@dataclass(frozen=True)
class RunReport:
    status: RunStatus
    read_count: int = 0
    write_count: int = 0
    skip_count: int = 0
    duplicate_count: int = 0
    errors: tuple[str, ...] = ()
    duplicates: tuple[str, ...] = ()
    job_id: int | None = None
    source: str | None = None
    message: str | None = None
    error_type: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None

    def to_dict(self) -> dict[str, object]:
        # Empty collections and unset metadata are left out of the summary.
        payload: dict[str, object] = {
            "status": self.status.value,
            "readCount": self.read_count,
            "writeCount": self.write_count,
            "skipCount": self.skip_count,
            "duplicateCount": self.duplicate_count,
        }
        optional = {
            "jobId": self.job_id,
            "source": self.source,
            "message": self.message,
            "errorType": self.error_type,
            "startTime": self.started_at.isoformat() if self.started_at else None,
            "endTime": self.finished_at.isoformat() if self.finished_at else None,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        if self.duplicates:
            payload["duplicates"] = list(self.duplicates)
        if self.errors:
            payload["errors"] = list(self.errors)
        return payload


@dataclass
class RunStatistics:
    """Counters for one run; the runner owns it and hands out frozen snapshots."""

    read_count: int = 0
    write_count: int = 0
    skip_count: int = 0
    duplicate_count: int = 0
    errors: list[str] = field(default_factory=list)
    duplicates: list[str] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def record_outcome(self, outcome: ProcessOutcome) -> None:
        if isinstance(outcome, Skipped):
            self.skip_count += 1
            if outcome.reason is SkipReason.DUPLICATE:
                self.duplicate_count += 1
                self.duplicates.append(str(outcome.name))
        elif isinstance(outcome, Failed):
            self.errors.append(str(outcome.error))

    def withdraw_duplicate(self, name: str) -> None:
        """Undo the most recent duplicate skip recorded for ``name``."""
        position = len(self.duplicates) - 1 - self.duplicates[::-1].index(name)
        del self.duplicates[position]
        self.duplicate_count -= 1
        self.skip_count -= 1

    def snapshot(self, status: RunStatus, **metadata: object) -> RunReport:
        return RunReport(
            status=status,
            read_count=self.read_count,
            write_count=self.write_count,
            skip_count=self.skip_count,
            duplicate_count=self.duplicate_count,
            errors=tuple(self.errors),
            duplicates=tuple(self.duplicates),
            **metadata,
        )
