import logging

from personetl.duplicates import DuplicateIndex
from personetl.errors import RecordError
from personetl.normalize import normalize_name
from personetl.schemas import Accepted, CanonicalRecord, Failed, ProcessOutcome, RawRecord, SkipReason, Skipped
from personetl.store import RecordStore


logger = logging.getLogger(__name__)


def process_record(raw: RawRecord, store: RecordStore, index: DuplicateIndex) -> ProcessOutcome:
    """Classify one raw record as accepted, skipped or failed.

    Nothing is written here; an accepted name is only remembered by ``index``
    so later records of the same run treat it as existing.
    """
    if not raw.raw_text.strip():
        logger.warning("empty name skipped", extra={"line": raw.source_line_number})
        return Skipped(SkipReason.EMPTY_INPUT)

    try:
        name = normalize_name(raw.raw_text)
        duplicate = index.is_duplicate(name, store)
    except Exception as exc:
        logger.exception("record processing failed", extra={"line": raw.source_line_number})
        return Failed(RecordError(raw.raw_text.strip(), exc), raw.raw_text)

    if duplicate:
        logger.warning("duplicate skipped: %r already exists", name, extra={"line": raw.source_line_number})
        return Skipped(SkipReason.DUPLICATE, name)

    index.remember(name)
    logger.debug("transformed %r -> %r", raw.raw_text, name)
    return Accepted(CanonicalRecord(name=name))
