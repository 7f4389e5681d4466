from collections.abc import Sequence
import logging

from personetl.errors import WriteFailed
from personetl.schemas import CanonicalRecord, PersistedRecord
from personetl.store import RecordStore


logger = logging.getLogger(__name__)


def commit_chunk(batch: Sequence[CanonicalRecord], store: RecordStore) -> list[PersistedRecord]:
    """Save each record of ``batch`` and commit them together.

    The first failing save rolls the whole chunk back and raises WriteFailed.
    """
    persisted: list[PersistedRecord] = []
    position = 0
    try:
        with store.transaction():
            for position, record in enumerate(batch):
                saved = store.save(record)
                logger.debug("person saved", extra={"person_id": saved.id, "person_name": saved.name})
                persisted.append(saved)
            # A failing commit is reported against the last record of the chunk.
            position = max(len(batch) - 1, 0)
    except Exception as exc:
        name = batch[position].name if batch else ""
        logger.error("chunk write failed", extra={"position": position, "person_name": name})
        raise WriteFailed(position, name, exc) from exc

    logger.info("chunk committed", extra={"saved": len(persisted)})
    return persisted
