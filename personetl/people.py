import logging

from personetl.normalize import normalize_name
from personetl.schemas import CanonicalRecord, PersistedRecord
from personetl.store import RecordStore


logger = logging.getLogger(__name__)


def _canonical(name: str) -> str:
    canonical = normalize_name(name)
    if not canonical:
        raise ValueError("name must not be empty")
    return canonical


def create_person(store: RecordStore, name: str) -> PersistedRecord:
    canonical = _canonical(name)
    with store.transaction():
        person = store.save(CanonicalRecord(name=canonical))
    logger.info("person created", extra={"person_id": person.id, "person_name": person.name})
    return person


def list_people(store: RecordStore) -> list[PersistedRecord]:
    people = list(store.find_all())
    logger.info("found %d people", len(people))
    return people


def get_person(store: RecordStore, person_id: int) -> PersistedRecord | None:
    person = store.find_by_id(person_id)
    if person is None:
        logger.warning("person not found", extra={"person_id": person_id})
    return person


def update_person(store: RecordStore, person_id: int, name: str) -> PersistedRecord | None:
    canonical = _canonical(name)
    with store.transaction():
        person = store.update(person_id, canonical)
    if person is None:
        logger.warning("person not found for update", extra={"person_id": person_id})
        return None
    logger.info("person updated", extra={"person_id": person.id, "person_name": person.name})
    return person


def delete_person(store: RecordStore, person_id: int) -> bool:
    if not store.exists_by_id(person_id):
        logger.warning("person not found for deletion", extra={"person_id": person_id})
        return False
    with store.transaction():
        store.delete_by_id(person_id)
    logger.info("person deleted", extra={"person_id": person_id})
    return True


def delete_all_people(store: RecordStore) -> int:
    with store.transaction():
        count = store.count()
        store.delete_all()
    logger.info("deleted %d people", count)
    return count
