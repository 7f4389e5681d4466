from collections.abc import Iterator, Sequence
from contextlib import AbstractContextManager, contextmanager
from typing import Protocol

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from personetl.db_models import Person
from personetl.schemas import CanonicalRecord, PersistedRecord


class RecordStore(Protocol):
    def save(self, record: CanonicalRecord) -> PersistedRecord: ...

    def find_all(self) -> Sequence[PersistedRecord]: ...

    def find_by_id(self, record_id: int) -> PersistedRecord | None: ...

    def exists_by_id(self, record_id: int) -> bool: ...

    def update(self, record_id: int, name: str) -> PersistedRecord | None: ...

    def delete_by_id(self, record_id: int) -> None: ...

    def count(self) -> int: ...

    def delete_all(self) -> None: ...

    def transaction(self) -> AbstractContextManager[None]: ...


class SqlPersonStore:
    """RecordStore over the ``people`` table.

    ``save``, ``update`` and the deletes only flush; they become durable when the
    enclosing ``transaction()`` block exits without an exception.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def save(self, record: CanonicalRecord) -> PersistedRecord:
        person = Person(name=record.name)
        self.db.add(person)
        self.db.flush()
        return PersistedRecord(id=person.id, name=person.name)

    def find_all(self) -> list[PersistedRecord]:
        rows = self.db.execute(select(Person).order_by(Person.id)).scalars().all()
        return [PersistedRecord(id=row.id, name=row.name) for row in rows]

    def find_by_id(self, record_id: int) -> PersistedRecord | None:
        person = self.db.get(Person, record_id)
        if person is None:
            return None
        return PersistedRecord(id=person.id, name=person.name)

    def exists_by_id(self, record_id: int) -> bool:
        stmt = select(Person.id).where(Person.id == record_id)
        return self.db.execute(stmt).scalar_one_or_none() is not None

    def update(self, record_id: int, name: str) -> PersistedRecord | None:
        person = self.db.get(Person, record_id)
        if person is None:
            return None
        person.name = name
        self.db.flush()
        return PersistedRecord(id=person.id, name=person.name)

    def delete_by_id(self, record_id: int) -> None:
        self.db.execute(delete(Person).where(Person.id == record_id))

    def count(self) -> int:
        return self.db.execute(select(func.count()).select_from(Person)).scalar_one()

    def delete_all(self) -> None:
        self.db.execute(delete(Person))

    @contextmanager
    def transaction(self) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
