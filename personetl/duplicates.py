from collections.abc import Iterable

from personetl.store import RecordStore


def name_key(name: str) -> str:
    return name.casefold()


class DuplicateIndex:
    """Case-insensitive exact-match lookup of names already in the store.

    Names accepted earlier in the same run are remembered so that later
    records, in the same chunk or a later one, are compared against them too.
    """

    def __init__(self) -> None:
        self._run_names: set[str] = set()

    def refresh(self, store: RecordStore) -> None:
        self._run_names.clear()

    def remember(self, name: str) -> None:
        self._run_names.add(name_key(name))

    def forget(self, names: Iterable[str]) -> None:
        for name in names:
            self._run_names.discard(name_key(name))

    def is_duplicate(self, name: str, store: RecordStore) -> bool:
        return name_key(name) in self._run_names or self._stored_match(name_key(name), store)

    def _stored_match(self, key: str, store: RecordStore) -> bool:
        raise NotImplementedError


class StoreScanIndex(DuplicateIndex):
    """Re-reads every stored record for each candidate."""

    def _stored_match(self, key: str, store: RecordStore) -> bool:
        return any(name_key(record.name) == key for record in store.find_all())


class InMemoryNameIndex(DuplicateIndex):
    """Loads the stored names once per run."""

    def __init__(self) -> None:
        super().__init__()
        self._stored_names: set[str] = set()

    def refresh(self, store: RecordStore) -> None:
        super().refresh(store)
        self._stored_names = {name_key(record.name) for record in store.find_all()}

    def _stored_match(self, key: str, store: RecordStore) -> bool:
        return key in self._stored_names


def build_duplicate_index(kind: str) -> DuplicateIndex:
    if kind == "memory":
        return InMemoryNameIndex()
    if kind == "scan":
        return StoreScanIndex()
    raise ValueError(f"unknown duplicate index kind: {kind!r}")
