from collections.abc import Iterator
from itertools import islice
from pathlib import Path
from typing import TextIO

from personetl.errors import SourceNotFound, SourceUnreadable
from personetl.schemas import RawRecord


Source = str | Path | TextIO


def resolve_source(name: str, input_dir: str | Path) -> Path:
    """Map a bare source name such as ``data`` to ``<input_dir>/data.csv``."""
    candidate = Path(name)
    if candidate.is_absolute() or candidate.is_file():
        return candidate
    if candidate.suffix != ".csv":
        candidate = candidate.with_name(f"{candidate.name}.csv")
    return Path(input_dir) / candidate


def describe_source(source: Source) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    return str(getattr(source, "name", "<stream>"))


def open_source(source: Source) -> Iterator[RawRecord]:
    """Open ``source`` now and return a lazy, single-pass iterator of its records.

    Missing or unopenable files raise here, before anything is read.
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise SourceNotFound(str(path))
        if not path.is_file():
            raise SourceUnreadable(str(path), "not a regular file")
        try:
            handle = path.open("r", encoding="utf-8", newline="")
        except OSError as exc:
            raise SourceUnreadable(str(path), exc.strerror or str(exc)) from exc
        return _iter_records(handle, str(path), close=True)
    return _iter_records(source, describe_source(source), close=False)


def _iter_records(handle: TextIO, label: str, *, close: bool) -> Iterator[RawRecord]:
    try:
        lines = iter(handle)
        # The first line is the header, whatever it contains.
        next(lines, None)
        line_number = 0
        for line in lines:
            if not line.strip():
                continue
            line_number += 1
            yield RawRecord(raw_text=first_field(line), source_line_number=line_number)
    except UnicodeDecodeError as exc:
        raise SourceUnreadable(label, f"invalid UTF-8: {exc.reason}") from exc
    finally:
        if close:
            handle.close()


def first_field(line: str) -> str:
    return line.rstrip("\r\n").split(",", 1)[0]


def read_chunks(records: Iterator[RawRecord], chunk_size: int) -> Iterator[list[RawRecord]]:
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    while True:
        chunk = list(islice(records, chunk_size))
        if not chunk:
            return
        yield chunk
