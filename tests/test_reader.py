import io
from pathlib import Path

import pytest

from personetl.errors import SourceNotFound, SourceUnreadable
from personetl.reader import open_source, read_chunks, resolve_source
from personetl.schemas import RawRecord


def test_header_is_skipped_and_blank_lines_are_dropped(write_source) -> None:
    path = write_source(["name", "john doe", "  ", "", "JANE smith"])

    records = list(open_source(path))

    assert records == [RawRecord("john doe", 1), RawRecord("JANE smith", 2)]


def test_first_line_is_dropped_even_when_it_looks_like_data() -> None:
    records = list(open_source(io.StringIO("maria\nana\n")))

    assert [record.raw_text for record in records] == ["ana"]


def test_only_first_field_is_consumed() -> None:
    records = list(open_source(io.StringIO("name,age\nada lovelace,36\r\n")))

    assert records == [RawRecord("ada lovelace", 1)]


def test_header_only_source_yields_nothing(write_source) -> None:
    assert list(open_source(write_source(["name"]))) == []


def test_empty_stream_yields_nothing() -> None:
    assert list(open_source(io.StringIO(""))) == []


def test_missing_file_raises_before_iteration(tmp_path: Path) -> None:
    with pytest.raises(SourceNotFound):
        open_source(tmp_path / "missing.csv")


def test_directory_is_unreadable(tmp_path: Path) -> None:
    with pytest.raises(SourceUnreadable):
        open_source(tmp_path)


def test_invalid_utf8_is_unreadable(tmp_path: Path) -> None:
    path = tmp_path / "latin1.csv"
    path.write_bytes("name\nJos\xe9\n".encode("latin-1"))

    with pytest.raises(SourceUnreadable):
        list(open_source(path))


def test_reader_is_single_pass(write_source) -> None:
    records = open_source(write_source(["name", "a", "b"]))

    assert len(list(records)) == 2
    assert list(records) == []


def test_read_chunks_splits_into_bounded_batches() -> None:
    records = iter([RawRecord(str(n), n) for n in range(1, 8)])

    chunks = list(read_chunks(records, 3))

    assert [len(chunk) for chunk in chunks] == [3, 3, 1]
    assert [record.source_line_number for record in chunks[2]] == [7]


def test_read_chunks_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError):
        list(read_chunks(iter([]), 0))


def test_resolve_source_appends_csv_under_input_dir(tmp_path: Path) -> None:
    assert resolve_source("data", tmp_path) == tmp_path / "data.csv"
    assert resolve_source("people.csv", tmp_path) == tmp_path / "people.csv"


def test_resolve_source_keeps_absolute_paths(tmp_path: Path) -> None:
    absolute = tmp_path / "elsewhere" / "names.txt"
    assert resolve_source(str(absolute), "/unused") == absolute
