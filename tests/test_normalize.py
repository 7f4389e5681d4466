import pytest

from personetl.normalize import normalize_name


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("john doe", "John Doe"),
        ("JANE smith", "Jane Smith"),
        ("  maria   DA  silva ", "Maria Da Silva"),
        ("o'NEIL", "O'neil"),
        ("élodie", "Élodie"),
        ("", ""),
        ("   ", ""),
    ],
)
def test_normalize_name(raw: str, expected: str) -> None:
    assert normalize_name(raw) == expected


@pytest.mark.parametrize("raw", ["john doe", "  mIxEd   CaSe  ", "ßtraße weg", "ǆemal", "ŉabc", "a\tb c", ""])
def test_normalize_is_idempotent(raw: str) -> None:
    once = normalize_name(raw)
    assert normalize_name(once) == once
