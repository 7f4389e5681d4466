import json
import os
from pathlib import Path
import subprocess
import sys


def _base_env(tmp_path: Path) -> dict[str, str]:
    env = os.environ.copy()
    env["DATABASE_URL"] = f"sqlite:///{tmp_path / 'cli.db'}"
    env["INPUT_DIR"] = str(tmp_path / "data")
    env["OUTPUT_DIR"] = str(tmp_path / "outputs")
    env["CHUNK_SIZE"] = "5"
    env["WRITE_FAILURE_POLICY"] = "abort"
    return env


def _run_cli(tmp_path: Path, *args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        [sys.executable, "-m", "personetl.main", *args],
        cwd=Path(__file__).resolve().parents[1],
        env=_base_env(tmp_path),
        check=False,
        capture_output=True,
        text=True,
    )


def test_cli_returns_nonzero_when_source_is_missing(tmp_path: Path) -> None:
    (tmp_path / "data").mkdir(parents=True, exist_ok=True)

    proc = _run_cli(tmp_path, "import", "--source", "missing")

    assert proc.returncode == 1
    payload = json.loads(proc.stdout)
    assert payload["status"] == "FAILED"
    assert payload["errorType"] == "SourceNotFound"


def test_cli_import_prints_report(tmp_path: Path) -> None:
    input_dir = tmp_path / "data"
    input_dir.mkdir(parents=True, exist_ok=True)
    (input_dir / "data.csv").write_text("name\njohn doe\nJOHN DOE\njane smith\n", encoding="utf-8")

    proc = _run_cli(tmp_path, "import")

    assert proc.returncode == 0
    payload = json.loads(proc.stdout)
    assert payload["status"] == "COMPLETED"
    assert payload["writeCount"] == 2
    assert payload["duplicates"] == ["John Doe"]
    assert "errors" not in payload


def test_cli_people_commands(tmp_path: Path) -> None:
    added = _run_cli(tmp_path, "people", "add", "ada LOVELACE")
    assert added.returncode == 0
    person = json.loads(added.stdout)
    assert person["name"] == "Ada Lovelace"

    listed = _run_cli(tmp_path, "people", "list")
    assert json.loads(listed.stdout) == [person]

    missing = _run_cli(tmp_path, "people", "delete", "999")
    assert missing.returncode == 1

    cleared = _run_cli(tmp_path, "people", "clear")
    assert cleared.stdout.strip() == "deleted=1"


def test_cli_info_and_runs(tmp_path: Path) -> None:
    (tmp_path / "data").mkdir(parents=True, exist_ok=True)
    (tmp_path / "data" / "data.csv").write_text("name\nada\n", encoding="utf-8")

    info = _run_cli(tmp_path, "info")
    assert json.loads(info.stdout)["chunkSize"] == 5

    _run_cli(tmp_path, "import")
    runs = json.loads(_run_cli(tmp_path, "runs").stdout)
    assert len(runs) == 1
    assert runs[0]["status"] == "COMPLETED"
    assert runs[0]["writeCount"] == 1


def test_cli_rejects_non_positive_chunk_size(tmp_path: Path) -> None:
    (tmp_path / "data").mkdir(parents=True, exist_ok=True)
    (tmp_path / "data" / "data.csv").write_text("name\nada\n", encoding="utf-8")

    proc = _run_cli(tmp_path, "import", "--chunk-size", "0")

    assert proc.returncode == 2
    assert "must be a positive integer" in proc.stderr
    assert not (tmp_path / "outputs" / "reports").exists()
