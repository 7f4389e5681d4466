from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from sqlalchemy.orm import Session, sessionmaker

from personetl.config import Settings
from personetl.database import build_session_factory
from personetl.pipeline import PipelineRunner
from personetl.store import SqlPersonStore


@pytest.fixture()
def temp_workspace(tmp_path: Path) -> Path:
    (tmp_path / "data").mkdir(parents=True, exist_ok=True)
    (tmp_path / "outputs").mkdir(parents=True, exist_ok=True)
    return tmp_path


@pytest.fixture()
def test_settings(temp_workspace: Path) -> Settings:
    return Settings(
        app_name="personetl",
        database_url=f"sqlite:///{temp_workspace / 'test.db'}",
        log_level="INFO",
        input_dir=str(temp_workspace / "data"),
        output_dir=str(temp_workspace / "outputs"),
        default_source="data",
        chunk_size=5,
        write_failure_policy="abort",
        duplicate_index="memory",
        schedule_hour_utc=2,
        schedule_minute_utc=0,
    )


@pytest.fixture()
def session_factory(test_settings: Settings) -> sessionmaker[Session]:
    return build_session_factory(test_settings.database_url)


@pytest.fixture()
def runner(test_settings: Settings, session_factory: sessionmaker[Session]) -> PipelineRunner:
    return PipelineRunner(test_settings, session_factory)


@pytest.fixture()
def store(session_factory: sessionmaker[Session]) -> Generator[SqlPersonStore, None, None]:
    with session_factory() as db:
        yield SqlPersonStore(db)


@pytest.fixture()
def write_source(temp_workspace: Path) -> Callable[..., Path]:
    def _write(lines: list[str], name: str = "data.csv") -> Path:
        path = temp_workspace / "data" / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
