from dataclasses import dataclass
import os

from dotenv import load_dotenv


load_dotenv()

WRITE_FAILURE_POLICIES = ("abort", "continue")
DUPLICATE_INDEX_KINDS = ("memory", "scan")


@dataclass(frozen=True)
class Settings:
    app_name: str
    database_url: str
    log_level: str
    input_dir: str
    output_dir: str
    default_source: str
    chunk_size: int
    write_failure_policy: str
    duplicate_index: str
    schedule_hour_utc: int
    schedule_minute_utc: int

    def __post_init__(self) -> None:
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.write_failure_policy not in WRITE_FAILURE_POLICIES:
            raise ValueError(f"unknown write failure policy: {self.write_failure_policy!r}")
        if self.duplicate_index not in DUPLICATE_INDEX_KINDS:
            raise ValueError(f"unknown duplicate index kind: {self.duplicate_index!r}")


def get_settings() -> Settings:
    return Settings(
        app_name=os.getenv("APP_NAME", "personetl"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./people.db"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        input_dir=os.getenv("INPUT_DIR", "./data"),
        output_dir=os.getenv("OUTPUT_DIR", "./outputs"),
        default_source=os.getenv("DEFAULT_SOURCE", "data"),
        chunk_size=int(os.getenv("CHUNK_SIZE", "5")),
        write_failure_policy=os.getenv("WRITE_FAILURE_POLICY", "abort").strip().lower(),
        duplicate_index=os.getenv("DUPLICATE_INDEX", "memory").strip().lower(),
        schedule_hour_utc=int(os.getenv("SCHEDULE_HOUR_UTC", "2")),
        schedule_minute_utc=int(os.getenv("SCHEDULE_MINUTE_UTC", "0")),
    )
