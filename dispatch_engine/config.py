import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Institutional Path Management: .env lives in the project root
env_path = Path(__file__).resolve().parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

DEFAULT_DOCUMENT_OUTPUT_DIR = "documents"
# Pause between the Pre-Alert and CMR renders. Placeholder until the
# renderer can signal completion itself; set to 0 to disable.
DEFAULT_SETTLE_INTERVAL_SECONDS = 1.0


@dataclass(frozen=True)
class Settings:
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    document_output_dir: Path
    settle_interval_seconds: float
    log_level: str


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value < 0:
        raise ValueError(f"{name} cannot be negative, got {raw!r}")
    return value


def get_settings() -> Settings:
    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        document_output_dir=Path(os.getenv("DOCUMENT_OUTPUT_DIR", DEFAULT_DOCUMENT_OUTPUT_DIR)),
        settle_interval_seconds=_float_env("SETTLE_INTERVAL_SECONDS", DEFAULT_SETTLE_INTERVAL_SECONDS),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
