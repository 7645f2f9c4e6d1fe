import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ON_ERROR_CHOICES

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_env() -> None:
    """Load .env from the working directory if present.
    Variables already set in the environment win over the file.
    """
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


@dataclass(frozen=True)
class Settings:
    input: Path = Path("raw_data/linkage.csv")
    workers: int = 1
    shard_size: int = 10000
    on_error: str = "raise"
    log_level: str = "INFO"
    log_dir: Optional[Path] = None


def _positive_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}")
    if value < 1:
        raise ValueError(f"{key} must be >= 1, got {value}")
    return value


def _choice(env: Mapping[str, str], key: str, default: str, choices, normalize=str.lower) -> str:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    value = normalize(raw.strip())
    if value not in choices:
        raise ValueError(f"{key} must be one of {', '.join(choices)}, got {raw!r}")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from LINKAGE_* environment variables."""
    if env is None:
        env = os.environ
    log_dir = env.get("LINKAGE_LOG_DIR")
    return Settings(
        input=Path(env.get("LINKAGE_INPUT") or Settings.input),
        workers=_positive_int(env, "LINKAGE_WORKERS", Settings.workers),
        shard_size=_positive_int(env, "LINKAGE_SHARD_SIZE", Settings.shard_size),
        on_error=_choice(env, "LINKAGE_ON_ERROR", Settings.on_error, ON_ERROR_CHOICES),
        log_level=_choice(env, "LINKAGE_LOG_LEVEL", Settings.log_level, LOG_LEVELS, normalize=str.upper),
        log_dir=Path(log_dir) if log_dir else None,
    )
