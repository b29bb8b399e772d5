import os
from pathlib import Path

DEFAULT_LOG_LEVEL = "INFO"
REGISTRY_FILENAME = "characters.json"
EVENT_LOG_FILENAME = "events.jsonl"


def get_data_path(ensure_exists: bool = False) -> Path:
    """Get the data directory (DUEL_DATA_DIR, else ./duel-data).

    Args:
        ensure_exists: If True, raises error if directory doesn't exist.
    """
    env_path = os.getenv("DUEL_DATA_DIR")
    data_dir = Path(env_path) if env_path else Path.cwd() / "duel-data"

    if ensure_exists and not data_dir.exists():
        raise RuntimeError(
            f"duel-data not found at {data_dir}. "
            f"Please run from the project root or set DUEL_DATA_DIR environment variable."
        )

    return data_dir


def get_registry_path() -> Path:
    return get_data_path() / REGISTRY_FILENAME


def get_event_log_path() -> Path:
    return get_data_path() / EVENT_LOG_FILENAME


def get_log_level() -> str:
    return os.getenv("DUEL_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
