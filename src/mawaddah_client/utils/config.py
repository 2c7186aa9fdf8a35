"""Client settings from the environment (MAWADDAH_* variables), via python-dotenv.

Every setting is optional and has a default, so a bare checkout talks to a
local backend at http://localhost:3000/api and keeps state under data/state.
Stores and clients read settings only through the accessors below.
"""

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
import os


def _project_root() -> Path:
    """Resolve project root (the directory holding pyproject.toml)."""
    return Path(__file__).resolve().parent.parent.parent.parent


def load_config() -> None:
    """
    Load .env from project root. Idempotent; safe to call multiple times.
    Uses override=True to ensure .env values take precedence over existing env vars.
    """
    root = _project_root()
    env_path = root / ".env"
    load_dotenv(env_path, override=True)


def get_optional(key: str, default: str = "") -> str:
    """Get optional env var; return default if missing or empty."""
    load_config()
    val = os.getenv(key, "").strip()
    return val if val else default


def get_optional_int(key: str, default: int) -> int:
    """Get optional env var as int; return default if missing or invalid."""
    load_config()
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# --- Public config accessors ---

def api_base_url() -> str:
    """Optional: backend API base URL. Default http://localhost:3000/api."""
    return get_optional("MAWADDAH_API_BASE", "http://localhost:3000/api").rstrip("/")


def http_timeout() -> int:
    """Optional: per-request timeout in seconds for the API client. Default 30."""
    return get_optional_int("MAWADDAH_HTTP_TIMEOUT", 30)


def state_dir() -> Path:
    """
    Optional: directory holding persisted client state (one JSON file per namespace).
    Default data/state under the project root.
    """
    val = get_optional("MAWADDAH_STATE_DIR", "")
    if val:
        return Path(val).expanduser()
    return _project_root() / "data" / "state"


def search_page_size() -> int:
    """Optional: page size sent with search requests. Default 20."""
    size = get_optional_int("MAWADDAH_SEARCH_PAGE_SIZE", 20)
    return size if size > 0 else 20


def log_level() -> str:
    """Optional: logging level name. Default INFO."""
    return get_optional("MAWADDAH_LOG_LEVEL", "INFO").upper()


def log_file() -> Optional[Path]:
    """Optional: log file path. None logs to stderr only."""
    val = get_optional("MAWADDAH_LOG_FILE", "")
    return Path(val) if val else None


def project_root() -> Path:
    """Project root directory."""
    return _project_root()
