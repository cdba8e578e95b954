from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict

logger = logging.getLogger(__name__)

DEFAULT_SHIFTING_WINDOW_MINUTES = 60
"""Width (minutes) of the band next to an incentive that absorbs shifted mass."""

RESIDUAL_MODES = ("proportional", "equal")


def _load_dotenv(path: str = ".env") -> Dict[str, str]:
    """
    Read ``KEY=value`` lines from a .env file into os.environ.

    Variables already set in the environment are left untouched. Returns a
    mapping of parsed key/value pairs.
    """
    env_path = Path(path)
    if not env_path.exists():
        return {}

    parsed: Dict[str, str] = {}
    for line in env_path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        os.environ.setdefault(key, value)
        parsed[key] = value
    return parsed


_load_dotenv()


def get_database_url() -> str:
    """
    Determine the SQLAlchemy database URL, preferring PostgreSQL if configured.

    Returns:
        Database connection string compatible with SQLAlchemy.
    """
    dsn = os.getenv("POSTGRES_DSN")
    if dsn:
        return dsn

    db_path = Path(os.getenv("SIM_DR_DB_PATH", "sim_dr.db")).expanduser()
    if not db_path.is_absolute():
        db_path = Path.cwd() / db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite+pysqlite:///{db_path}"


def get_shifting_window() -> int:
    """
    Width of the shifting window used by the incentive-window policy.

    Reads ``SIM_DR_SHIFTING_WINDOW``; malformed or non-positive values fall
    back to the default with a warning.
    """
    raw = os.getenv("SIM_DR_SHIFTING_WINDOW")
    if raw is None:
        return DEFAULT_SHIFTING_WINDOW_MINUTES
    try:
        window = int(raw)
    except ValueError:
        logger.warning("Ignoring SIM_DR_SHIFTING_WINDOW=%r: not an integer", raw)
        return DEFAULT_SHIFTING_WINDOW_MINUTES
    if window <= 0:
        logger.warning("Ignoring SIM_DR_SHIFTING_WINDOW=%r: must be positive", raw)
        return DEFAULT_SHIFTING_WINDOW_MINUTES
    return window


def get_residual_mode() -> str:
    """
    Default residual-distribution mode for discretized Normal distributions.

    Reads ``SIM_DR_RESIDUAL_MODE`` (``proportional`` or ``equal``).
    """
    raw = os.getenv("SIM_DR_RESIDUAL_MODE", "proportional").strip().lower()
    if raw not in RESIDUAL_MODES:
        logger.warning("Unknown SIM_DR_RESIDUAL_MODE=%r, using 'proportional'", raw)
        return "proportional"
    return raw
