"""Process configuration. Zero imports from services or database.

Settings come from ~/.recurring_ledger/config.json, overlaid by environment
variables (a .env file in the working directory is loaded first).
"""
import json
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from utils.constants import (
    DB_FILE, MATCH_TOLERANCE_DAYS, LOOKBACK_MONTHS, LOOKAHEAD_MONTHS,
    DISCARD_MARKER, DISCARD_MODES,
)

CONFIG_DIR = Path.home() / ".recurring_ledger"
CONFIG_FILE = CONFIG_DIR / "config.json"

_ENV_KEYS = {
    "db_path": "LEDGER_DB_PATH",
    "match_tolerance_days": "LEDGER_MATCH_TOLERANCE_DAYS",
    "lookback_months": "LEDGER_LOOKBACK_MONTHS",
    "lookahead_months": "LEDGER_LOOKAHEAD_MONTHS",
    "require_merchant": "LEDGER_REQUIRE_MERCHANT",
    "discard_mode": "LEDGER_DISCARD_MODE",
    "log_level": "LEDGER_LOG_LEVEL",
    "host": "HOST",
    "port": "PORT",
}


@dataclass(frozen=True)
class Settings:
    db_path: str = DB_FILE
    match_tolerance_days: int = MATCH_TOLERANCE_DAYS
    lookback_months: int = LOOKBACK_MONTHS
    lookahead_months: int = LOOKAHEAD_MONTHS
    require_merchant: bool = False
    discard_mode: str = DISCARD_MARKER
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8080


def load_config(path: Path | None = None) -> dict:
    """Returns {} on missing or corrupt file — never raises."""
    try:
        with open(path or CONFIG_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, ValueError):
        return {}


def _clean_env(value):
    if not value:
        return None
    cleaned = value.strip().strip("'\"")
    return cleaned or None


def _as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def get_settings(path: Path | None = None, use_dotenv: bool = True) -> Settings:
    """Merge defaults, the JSON config file and the environment into Settings.

    Raises ValueError for values that cannot be coerced.
    """
    if use_dotenv:
        load_dotenv()
    raw = load_config(path)
    for key, env_name in _ENV_KEYS.items():
        value = _clean_env(os.getenv(env_name))
        if value is not None:
            raw[key] = value

    defaults = Settings()
    try:
        settings = Settings(
            db_path=str(raw.get("db_path", defaults.db_path)),
            match_tolerance_days=int(raw.get("match_tolerance_days", defaults.match_tolerance_days)),
            lookback_months=int(raw.get("lookback_months", defaults.lookback_months)),
            lookahead_months=int(raw.get("lookahead_months", defaults.lookahead_months)),
            require_merchant=_as_bool(raw.get("require_merchant", defaults.require_merchant)),
            discard_mode=str(raw.get("discard_mode", defaults.discard_mode)),
            log_level=str(raw.get("log_level", defaults.log_level)).upper(),
            host=str(raw.get("host", defaults.host)),
            port=int(raw.get("port", defaults.port)),
        )
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc

    if settings.match_tolerance_days < 0:
        raise ValueError("match_tolerance_days must be 0 or greater.")
    if settings.discard_mode not in DISCARD_MODES:
        raise ValueError(f"Invalid discard_mode: {settings.discard_mode}")
    return settings
