import json

import pytest

from utils.app_config import Settings, get_settings, load_config

_ENV_NAMES = (
    "LEDGER_DB_PATH", "LEDGER_MATCH_TOLERANCE_DAYS", "LEDGER_LOOKBACK_MONTHS",
    "LEDGER_LOOKAHEAD_MONTHS", "LEDGER_REQUIRE_MERCHANT", "LEDGER_DISCARD_MODE",
    "LEDGER_LOG_LEVEL", "HOST", "PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_load_config_missing_or_corrupt_returns_empty(tmp_path):
    assert load_config(tmp_path / "missing.json") == {}
    corrupt = tmp_path / "config.json"
    corrupt.write_text("{not json", encoding="utf-8")
    assert load_config(corrupt) == {}


def test_defaults(tmp_path):
    settings = get_settings(tmp_path / "missing.json", use_dotenv=False)
    assert settings == Settings()
    assert settings.match_tolerance_days == 3
    assert settings.lookback_months == 12
    assert settings.lookahead_months == 3
    assert settings.discard_mode == "marker"


def test_file_then_env_precedence(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"db_path": "file.db", "lookahead_months": 6, "require_merchant": True}),
        encoding="utf-8",
    )
    monkeypatch.setenv("LEDGER_DB_PATH", "'env.db'")
    monkeypatch.setenv("LEDGER_LOG_LEVEL", "debug")

    settings = get_settings(path, use_dotenv=False)

    assert settings.db_path == "env.db"
    assert settings.lookahead_months == 6
    assert settings.require_merchant is True
    assert settings.log_level == "DEBUG"


def test_env_bool_parsing(tmp_path, monkeypatch):
    monkeypatch.setenv("LEDGER_REQUIRE_MERCHANT", "yes")
    assert get_settings(tmp_path / "missing.json", use_dotenv=False).require_merchant is True


@pytest.mark.parametrize("name,value", [
    ("LEDGER_DISCARD_MODE", "delete"),
    ("LEDGER_MATCH_TOLERANCE_DAYS", "-1"),
    ("PORT", "eighty"),
])
def test_invalid_values_raise(tmp_path, monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError):
        get_settings(tmp_path / "missing.json", use_dotenv=False)
