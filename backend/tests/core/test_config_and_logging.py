import structlog

from playerwatch.core.config import Settings
from playerwatch.core.enums import PersonaState
from playerwatch.core.logging import request_context, setup_logging


def test_blank_keys_are_treated_as_absent():
    settings = Settings(_env_file=None, steam_api_key="   ", battlemetrics_api_key="")

    assert settings.steam_api_key is None
    assert settings.battlemetrics_api_key is None
    assert settings.steam_enabled is False


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("STEAM_API_KEY", "abc")
    monkeypatch.setenv("REQUEST_TIMEOUT_SECONDS", "2.5")

    settings = Settings(_env_file=None)

    assert settings.steam_api_key == "abc"
    assert settings.steam_enabled is True
    assert settings.request_timeout_seconds == 2.5
    assert settings.steam_batch_size == 100


def test_request_context_binds_scope_and_tracker():
    setup_logging("DEBUG", json_output=False)

    with request_context("guild-1", "tracker-1"):
        bound = structlog.contextvars.get_contextvars()
        assert bound["scope"] == "guild-1"
        assert bound["tracker_id"] == "tracker-1"

    assert "scope" not in structlog.contextvars.get_contextvars()


def test_persona_state_from_raw_values():
    assert PersonaState.from_value("3") is PersonaState.AWAY
    assert PersonaState.from_value(42) is PersonaState.OFFLINE
    assert PersonaState.from_value(None) is PersonaState.OFFLINE
