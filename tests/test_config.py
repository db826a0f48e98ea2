from market_context.config import (
    CONTEXT_TIMEOUT_MARGIN, Settings, is_placeholder_key,
)


def test_orchestrator_timeout_exceeds_provider_timeout():
    settings = Settings(provider_timeout=10, context_timeout=10)
    assert settings.orchestrator_timeout == 10 + CONTEXT_TIMEOUT_MARGIN
    assert settings.orchestrator_timeout > settings.provider_timeout


def test_orchestrator_timeout_honours_larger_setting():
    assert Settings(provider_timeout=5, context_timeout=30).orchestrator_timeout == 30


def test_from_env_reads_timeouts(monkeypatch):
    monkeypatch.setenv("PROVIDER_TIMEOUT", "4")
    monkeypatch.setenv("CONTEXT_TIMEOUT", "9")
    monkeypatch.setenv("ENABLE_SCHEDULER", "false")
    settings = Settings.from_env(dotenv=False)

    assert settings.provider_timeout == 4.0
    assert settings.context_timeout == 9.0
    assert settings.enable_scheduler is False


def test_placeholder_keys():
    assert is_placeholder_key("")
    assert is_placeholder_key("test_key")
    assert is_placeholder_key("your_fred_api_key_here")
    assert not is_placeholder_key("c18ec6200f048fa6")


def test_missing_credentials_are_counted():
    assert Settings(fred_api_key="abc123").warn_missing_credentials() == 2
