import pytest

from config import load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "TIMER_DEBUG",
        "TIMER_LOG_LEVEL",
        "TIMER_LOG_FILE",
        "TIMER_ALARM_ATTEMPTS",
        "TIMER_ALARM_INTERVAL_MS",
        "TIMER_TICK_MS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = load_config()
    assert config.log_level == "WARNING"
    assert config.log_file is None
    assert config.alarm_attempts == 4
    assert config.alarm_interval_seconds == 0.1
    assert config.tick_seconds == 0.5


def test_debug_forces_debug_level(monkeypatch):
    monkeypatch.setenv("TIMER_DEBUG", "1")
    monkeypatch.setenv("TIMER_LOG_LEVEL", "error")
    assert load_config().log_level == "DEBUG"


def test_overrides_are_clamped(monkeypatch, tmp_path):
    monkeypatch.setenv("TIMER_ALARM_ATTEMPTS", "0")
    monkeypatch.setenv("TIMER_ALARM_INTERVAL_MS", "-5")
    monkeypatch.setenv("TIMER_TICK_MS", "10")
    monkeypatch.setenv("TIMER_LOG_FILE", str(tmp_path / "timer.log"))
    config = load_config()
    assert config.alarm_attempts == 1
    assert config.alarm_interval_ms == 0
    assert config.tick_ms == 50
    assert config.log_file == tmp_path / "timer.log"


def test_malformed_integer_names_the_variable(monkeypatch):
    monkeypatch.setenv("TIMER_ALARM_ATTEMPTS", "many")
    with pytest.raises(ValueError, match="TIMER_ALARM_ATTEMPTS"):
        load_config()
