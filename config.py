import logging
import logging.handlers
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _get_env_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip() in {"1", "true", "True", "yes", "YES", "y"}


def _get_env_int(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None or val == "":
        return default
    try:
        return int(val)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer") from exc


@dataclass
class Config:
    log_level: str
    debug: bool
    log_file: Optional[Path]
    alarm_attempts: int
    alarm_interval_ms: int
    tick_ms: int

    @property
    def alarm_interval_seconds(self) -> float:
        return self.alarm_interval_ms / 1000.0

    @property
    def tick_seconds(self) -> float:
        return self.tick_ms / 1000.0


def load_config() -> Config:
    debug = _get_env_bool("TIMER_DEBUG", False)
    log_level = "DEBUG" if debug else os.getenv("TIMER_LOG_LEVEL", "WARNING").upper()

    log_file_env = os.getenv("TIMER_LOG_FILE")
    log_file = Path(log_file_env) if log_file_env else None

    alarm_attempts = max(1, _get_env_int("TIMER_ALARM_ATTEMPTS", 4))
    alarm_interval_ms = max(0, _get_env_int("TIMER_ALARM_INTERVAL_MS", 100))
    tick_ms = max(50, _get_env_int("TIMER_TICK_MS", 500))

    return Config(
        log_level=log_level,
        debug=debug,
        log_file=log_file,
        alarm_attempts=alarm_attempts,
        alarm_interval_ms=alarm_interval_ms,
        tick_ms=tick_ms,
    )


def setup_logging(log_level: str = "WARNING", log_file: Optional[Path] = None) -> None:
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    handlers = [console_handler]

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, log_level, logging.WARNING),
        handlers=handlers,
    )
