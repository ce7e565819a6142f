"""Alarm subsystem for the countdown timer."""

from .commands import AlarmCommand, alarm_candidates, resolve_alarm_commands, run_alarm_command
from .player import (
    ALARM_WORKER_SENTINEL,
    is_alarm_worker_invocation,
    play_alarm_attempts,
    run_alarm_worker,
    start_alarm_process,
)
