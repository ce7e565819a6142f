from __future__ import annotations

import logging
import os
import sys
import tempfile
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from proc_utils import quiet_popen
from terminal import platform_name as current_platform

from .commands import AlarmCommand, resolve_alarm_commands, run_alarm_command, uses_tone_file
from .sounds import write_alarm_tone

logger = logging.getLogger(__name__)

ALARM_WORKER_SENTINEL = "--internal-alarm-worker"
ALARM_WORKER_MODULE = "timer_cli"
DEFAULT_ATTEMPTS = 4
DEFAULT_INTERVAL_SECONDS = 0.1

Runner = Callable[[AlarmCommand], None]


def is_alarm_worker_invocation(args: Sequence[str]) -> bool:
    """True only for ``<prog> <sentinel>`` with nothing else on the line."""
    return len(args) == 2 and args[1] == ALARM_WORKER_SENTINEL


def play_alarm_attempts(
    commands: Sequence[AlarmCommand],
    attempts: int,
    interval: float,
    runner: Runner,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Play up to ``attempts`` rounds, dropping every backend that fails.

    ``interval`` is the pause after each played round, not between start
    times. Returns the number of rounds that produced sound.
    """
    remaining = list(commands)
    played = 0
    for _ in range(attempts):
        command, remaining = _play_round(remaining, runner)
        if command is None:
            break
        played += 1
        sleep(interval)
    return played


def _play_round(
    commands: List[AlarmCommand], runner: Runner
) -> Tuple[Optional[AlarmCommand], List[AlarmCommand]]:
    # everything before the first working backend failed, so the next round
    # starts from the backend that just played
    for index, command in enumerate(commands):
        try:
            runner(command)
        except Exception as exc:
            logger.debug("Alarm backend %s failed: %s", command.name, exc)
            continue
        return command, commands[index:]
    return None, []


def run_alarm_worker(
    attempts: int = DEFAULT_ATTEMPTS,
    interval: float = DEFAULT_INTERVAL_SECONDS,
    platform_name: Optional[str] = None,
    runner: Runner = run_alarm_command,
) -> int:
    platform_name = platform_name or current_platform()
    with tempfile.TemporaryDirectory(prefix="timer-alarm-") as tmp:
        tone_path = Path(tmp) / "alarm.wav"
        commands = resolve_alarm_commands(platform_name, tone_path=tone_path)
        if uses_tone_file(commands, tone_path):
            write_alarm_tone(tone_path)
        logger.debug("Alarm backends for %s: %s", platform_name, [c.name for c in commands])
        return play_alarm_attempts(commands, attempts, interval, runner)


def alarm_worker_argv(script: Optional[str] = None) -> List[str]:
    """Command line that re-runs this program in alarm worker mode.

    A script launched by path is re-run by path so the worker does not depend
    on the current directory; otherwise the module is run with ``-m``.
    """
    script = sys.argv[0] if script is None else script
    if script and script.endswith(".py") and os.path.isfile(script):
        return [sys.executable, os.path.abspath(script), ALARM_WORKER_SENTINEL]
    return [sys.executable, "-m", ALARM_WORKER_MODULE, ALARM_WORKER_SENTINEL]


def start_alarm_process() -> None:
    """Re-launch this program as a detached alarm worker and return at once.

    Playback is best-effort; a failed spawn is only logged.
    """
    argv = alarm_worker_argv()
    try:
        process = quiet_popen(argv, detached=True)
    except OSError as exc:
        logger.debug("Failed to start alarm worker %s: %s", argv, exc)
        return
    logger.debug("Started alarm worker pid=%s", process.pid)
