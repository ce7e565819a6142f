from __future__ import annotations

import logging
import math
import signal
import subprocess
import threading
import time
from datetime import timedelta
from enum import Enum
from typing import Callable, Optional

from invocation import format_duration
from proc_utils import kill_and_reap, quiet_popen
from terminal import StatusDisplay

logger = logging.getLogger(__name__)

TICK_SECONDS = 0.5
SLEEP_INHIBITOR_PLATFORM = "darwin"
SLEEP_INHIBITOR_ARGV = ("caffeinate", "-i")


class TimerState(Enum):
    STARTING = "starting"
    COUNTING = "counting"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SignalCause(Exception):
    """Cancellation produced by an OS signal (or an unknown source)."""

    def __init__(self, signum: Optional[int] = None) -> None:
        self.signum = signum
        if signum is None:
            super().__init__("cancelled")
        else:
            super().__init__(f"cancelled by signal {_signal_name(signum)}")


class TimerCancelled(Exception):
    pass


class Cancellation:
    """One-shot cancellation handle; only the first cause is kept."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._cause: Optional[BaseException] = None

    def cancel(self, cause: Optional[BaseException] = None) -> None:
        if self._event.is_set():
            return
        self._cause = cause if cause is not None else SignalCause()
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def cause(self) -> Optional[BaseException]:
        return self._cause

    def wait(self, timeout: Optional[float]) -> bool:
        if timeout is not None:
            timeout = min(timeout, threading.TIMEOUT_MAX)
        return self._event.wait(timeout)


class SleepInhibitor:
    """Keeps the machine awake through ``caffeinate`` for the timer's lifetime."""

    def __init__(self, argv=SLEEP_INHIBITOR_ARGV) -> None:
        self.argv = list(argv)
        self._process: Optional[subprocess.Popen] = None

    @property
    def running(self) -> bool:
        return self._process is not None

    def start(self) -> bool:
        try:
            self._process = quiet_popen(self.argv)
        except OSError as exc:
            logger.debug("Sleep inhibitor %s failed to start: %s", self.argv[0], exc)
            self._process = None
            return False
        logger.debug("Sleep inhibitor started pid=%s", self._process.pid)
        return True

    def stop(self) -> None:
        if self._process is None:
            return
        kill_and_reap(self._process)
        logger.debug("Sleep inhibitor stopped")
        self._process = None


def should_start_sleep_inhibitor(platform_name: str, streams_interactive: bool, force_awake: bool) -> bool:
    return platform_name == SLEEP_INHIBITOR_PLATFORM and (streams_interactive or force_awake)


def should_trigger_alarm(streams_interactive: bool, quiet: bool, force_alarm: bool) -> bool:
    return force_alarm or (streams_interactive and not quiet)


def should_print_lifecycle_start(interactive: bool, quiet: bool) -> bool:
    return not interactive and not quiet


def format_remaining_time(remaining_seconds: float) -> str:
    """HH:MM:SS rounded up, so 0.2s left still shows 00:00:01."""
    total = max(0, math.ceil(remaining_seconds))
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def render_interactive_countdown(status: StatusDisplay, time_str: str, quiet: bool) -> None:
    if status.supports_advanced:
        if quiet:
            status.write(f"\r\033[K{time_str}")
            return
        # OSC 0 sets the window title (BEL terminated), then redraw the line
        status.write(f"\033]0;{time_str}\007\r\033[K{time_str}")
        return
    status.write(f"\r{time_str}")


def clear_interactive_status_line(status: StatusDisplay) -> None:
    if not status.interactive:
        return
    if status.supports_advanced:
        status.write("\r\033[K")
        return
    status.write("\r")


def print_complete(status: StatusDisplay, quiet: bool) -> None:
    _print_outcome(status, quiet, "timer complete", "timer: complete")


def print_cancelled(status: StatusDisplay, quiet: bool) -> None:
    _print_outcome(status, quiet, "timer cancelled", "timer: cancelled")


def _print_outcome(status: StatusDisplay, quiet: bool, interactive_text: str, lifecycle_text: str) -> None:
    clear_interactive_status_line(status)
    if quiet:
        return
    if status.interactive:
        status.write(interactive_text + "\n")
        return
    status.write(lifecycle_text + "\n")


class CountdownTimer:
    def __init__(
        self,
        duration: timedelta,
        status: StatusDisplay,
        side_effects_interactive: bool,
        quiet: bool = False,
        force_alarm: bool = False,
        force_awake: bool = False,
        alarm_starter: Optional[Callable[[], None]] = None,
        platform_name: str = "",
        inhibitor_factory: Callable[[], SleepInhibitor] = SleepInhibitor,
        clock: Callable[[], float] = time.monotonic,
        tick_seconds: float = TICK_SECONDS,
    ):
        self.duration = duration
        self.status = status
        self.side_effects_interactive = side_effects_interactive
        self.quiet = quiet
        self.force_alarm = force_alarm
        self.force_awake = force_awake
        self.alarm_starter = alarm_starter
        self.platform_name = platform_name
        self.inhibitor_factory = inhibitor_factory
        self.clock = clock
        self.tick_seconds = tick_seconds
        self.state = TimerState.STARTING

    @property
    def streams_interactive(self) -> bool:
        return self.side_effects_interactive and self.status.interactive

    def run(self, cancellation: Cancellation) -> None:
        """Count down until the deadline or until cancellation.

        Raises TimerCancelled (chained to the cancellation cause) when cancelled.
        """
        if self.state is not TimerState.STARTING:
            raise RuntimeError(f"timer already ran (state={self.state.value})")

        inhibitor: Optional[SleepInhibitor] = None
        if should_start_sleep_inhibitor(self.platform_name, self.streams_interactive, self.force_awake):
            inhibitor = self.inhibitor_factory()
            if not inhibitor.start():
                inhibitor = None
        try:
            self._count(cancellation)
        finally:
            if inhibitor is not None:
                inhibitor.stop()

    def _count(self, cancellation: Cancellation) -> None:
        seconds = self.duration.total_seconds()
        deadline = self.clock() + seconds
        next_tick = None
        if self.status.interactive:
            next_tick = self.clock() + self.tick_seconds

        if should_print_lifecycle_start(self.status.interactive, self.quiet) and not cancellation.cancelled:
            self.status.write(f"timer: started ({format_duration(self.duration)})\n")

        self.state = TimerState.COUNTING
        while True:
            now = self.clock()
            wake_at = deadline if next_tick is None else min(deadline, next_tick)
            if cancellation.wait(max(0.0, wake_at - now)):
                self._cancel(cancellation)

            now = self.clock()
            if now >= deadline:
                self._complete()
                return
            if next_tick is not None and now >= next_tick:
                while next_tick <= now:
                    # missed ticks are dropped, not replayed
                    next_tick += self.tick_seconds
                remaining = deadline - now
                # the deadline is authoritative; a late tick never completes
                if remaining > 0:
                    render_interactive_countdown(self.status, format_remaining_time(remaining), self.quiet)

    def _cancel(self, cancellation: Cancellation) -> None:
        print_cancelled(self.status, self.quiet)
        self.state = TimerState.CANCELLED
        cause = cancellation.cause
        raise TimerCancelled(str(cause)) from cause

    def _complete(self) -> None:
        print_complete(self.status, self.quiet)
        self.state = TimerState.COMPLETED
        if should_trigger_alarm(self.streams_interactive, self.quiet, self.force_alarm):
            if self.alarm_starter is not None:
                self.alarm_starter()


def run_timer(
    cancellation: Cancellation,
    duration: timedelta,
    status: StatusDisplay,
    side_effects_interactive: bool,
    quiet: bool,
    force_alarm: bool,
    force_awake: bool,
    alarm_starter: Callable[[], None],
    platform_name: str = "",
    tick_seconds: float = TICK_SECONDS,
) -> None:
    timer = CountdownTimer(
        duration,
        status,
        side_effects_interactive,
        quiet=quiet,
        force_alarm=force_alarm,
        force_awake=force_awake,
        alarm_starter=alarm_starter,
        platform_name=platform_name,
        tick_seconds=tick_seconds,
    )
    timer.run(cancellation)


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return str(signum)
