import logging
import signal
import sys
from contextlib import contextmanager
from importlib import metadata
from typing import Iterator, List, Optional, Sequence, Tuple

from alarms import is_alarm_worker_invocation, run_alarm_worker, start_alarm_process
from config import load_config, setup_logging
from countdown import SLEEP_INHIBITOR_PLATFORM, Cancellation, SignalCause, TimerCancelled, run_timer
from invocation import (
    USAGE_TEXT,
    DurationMustBeNonNegativeError,
    InvalidDurationError,
    InvocationError,
    InvocationMode,
    UnknownOptionError,
    UsageError,
    parse_invocation,
    render_help_text,
)
from terminal import is_terminal, platform_name, stderr_status_display

logger = logging.getLogger("timer")

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130
EXIT_TERMINATED = 143

DISTRIBUTION_NAME = "countdown-timer"
DEFAULT_VERSION = "dev"

CANCEL_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def exit_code_for_cancel_error(err: Optional[BaseException]) -> int:
    """Map a cancellation error to 130/143, looking through wrapping exceptions."""
    seen = set()
    current = err
    while current is not None and id(current) not in seen:
        if isinstance(current, SignalCause):
            if current.signum == signal.SIGTERM:
                return EXIT_TERMINATED
            return EXIT_INTERRUPTED
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return EXIT_INTERRUPTED


def render_invocation_error(err: InvocationError) -> Tuple[str, int]:
    if isinstance(err, UnknownOptionError):
        return f"unknown option: {err.option}\n\n{render_help_text()}", EXIT_USAGE
    if isinstance(err, UsageError):
        return USAGE_TEXT, EXIT_USAGE
    if isinstance(err, InvalidDurationError):
        return "Error: invalid duration format", EXIT_USAGE
    if isinstance(err, DurationMustBeNonNegativeError):
        return "Error: duration must be >= 0", EXIT_USAGE
    return f"Error: {err}", EXIT_USAGE


def format_version_line(version: str) -> str:
    return f"timer {version}\n"


def installed_version() -> str:
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return ""


def resolve_version(package_version: str) -> str:
    return package_version or DEFAULT_VERSION


def awake_unsupported_warning() -> str:
    return (
        "Warning: --caffeinate sleep inhibition is only supported on darwin; "
        "continuing without sleep inhibition"
    )


@contextmanager
def signal_cancellation(cancellation: Cancellation) -> Iterator[Cancellation]:
    """Route SIGINT/SIGTERM into ``cancellation`` while the block runs."""

    def handle(signum, frame) -> None:
        logger.debug("Received signal %s", signum)
        cancellation.cancel(SignalCause(signum))

    previous = {}
    for sig in CANCEL_SIGNALS:
        previous[sig] = signal.signal(sig, handle)
    try:
        yield cancellation
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args: List[str] = list(sys.argv if argv is None else argv)
    config = load_config()
    setup_logging(config.log_level, config.log_file)

    if is_alarm_worker_invocation(args):
        played = run_alarm_worker(config.alarm_attempts, config.alarm_interval_seconds)
        logger.debug("Alarm worker finished (%s rounds played)", played)
        return EXIT_OK

    try:
        invocation = parse_invocation(args)
    except InvocationError as exc:
        message, exit_code = render_invocation_error(exc)
        print(message, file=sys.stderr)
        return exit_code

    if invocation.mode is InvocationMode.HELP:
        print(render_help_text())
        return EXIT_OK
    if invocation.mode is InvocationMode.VERSION:
        sys.stdout.write(format_version_line(resolve_version(installed_version())))
        return EXIT_OK

    platform = platform_name()
    if invocation.force_awake and platform != SLEEP_INHIBITOR_PLATFORM:
        print(awake_unsupported_warning(), file=sys.stderr)

    status = stderr_status_display()
    side_effects_interactive = is_terminal(sys.stdout)
    logger.debug(
        "Starting timer duration=%s status_tty=%s stdout_tty=%s",
        invocation.duration,
        status.interactive,
        side_effects_interactive,
    )

    with signal_cancellation(Cancellation()) as cancellation:
        try:
            run_timer(
                cancellation,
                invocation.duration,
                status,
                side_effects_interactive,
                invocation.quiet,
                invocation.force_alarm,
                invocation.force_awake,
                alarm_starter=start_alarm_process,
                platform_name=platform,
                tick_seconds=config.tick_seconds,
            )
        except TimerCancelled as exc:
            return exit_code_for_cancel_error(exc)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
