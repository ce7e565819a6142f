from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Sequence

USAGE_TEXT = (
    "Usage: timer [flags] [--] <duration>\n"
    "Examples: timer 30s, timer 10m, timer 1.5h, timer 1h2m3s"
)

TERMINATOR = "--"

_NUMBER_UNIT = re.compile(r"([0-9]+\.?[0-9]*|\.[0-9]+)(ns|us|µs|μs|ms|s|m|h)")

_UNIT_NANOSECONDS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,  # U+00B5 micro sign
    "μs": 1_000,  # U+03BC greek mu
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

_MAX_NANOSECONDS = 2**63 - 1
_MAX_WHOLE_DIGITS = len(str(_MAX_NANOSECONDS))
_MAX_FRACTION_DIGITS = 18
_MICROSECOND = timedelta(microseconds=1)


class InvocationError(ValueError):
    """Base class for command line errors; all of them are fatal."""


class UsageError(InvocationError):
    def __init__(self) -> None:
        super().__init__("usage")


class UnknownOptionError(InvocationError):
    def __init__(self, option: str) -> None:
        super().__init__(f"unknown option: {option}")
        self.option = option


class InvalidDurationError(InvocationError):
    def __init__(self, token: str = "") -> None:
        super().__init__("invalid duration format")
        self.token = token


class DurationMustBeNonNegativeError(InvocationError):
    def __init__(self, token: str = "") -> None:
        super().__init__("duration must be >= 0")
        self.token = token


class InvocationMode(Enum):
    RUN = "run"
    HELP = "help"
    VERSION = "version"


@dataclass(frozen=True)
class CliFlag:
    short: str
    long: str
    description: str
    intent: str


CLI_FLAGS = (
    CliFlag("-h", "--help", "Show help and exit", "help"),
    CliFlag("-v", "--version", "Show version and exit", "version"),
    CliFlag(
        "-q",
        "--quiet",
        "TTY: inline countdown only; non-TTY: suppress lifecycle/completion/cancel/alarm",
        "quiet",
    ),
    CliFlag("-s", "--sound", "Force alarm playback on completion even in quiet/non-TTY mode", "force_alarm"),
    CliFlag(
        "-c",
        "--caffeinate",
        "Force sleep inhibition attempt even in non-TTY mode (darwin only)",
        "force_awake",
    ),
)

_FLAG_INTENTS = {}
for _flag in CLI_FLAGS:
    if _flag.short:
        _FLAG_INTENTS[_flag.short] = _flag.intent
    _FLAG_INTENTS[_flag.long] = _flag.intent

_SHORT_LETTERS = frozenset(flag.short[1:] for flag in CLI_FLAGS if flag.short)


@dataclass(frozen=True)
class Invocation:
    mode: InvocationMode
    duration: timedelta = timedelta(0)
    quiet: bool = False
    force_alarm: bool = False
    force_awake: bool = False


def parse_invocation(args: Sequence[str]) -> Invocation:
    """Resolve an argument vector (program name first) into an Invocation.

    Precedence: an unknown option beats everything, then help, then version.
    Run mode needs exactly one duration token.
    """
    if len(args) <= 1:
        raise UsageError()

    intents = set()
    first_unknown: Optional[str] = None
    duration_token: Optional[str] = None
    terminated = False

    for arg in expand_short_flags(args[1:]):
        if not terminated:
            if arg == TERMINATOR:
                terminated = True
                continue
            intent = _FLAG_INTENTS.get(arg)
            if intent is not None:
                intents.add(intent)
                continue
            if arg.startswith("-") and not looks_like_negative_duration(arg):
                if first_unknown is None:
                    first_unknown = arg
                continue

        if duration_token is not None:
            raise UsageError()
        duration_token = arg

    if first_unknown is not None:
        raise UnknownOptionError(first_unknown)

    flags = dict(
        quiet="quiet" in intents,
        force_alarm="force_alarm" in intents,
        force_awake="force_awake" in intents,
    )
    if "help" in intents:
        return Invocation(mode=InvocationMode.HELP, **flags)
    if "version" in intents:
        return Invocation(mode=InvocationMode.VERSION, **flags)
    if duration_token is None:
        raise UsageError()

    return Invocation(mode=InvocationMode.RUN, duration=parse_duration(duration_token), **flags)


def expand_short_flags(tokens: Iterable[str]) -> Iterator[str]:
    """Split clusters like ``-qs`` into ``-q -s``; stops at the terminator."""
    terminated = False
    for token in tokens:
        if terminated:
            yield token
            continue
        if token == TERMINATOR:
            terminated = True
            yield token
            continue
        if _is_short_cluster(token):
            for letter in token[1:]:
                yield "-" + letter
            continue
        yield token


def _is_short_cluster(token: str) -> bool:
    if len(token) <= 2 or not token.startswith("-") or token.startswith("--"):
        return False
    if looks_like_negative_duration(token):
        return False
    return all(letter in _SHORT_LETTERS for letter in token[1:])


def looks_like_negative_duration(arg: str) -> bool:
    """``-1s`` and ``-.5m`` go to duration validation, not flag matching."""
    if len(arg) < 2 or arg[0] != "-":
        return False
    return arg[1].isdigit() or arg[1] == "."


def parse_duration(token: str) -> timedelta:
    nanoseconds = parse_duration_nanoseconds(token)
    if nanoseconds < 0:
        raise DurationMustBeNonNegativeError(token)
    return timedelta(microseconds=nanoseconds // 1000)


def parse_duration_nanoseconds(token: str) -> int:
    """Parse compound unit strings such as ``1h2m3.5s`` into signed nanoseconds."""
    body = token
    negative = False
    if body and body[0] in "+-":
        negative = body[0] == "-"
        body = body[1:]

    if body == "0":
        return 0
    if not body:
        raise InvalidDurationError(token)

    total = 0
    pos = 0
    while pos < len(body):
        match = _NUMBER_UNIT.match(body, pos)
        if not match:
            raise InvalidDurationError(token)
        try:
            total += _scaled(match.group(1), _UNIT_NANOSECONDS[match.group(2)])
        except OverflowError as exc:
            raise InvalidDurationError(token) from exc
        if total > _MAX_NANOSECONDS:
            raise InvalidDurationError(token)
        pos = match.end()

    return -total if negative else total


def _scaled(number: str, unit: int) -> int:
    whole, _, fraction = number.partition(".")
    whole = whole.lstrip("0")
    if len(whole) > _MAX_WHOLE_DIGITS:
        raise OverflowError(number)
    value = int(whole or "0") * unit
    # fraction digits past nanosecond precision are dropped
    fraction = fraction[:_MAX_FRACTION_DIGITS]
    if fraction:
        value += int(fraction) * unit // 10 ** len(fraction)
    return value


def format_duration(value: timedelta) -> str:
    """Compact unit rendering: 0s, 500ms, 1.5s, 1m30s, 1h0m0s."""
    nanoseconds = (value // _MICROSECOND) * 1000
    if nanoseconds < 0:
        return "-" + format_duration(-value)
    if nanoseconds == 0:
        return "0s"
    if nanoseconds < 1_000:
        return f"{nanoseconds}ns"
    if nanoseconds < 1_000_000:
        return _with_fraction(nanoseconds, 1_000) + "µs"
    if nanoseconds < 1_000_000_000:
        return _with_fraction(nanoseconds, 1_000_000) + "ms"

    hours, rest = divmod(nanoseconds, _UNIT_NANOSECONDS["h"])
    minutes, rest = divmod(rest, _UNIT_NANOSECONDS["m"])
    parts: List[str] = []
    if hours:
        parts.append(f"{hours}h")
    if hours or minutes:
        parts.append(f"{minutes}m")
    parts.append(_with_fraction(rest, _UNIT_NANOSECONDS["s"]) + "s")
    return "".join(parts)


def _with_fraction(value: int, unit: int) -> str:
    whole, fraction = divmod(value, unit)
    if not fraction:
        return str(whole)
    digits = str(fraction).rjust(len(str(unit)) - 1, "0").rstrip("0")
    return f"{whole}.{digits}"


def render_help_text() -> str:
    lines = [USAGE_TEXT, "", "Flags:"]
    for flag in CLI_FLAGS:
        label = f"{flag.short}, {flag.long}" if flag.short else f"    {flag.long}"
        lines.append(f"  {label:<17}{flag.description}")
    return "\n".join(lines)
