from datetime import timedelta

import pytest

from invocation import (
    USAGE_TEXT,
    DurationMustBeNonNegativeError,
    InvalidDurationError,
    InvocationMode,
    UnknownOptionError,
    UsageError,
    expand_short_flags,
    parse_invocation,
    render_help_text,
)


def _parse(*args):
    return parse_invocation(["timer", *args])


def test_no_arguments_is_usage_error():
    with pytest.raises(UsageError):
        parse_invocation(["timer"])
    with pytest.raises(UsageError):
        parse_invocation([])


def test_duration_invocation():
    result = _parse("10s")
    assert result.mode is InvocationMode.RUN
    assert result.duration == timedelta(seconds=10)
    assert not result.quiet
    assert not result.force_alarm
    assert not result.force_awake


def test_zero_duration_is_valid():
    result = _parse("0s")
    assert result.mode is InvocationMode.RUN
    assert result.duration == timedelta(0)


@pytest.mark.parametrize(
    "args, quiet, alarm, awake",
    [
        (["-q", "1s"], True, False, False),
        (["--quiet", "1s"], True, False, False),
        (["1s", "-q"], True, False, False),
        (["-s", "1s"], False, True, False),
        (["--sound", "--quiet", "1s"], True, True, False),
        (["-c", "1s"], False, False, True),
        (["--caffeinate", "-q", "1s"], True, False, True),
    ],
)
def test_flags_with_duration(args, quiet, alarm, awake):
    result = _parse(*args)
    assert result.mode is InvocationMode.RUN
    assert result.duration == timedelta(seconds=1)
    assert result.quiet is quiet
    assert result.force_alarm is alarm
    assert result.force_awake is awake


def test_combined_short_flags():
    result = _parse("-qsc", "5m")
    assert result.duration == timedelta(minutes=5)
    assert result.quiet and result.force_alarm and result.force_awake


def test_combined_short_flags_with_unknown_letter_is_unknown_option():
    with pytest.raises(UnknownOptionError) as excinfo:
        _parse("-qx", "5m")
    assert excinfo.value.option == "-qx"


def test_expand_short_flags_stops_at_terminator():
    assert list(expand_short_flags(["-qs", "--", "-qs"])) == ["-q", "-s", "--", "-qs"]


def test_help_wins_over_version_and_duration():
    assert _parse("--help", "10s").mode is InvocationMode.HELP
    assert _parse("--version", "-h").mode is InvocationMode.HELP
    assert _parse("-q", "--help").mode is InvocationMode.HELP


def test_version_keeps_parsed_flags():
    result = _parse("--version", "-s", "-q", "--caffeinate", "10s")
    assert result.mode is InvocationMode.VERSION
    assert result.quiet and result.force_alarm and result.force_awake


@pytest.mark.parametrize(
    "args",
    [
        ["--wat", "10s"],
        ["--help", "--wat"],
        ["--wat", "--help"],
        ["--version", "--wat"],
        ["-q", "--wat", "-s", "1s"],
    ],
)
def test_unknown_option_beats_everything(args):
    with pytest.raises(UnknownOptionError) as excinfo:
        _parse(*args)
    assert excinfo.value.option == "--wat"


def test_only_first_unknown_option_is_reported():
    with pytest.raises(UnknownOptionError) as excinfo:
        _parse("-x", "--other", "1s")
    assert excinfo.value.option == "-x"


def test_negative_duration_is_not_an_unknown_option():
    with pytest.raises(DurationMustBeNonNegativeError):
        _parse("-1s")
    with pytest.raises(DurationMustBeNonNegativeError):
        _parse("-q", "-.5m")


@pytest.mark.parametrize("args", [["-q"], ["--sound"], ["-c"], ["--"], ["-q", "--"]])
def test_flags_without_duration_are_usage_errors(args):
    with pytest.raises(UsageError):
        _parse(*args)


def test_two_duration_tokens_is_usage_error():
    with pytest.raises(UsageError):
        _parse("1s", "2s")


def test_invalid_duration():
    with pytest.raises(InvalidDurationError):
        _parse("soon")


def test_terminator_makes_following_tokens_positional():
    with pytest.raises(InvalidDurationError):
        _parse("--", "-q")
    with pytest.raises(DurationMustBeNonNegativeError):
        _parse("--", "-1s")
    result = _parse("-s", "--", "90s")
    assert result.duration == timedelta(seconds=90)
    assert result.force_alarm


def test_flags_after_terminator_are_not_recognized():
    with pytest.raises(UsageError):
        _parse("--", "1s", "-q")


def test_help_text_lists_every_flag():
    expected = (
        USAGE_TEXT
        + "\n\nFlags:\n"
        + "  -h, --help       Show help and exit\n"
        + "  -v, --version    Show version and exit\n"
        + "  -q, --quiet      TTY: inline countdown only; non-TTY: suppress lifecycle/completion/cancel/alarm\n"
        + "  -s, --sound      Force alarm playback on completion even in quiet/non-TTY mode\n"
        + "  -c, --caffeinate Force sleep inhibition attempt even in non-TTY mode (darwin only)"
    )
    assert render_help_text() == expected


def test_help_keeps_parsed_flags():
    result = _parse("-qs", "--caffeinate", "--help")
    assert result.mode is InvocationMode.HELP
    assert result.quiet and result.force_alarm and result.force_awake
