from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from proc_utils import find_executable, quiet_run

logger = logging.getLogger(__name__)

DARWIN_ALERT_SOUND = "/System/Library/Sounds/Submarine.aiff"


@dataclass(frozen=True)
class AlarmCommand:
    name: str
    args: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def argv(self) -> List[str]:
        return [self.name, *self.args]


def alarm_candidates(platform_name: str, tone_path: Optional[Path] = None) -> List[AlarmCommand]:
    """Ordered backends for a platform, most preferred first.

    Tone-file players are listed only when a generated tone is available.
    """
    if platform_name == "darwin":
        return [AlarmCommand("afplay", (DARWIN_ALERT_SOUND,))]
    if platform_name == "linux":
        candidates = [
            AlarmCommand("canberra-gtk-play", ("-i", "bell")),
            AlarmCommand(
                "timeout",
                ("0.15s", "speaker-test", "-t", "sine", "-f", "1200", "-c", "1", "-s", "1"),
            ),
        ]
        if tone_path is not None:
            candidates.append(AlarmCommand("paplay", (str(tone_path),)))
            candidates.append(AlarmCommand("aplay", ("-q", str(tone_path))))
        return candidates
    if platform_name == "freebsd":
        return [
            AlarmCommand("beep"),
            AlarmCommand("canberra-gtk-play", ("-i", "bell")),
        ]
    if platform_name in ("openbsd", "netbsd"):
        return [AlarmCommand("beep")]
    if platform_name == "windows":
        return [AlarmCommand("powershell", ("-NoProfile", "-Command", "[console]::beep(1200,150)"))]
    return []


def resolve_alarm_commands(
    platform_name: str,
    tone_path: Optional[Path] = None,
    which: Callable[[str], Optional[str]] = find_executable,
) -> List[AlarmCommand]:
    commands = []
    for candidate in alarm_candidates(platform_name, tone_path):
        if which(candidate.name):
            commands.append(candidate)
        else:
            logger.debug("Alarm backend %s not found on PATH", candidate.name)
    return commands


def run_alarm_command(command: AlarmCommand) -> None:
    quiet_run(command.argv)


def uses_tone_file(commands: List[AlarmCommand], tone_path: Path) -> bool:
    return any(str(tone_path) in command.args for command in commands)
