from __future__ import annotations

import os
import platform
import sys
from dataclasses import dataclass
from typing import Optional, TextIO


@dataclass
class StatusDisplay:
    stream: TextIO
    interactive: bool
    supports_advanced: bool

    def write(self, text: str) -> None:
        self.stream.write(text)
        self.stream.flush()


def is_terminal(stream: TextIO) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        # closed or replaced stream
        return False


def supports_advanced_terminal(term_name: Optional[str]) -> bool:
    normalized = (term_name or "").strip().lower()
    return normalized not in ("", "dumb")


def platform_name() -> str:
    """Lowercase OS identifier: darwin, linux, freebsd, windows, ..."""
    return platform.system().lower()


def stderr_status_display() -> StatusDisplay:
    return StatusDisplay(
        stream=sys.stderr,
        interactive=is_terminal(sys.stderr),
        supports_advanced=supports_advanced_terminal(os.getenv("TERM")),
    )
