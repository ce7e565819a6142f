from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


def find_executable(name: str) -> Optional[str]:
    return shutil.which(name)


def quiet_run(argv: Sequence[str]) -> None:
    """Run a command to completion with stdio detached; raise on failure."""
    subprocess.run(
        list(argv),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        check=True,
    )


def quiet_popen(argv: Sequence[str], detached: bool = False) -> subprocess.Popen:
    """Start a command with stdio detached and return without waiting.

    With ``detached`` the child is placed in its own session so it survives
    the parent and its shell job control.
    """
    return subprocess.Popen(
        list(argv),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=detached,
    )


def kill_and_reap(process: subprocess.Popen) -> None:
    if process.poll() is None:
        try:
            process.kill()
        except OSError:
            logger.debug("Process %s already gone", process.pid)
    process.wait()
