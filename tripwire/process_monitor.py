"""
process_monitor.py — Process inspection helpers for tripwire.

The whole point of the watchdog is that the kill script runs with the
privileges of whoever started it, so the CLI logs that identity at startup
and the trigger handler logs the kill process it spawned.  These are thin
wrappers around ``psutil``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List

import psutil

logger = logging.getLogger(__name__)


@dataclass
class ProcessInfo:
    """Snapshot of a running process."""

    pid: int
    name: str = ""
    exe: str = ""
    cmdline: List[str] = field(default_factory=list)
    username: str = ""
    status: str = ""


def get_process_info(pid: int) -> ProcessInfo | None:
    """Return a :class:`ProcessInfo` for the given PID, or ``None``.

    Fields psutil is not allowed to read are left empty; ``None`` is
    returned only if the process doesn't exist (or is gone already).
    """
    try:
        proc = psutil.Process(pid)
        with proc.oneshot():
            info = ProcessInfo(pid=proc.pid, name=proc.name(), status=proc.status())
            try:
                info.username = proc.username()
                info.exe = proc.exe()
                info.cmdline = proc.cmdline()
            except psutil.AccessDenied as exc:
                logger.debug("Partial info for pid %d: %s", pid, exc)
        return info
    except (psutil.NoSuchProcess, psutil.ZombieProcess) as exc:
        logger.debug("Cannot inspect pid %d: %s", pid, exc)
        return None
    except psutil.AccessDenied as exc:
        logger.warning("Cannot inspect pid %d: %s", pid, exc)
        return None


def current_process_info() -> ProcessInfo | None:
    """:class:`ProcessInfo` for the watchdog process itself."""
    return get_process_info(os.getpid())


def describe(info: ProcessInfo | None) -> str:
    """Short one-line description for log messages."""
    if info is None:
        return "unknown process"
    user = info.username or "?"
    return f"pid={info.pid} user={user} ({info.name})"
