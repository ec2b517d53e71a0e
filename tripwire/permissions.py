"""
permissions.py — Least-privilege permission handling for tripwire.

The trigger file and any directories created for it are restricted to the
owner and group of the watchdog process.  On POSIX systems the exact mode
bits are applied; elsewhere only the generic read/write flags the platform
offers are set.

The strategy is chosen once, at import time, by :func:`select_strategy`.
"""

from __future__ import annotations

import os
import stat

# rw-rw----
TRIGGER_FILE_MODE = 0o660
# rwxrwx---
TRIGGER_DIR_MODE = 0o770


class PermissionStrategy:
    """Applies the restrictive modes to freshly created paths."""

    name = "generic"
    file_mode = TRIGGER_FILE_MODE
    dir_mode = TRIGGER_DIR_MODE

    def apply_file(self, path: str) -> None:
        raise NotImplementedError

    def apply_directory(self, path: str) -> None:
        raise NotImplementedError


class PosixPermissions(PermissionStrategy):
    """Sets the exact owner/group mode bits with ``chmod``."""

    name = "posix"

    def apply_file(self, path: str) -> None:
        os.chmod(path, TRIGGER_FILE_MODE)

    def apply_directory(self, path: str) -> None:
        os.chmod(path, TRIGGER_DIR_MODE)


class BasicPermissions(PermissionStrategy):
    """Fallback for platforms without owner/group permission bits.

    Windows only honours the read-only flag, so the best we can do is make
    sure the path is readable and writable.  Directories are always
    traversable there.
    """

    name = "basic"

    def apply_file(self, path: str) -> None:
        os.chmod(path, stat.S_IREAD | stat.S_IWRITE)

    def apply_directory(self, path: str) -> None:
        os.chmod(path, stat.S_IREAD | stat.S_IWRITE | stat.S_IEXEC)


def select_strategy(os_name: str | None = None) -> PermissionStrategy:
    """Return the permission strategy for *os_name* (default: this host)."""
    if (os_name or os.name) == "posix":
        return PosixPermissions()
    return BasicPermissions()


PERMISSIONS: PermissionStrategy = select_strategy()
