"""
bootstrap.py — Path resolution and trigger-file bootstrapping for tripwire.

Turns the command-line paths into absolute, normalized ones, checks that
the kill script exists, and makes sure the trigger file and every missing
ancestor directory exist with owner/group-only permissions.

Public API
----------
resolve_and_prepare(trigger_path_arg, kill_script_path_arg)
    Validate both paths and create the trigger file if needed.
    Returns ``(trigger_path, kill_script_path)``.

ensure_directories(directory)
    Create *directory* and its missing ancestors (``rwxrwx---``).

create_trigger_file(path)
    Create the trigger file if missing and apply ``rw-rw----``.
"""

from __future__ import annotations

import logging
import os

from tripwire.permissions import PERMISSIONS, PermissionStrategy

logger = logging.getLogger(__name__)


class MissingArgumentError(ValueError):
    """No trigger file path was given."""


class KillScriptNotFoundError(FileNotFoundError):
    """The kill script is missing, so there is nothing to run on a trigger."""


def normalize_path(path: str) -> str:
    """Absolute, ``.``/``..``-free form of *path*.

    Symlinks are deliberately not resolved: the watched directory and the
    paths reported for deletions both go through this function, so they
    always compare consistently.
    """
    return os.path.abspath(os.fspath(path))


def ensure_directories(
    directory: str,
    permissions: PermissionStrategy = PERMISSIONS,
) -> list[str]:
    """Create *directory* and any missing ancestors, root to leaf.

    Directories that already exist are left untouched.  Returns the list of
    directories that were actually created.
    """
    missing: list[str] = []
    current = directory
    while not os.path.exists(current):
        missing.append(current)
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent

    if not missing:
        return []

    logger.info("Creating %s directory: %s", permissions.name, directory)
    created: list[str] = []
    for path in reversed(missing):
        try:
            os.mkdir(path, permissions.dir_mode)
        except FileExistsError:
            # Someone else got there first; don't touch their permissions.
            continue
        permissions.apply_directory(path)
        created.append(path)
    return created


def create_trigger_file(
    path: str,
    permissions: PermissionStrategy = PERMISSIONS,
) -> str:
    """Create an empty trigger file at *path* and apply ``rw-rw----``.

    The mode is applied even when the file already exists, so a trigger
    file recreated by someone else during a kill run is locked down again.
    """
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, permissions.file_mode)
    except FileExistsError:
        pass
    else:
        os.close(fd)
    # os.open() is subject to the umask
    permissions.apply_file(path)
    return path


def prepare_trigger_file(
    trigger_path: str,
    permissions: PermissionStrategy = PERMISSIONS,
) -> bool:
    """Create the trigger file (and its directories) if it does not exist.

    An already existing trigger file is left exactly as it is.  Failures are
    logged and swallowed: the watch registration will fail on its own if the
    directory really could not be created.

    Returns ``True`` if the trigger file exists afterwards.
    """
    if os.path.exists(trigger_path):
        logger.debug("Monitor file already exists: %s", trigger_path)
        return True

    logger.info("Creating monitor file")
    try:
        ensure_directories(os.path.dirname(trigger_path), permissions)
        create_trigger_file(trigger_path, permissions)
    except (OSError, NotImplementedError) as exc:
        logger.error("Couldn't create monitor file: %s", exc)
        return False
    return True


def resolve_and_prepare(
    trigger_path_arg: str | None,
    kill_script_path_arg: str | None,
    permissions: PermissionStrategy = PERMISSIONS,
) -> tuple[str, str]:
    """Validate the command-line paths and bootstrap the trigger file.

    Raises:
        MissingArgumentError:    no trigger file path was given.
        KillScriptNotFoundError: the kill script does not exist.  Nothing is
                                 created on disk in that case.
    """
    if not trigger_path_arg:
        raise MissingArgumentError("No monitor file or kill script specified")
    if not kill_script_path_arg:
        logger.warning("No kill script specified")

    if not kill_script_path_arg or not os.path.exists(kill_script_path_arg):
        raise KillScriptNotFoundError("Kill script does not exist")

    trigger_path = normalize_path(trigger_path_arg)
    kill_script_path = normalize_path(kill_script_path_arg)

    if not os.path.isfile(kill_script_path) or not os.access(kill_script_path, os.X_OK):
        logger.warning("Kill script is not an executable file: %s", kill_script_path)

    prepare_trigger_file(trigger_path, permissions)
    return trigger_path, kill_script_path
