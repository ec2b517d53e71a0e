"""
handler.py — Reaction to a deleted trigger file.

Runs the kill script through a shell, waits for it, and then always puts
the trigger file back so the next deletion can be detected.
"""

from __future__ import annotations

import logging
import subprocess

from tripwire.bootstrap import create_trigger_file
from tripwire.permissions import PERMISSIONS, PermissionStrategy
from tripwire.process_monitor import describe, get_process_info

logger = logging.getLogger(__name__)


class TriggerHandler:
    """Runs the kill script and recreates the trigger file.

    Parameters:
        trigger_path: Absolute, normalized path of the trigger file.
        kill_script:  Absolute path of the kill script.  It is passed to the
                      shell as-is, as the whole command string.
        shell:        Shell executable to run the command with.  ``None``
                      uses the platform default (``/bin/sh`` or ``cmd.exe``).
    """

    def __init__(
        self,
        trigger_path: str,
        kill_script: str,
        shell: str | None = None,
        permissions: PermissionStrategy = PERMISSIONS,
    ) -> None:
        self.trigger_path = trigger_path
        self.kill_script = kill_script
        self.shell = shell
        self._permissions = permissions

    def __call__(self) -> None:
        self.on_trigger_fired()

    def on_trigger_fired(self) -> None:
        """Run the kill script to completion, then recreate the trigger file.

        The script's exit status is ignored.  A ``KeyboardInterrupt`` while
        waiting for the script still recreates the file and is then re-raised
        so the caller can shut down.
        """
        logger.info("Kill triggered")
        try:
            self._run_kill_script()
        finally:
            logger.info("Recreating monitor file")
            try:
                create_trigger_file(self.trigger_path, self._permissions)
            except (OSError, NotImplementedError) as exc:
                logger.error("Couldn't recreate monitor file: %s", exc)

    def _run_kill_script(self) -> None:
        try:
            # stdin/stdout/stderr are inherited from the watchdog
            proc = subprocess.Popen(self.kill_script, shell=True, executable=self.shell)
        except OSError as exc:
            logger.error("Couldn't run kill script %s: %s", self.kill_script, exc)
            return

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Kill script started: %s", describe(get_process_info(proc.pid)))
        try:
            proc.wait()
        except KeyboardInterrupt:
            logger.warning("Interrupted while waiting for kill script (pid=%d)", proc.pid)
            raise
