#!/usr/bin/env python3
"""
tripwire_main.py — CLI entry point for tripwire.

Watches a trigger file and runs a kill script, with this process's
privileges, whenever someone deletes it.  The trigger file is recreated
after every run.

Only local filesystems are supported: notifications come from the local
kernel, so deletions made on another machine sharing an NFS mount are not
seen.

Usage
-----
    # Let the graders group stop the grading server by deleting KILL
    tripwire /srv/grader/KILL /srv/grader/kill.sh

    # Same thing, with debug output and an explicit shell
    python -m tripwire.tripwire_main /srv/grader/KILL kill.sh --shell /bin/sh -v
"""

from __future__ import annotations

import argparse
import logging
import shutil
import signal
import sys
from dataclasses import dataclass

from tripwire.bootstrap import (
    KillScriptNotFoundError,
    MissingArgumentError,
    resolve_and_prepare,
)
from tripwire.handler import TriggerHandler
from tripwire.monitor import (
    WatchInvalidatedError,
    WatchRegistrationError,
    watch_for_deletions,
)
from tripwire.process_monitor import current_process_info, describe

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("tripwire")

EXIT_FAILURE = 1


@dataclass
class WatchdogConfig:
    """Runtime settings collected from the command line."""

    trigger_path: str | None
    kill_script: str | None
    shell: str | None = None
    verbose: bool = False

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> WatchdogConfig:
        return cls(
            trigger_path=args.monitor_file,
            kill_script=args.kill_script,
            shell=args.shell,
            verbose=args.verbose,
        )


# ---------------------------------------------------------------------------
# Watch command
# ---------------------------------------------------------------------------

def cmd_watch(config: WatchdogConfig) -> None:
    """Bootstrap the trigger file and watch it until something fatal happens.

    Every way out of this function is a non-zero exit: the loop itself only
    ends on errors or interruption.
    """
    try:
        trigger_path, kill_script = resolve_and_prepare(
            config.trigger_path, config.kill_script
        )
    except (MissingArgumentError, KillScriptNotFoundError) as exc:
        logger.error("%s", exc)
        sys.exit(EXIT_FAILURE)

    logger.info("Monitor file: %s", trigger_path)
    logger.info("Kill script : %s", kill_script)
    logger.info("Running as  : %s", describe(current_process_info()))

    handler = TriggerHandler(trigger_path, kill_script, shell=config.shell)
    try:
        watch_for_deletions(trigger_path, handler)
    except (WatchRegistrationError, WatchInvalidatedError) as exc:
        logger.error("%s", exc)
    except KeyboardInterrupt:
        logger.error("Interrupted")
    sys.exit(EXIT_FAILURE)


def _raise_interrupt(signum, frame) -> None:  # noqa: ANN001
    raise KeyboardInterrupt


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="tripwire",
        description=(
            "Run a kill script with this process's privileges whenever a "
            "trigger file is deleted."
        ),
    )
    # Both optional here so missing ones get our own messages.
    parser.add_argument(
        "monitor_file",
        nargs="?",
        help="Trigger file to watch. Created (rw-rw----) if missing.",
    )
    parser.add_argument(
        "kill_script",
        nargs="?",
        help="Script to run through the shell when the trigger file is deleted.",
    )
    parser.add_argument(
        "--shell",
        default=shutil.which("bash"),
        help="Shell used to run the kill script (default: bash if found, else the system shell).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> None:
    """Parse CLI args and start watching."""
    parser = build_parser()
    config = WatchdogConfig.from_args(parser.parse_args(argv))

    if config.verbose:
        logger.setLevel(logging.DEBUG)

    try:
        signal.signal(signal.SIGTERM, _raise_interrupt)
    except ValueError:
        pass  # not in main thread

    cmd_watch(config)


if __name__ == "__main__":
    main()
