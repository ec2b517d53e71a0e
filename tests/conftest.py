"""Shared fixtures for tripwire tests."""

import os
import stat
import time

import pytest

from tripwire.events import DeletionEvent


class FakeWatch:
    """Scripted stand-in for DeletionWatch.

    Each item in *batches* is either a list of DeletionEvent or a callable
    returning one (so a test can touch the filesystem right before the
    batch is "delivered").  The watch stays valid while batches remain.
    """

    def __init__(self, batches):
        self.batches = list(batches)
        self.registered = False
        self.closed = False
        self.takes = 0
        self.resets = 0

    def register(self):
        self.registered = True

    def take(self):
        self.takes += 1
        batch = self.batches.pop(0)
        if callable(batch):
            batch = batch()
        return batch

    def reset(self):
        self.resets += 1
        return bool(self.batches)

    def close(self):
        self.closed = True


def deletion(path, is_directory=False):
    return DeletionEvent(timestamp=time.time(), file_path=str(path), is_directory=is_directory)


@pytest.fixture
def fake_watch():
    return FakeWatch


@pytest.fixture
def make_deletion():
    return deletion


@pytest.fixture
def kill_script(tmp_path):
    """Executable shell script that appends a line to kill.log on each run."""
    log = tmp_path / "kill.log"
    script = tmp_path / "kill.sh"
    script.write_text(f"#!/bin/sh\necho killed >> '{log}'\n")
    script.chmod(0o755)
    return script


@pytest.fixture
def kill_log(tmp_path):
    return tmp_path / "kill.log"


def file_mode(path):
    return stat.S_IMODE(os.stat(path).st_mode)


@pytest.fixture
def mode_of():
    return file_mode


@pytest.fixture
def umask():
    """Set a process umask for the test and restore it afterwards."""
    saved = os.umask(0o022)
    os.umask(saved)

    def _set(value):
        os.umask(value)

    yield _set
    os.umask(saved)
