"""
monitor.py — Deletion watch and watch loop for tripwire.

Uses the ``watchdog`` library to subscribe to deletion events in the
directory that contains the trigger file.  The observer thread only turns
native notifications (inotify, FSEvents, ReadDirectoryChangesW) into
``DeletionEvent`` objects on a queue; everything else happens on the
calling thread, one event at a time.

Public API
----------
DeletionWatch(directory)
    register() / take() / reset() / close() around a single non-recursive
    watchdog observer.

run_watch_loop(trigger_path, on_trigger, watch)
    Block for event batches and call *on_trigger* for every deletion of the
    trigger file.  Never returns normally.

watch_for_deletions(trigger_path, on_trigger)
    Register a watch on the trigger file's directory and run the loop.
"""

from __future__ import annotations

import logging
import os
import queue
import time
from typing import Callable, Protocol

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from tripwire.bootstrap import normalize_path
from tripwire.events import DeletionEvent

logger = logging.getLogger(__name__)


class WatchRegistrationError(OSError):
    """The directory could not be watched (missing, permission denied...)."""


class WatchInvalidatedError(RuntimeError):
    """The watched directory went away or the observer died."""


class _DeletionHandler(FileSystemEventHandler):
    """Translates watchdog deletions into DeletionEvent objects."""

    def __init__(self, watch: DeletionWatch) -> None:
        super().__init__()
        self._watch = watch

    def on_deleted(self, event) -> None:  # noqa: ANN001
        src_path = os.fsdecode(event.src_path)
        if event.is_directory and normalize_path(src_path) == self._watch.directory:
            self._watch.invalidate("deleted")
        self._watch.put(
            DeletionEvent(
                timestamp=time.time(),
                file_path=src_path,
                is_directory=event.is_directory,
            )
        )

    def on_moved(self, event) -> None:  # noqa: ANN001
        # A rename vacates src_path just like a deletion does.
        src_path = os.fsdecode(event.src_path)
        if event.is_directory:
            if normalize_path(src_path) != self._watch.directory:
                return
            self._watch.invalidate("moved")
        self._watch.put(
            DeletionEvent(
                timestamp=time.time(),
                file_path=src_path,
                is_directory=event.is_directory,
            )
        )


class DeletionWatch:
    """A single subscription to deletions inside one directory."""

    def __init__(self, directory: str) -> None:
        self.directory = normalize_path(directory)
        self._queue: queue.Queue[DeletionEvent] = queue.Queue()
        self._observer: Observer | None = None
        self._invalid_reason: str | None = None

    def register(self) -> None:
        """Start watching.  Raises :class:`WatchRegistrationError` on failure."""
        observer = Observer()
        observer.daemon = True
        try:
            observer.schedule(_DeletionHandler(self), self.directory, recursive=False)
            observer.start()
        except OSError as exc:
            raise WatchRegistrationError(
                f"Couldn't watch {self.directory}: {exc.strerror or exc}"
            ) from exc
        self._observer = observer
        logger.info("Watching: %s", self.directory)

    def put(self, event: DeletionEvent) -> None:
        self._queue.put(event)

    def invalidate(self, reason: str) -> None:
        self._invalid_reason = reason

    def take(self) -> list[DeletionEvent]:
        """Block until at least one event arrives; return all pending events."""
        batch = [self._queue.get()]
        while True:
            try:
                batch.append(self._queue.get_nowait())
            except queue.Empty:
                return batch

    def reset(self) -> bool:
        """Re-arm after a batch.  Returns ``False`` if the watch is dead."""
        if self._invalid_reason is not None:
            logger.debug("Watched directory was %s: %s", self._invalid_reason, self.directory)
            return False
        if self._observer is None or not self._observer.is_alive():
            return False
        return os.path.isdir(self.directory)

    def close(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None
            logger.debug("Stopped watching: %s", self.directory)


class Watch(Protocol):
    def register(self) -> None: ...

    def take(self) -> list[DeletionEvent]: ...

    def reset(self) -> bool: ...

    def close(self) -> None: ...


def is_trigger_event(event: DeletionEvent, trigger_path: str) -> bool:
    """``True`` if *event* is the deletion of the file at *trigger_path*."""
    if event.is_directory:
        return False
    return normalize_path(event.file_path) == trigger_path


def run_watch_loop(
    trigger_path: str,
    on_trigger: Callable[[], None],
    watch: Watch,
) -> None:
    """Dispatch deletions of *trigger_path* to *on_trigger*, forever.

    *watch* must already be registered.  Each call to *on_trigger* runs to
    completion before the next event is looked at, so two kill runs can
    never overlap.

    Raises:
        WatchInvalidatedError: the watch could not be re-armed.
        KeyboardInterrupt:     interrupted while blocked or dispatching.
    """
    while True:
        for event in watch.take():
            if is_trigger_event(event, trigger_path):
                logger.debug("Monitor file removed at %.3f", event.timestamp)
                on_trigger()
            else:
                logger.debug("Ignoring deletion of %s at %.3f", event.file_path, event.timestamp)
        if not watch.reset():
            raise WatchInvalidatedError(
                f"Watch on {os.path.dirname(trigger_path)} is no longer valid"
            )


def watch_for_deletions(
    trigger_path: str,
    on_trigger: Callable[[], None],
    watch: Watch | None = None,
) -> None:
    """Watch the trigger file's directory and run the loop until it dies."""
    if watch is None:
        watch = DeletionWatch(os.path.dirname(trigger_path))
    watch.register()
    try:
        run_watch_loop(trigger_path, on_trigger, watch)
    finally:
        watch.close()
