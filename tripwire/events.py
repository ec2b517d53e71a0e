"""
events.py — Event schema shared by the watch layer and the watch loop.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class DeletionEvent:
    """A single deletion reported for the watched directory.

    Attributes:
        timestamp:    Unix epoch time when the event was received.
        file_path:    Path of the deleted entry, as reported by the backend.
        is_directory: ``True`` if the deleted entry was a directory.
    """

    timestamp: float
    file_path: str
    is_directory: bool = False
