"""
Watch Models
Per-file watch state owned by the file change loop.
"""

from dataclasses import dataclass
from enum import Enum


class FileState(str, Enum):
    """Pipeline position of a watched file"""
    IDLE = "idle"
    AWAITING_COMPLETION = "awaiting_completion"
    REWRITING = "rewriting"


class EventOutcome(str, Enum):
    """What the loop did with one change notification"""
    SUPPRESSED = "suppressed"  # self-caused write, latch consumed
    REWRITTEN = "rewritten"
    FAILED = "failed"          # logged, file untouched
    IGNORED = "ignored"        # path not on the watch list


@dataclass
class WatchedFile:
    """A file accepted onto the watch list at startup"""
    path: str
    backup_extension: str = ""
    suppress_next_write: bool = False
    state: FileState = FileState.IDLE
