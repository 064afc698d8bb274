"""
playqueue - Playback order manager for media queues.

Ordered queue of singles and collections with a current pointer and
independent, reversible per-collection shuffle.
"""

__version__ = "0.1.0"

from .config import Config, ConfigError, load_config
from .errors import (
    DuplicateIdError,
    InvalidPositionError,
    NotFoundError,
    QueueError,
    UnsupportedOperationError,
)
from .model import Collection, RepeatMode, Single
from .playback import PlaybackQueue
from .session import QueueSession

__all__ = [
    "__version__",
    "Collection",
    "Config",
    "ConfigError",
    "DuplicateIdError",
    "InvalidPositionError",
    "NotFoundError",
    "PlaybackQueue",
    "QueueError",
    "QueueSession",
    "RepeatMode",
    "Single",
    "UnsupportedOperationError",
    "load_config",
]
