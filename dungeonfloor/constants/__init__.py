"""Constants for floor generation and room type assignment."""

from .generation_constants import (
    DEFAULT_ROOM_COUNT,
    DEFAULT_BRANCHING_FACTOR,
    DEFAULT_MAX_BACKTRACKS,
    DEFAULT_MAX_ATTEMPTS,
    START_NODE_ID,
    CONSTRAINT_PRIORITIES,
    FLOOR_FORMAT_VERSION,
)

__all__ = [
    'DEFAULT_ROOM_COUNT',
    'DEFAULT_BRANCHING_FACTOR',
    'DEFAULT_MAX_BACKTRACKS',
    'DEFAULT_MAX_ATTEMPTS',
    'START_NODE_ID',
    'CONSTRAINT_PRIORITIES',
    'FLOOR_FORMAT_VERSION',
]
