"""
Core Module - Floor Graph Model
==============================

Data model and error taxonomy shared by every other module.

- definitions: RoomNode, RoomConnection, RoomGraph, RoomGraphBuilder
- exceptions: GenerationError hierarchy

Usage:
    from dungeonfloor.core import RoomGraph, RoomGraphBuilder
    graph = RoomGraph.from_edges(5, [(0, 1), (1, 2), (2, 3), (3, 4)])
"""

from dungeonfloor.core.definitions import (
    RoomNode,
    RoomConnection,
    RoomGraph,
    RoomGraphBuilder,
    bfs_distances,
    derive_critical_path,
)
from dungeonfloor.core.exceptions import (
    GenerationError,
    InvalidConfigurationError,
    GraphIntegrityError,
    ConstraintViolationError,
)

__all__ = [
    # Definitions
    'RoomNode',
    'RoomConnection',
    'RoomGraph',
    'RoomGraphBuilder',
    'bfs_distances',
    'derive_critical_path',
    # Exceptions
    'GenerationError',
    'InvalidConfigurationError',
    'GraphIntegrityError',
    'ConstraintViolationError',
]
