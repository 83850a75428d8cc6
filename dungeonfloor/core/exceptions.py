"""
Generation Errors
=================

Error taxonomy shared by the generator, the constraint algebra and the solver.

- InvalidConfigurationError: bad caller input (node count, branching factor,
  mismatched AND targets, negative bounds). Raised at call/construction time.
- GraphIntegrityError: a RoomGraph that breaks a structural invariant
  (missing start node, dangling connection endpoint, ...).
- ConstraintViolationError: no total room type assignment could be found.
  Expected and recoverable: retry with another seed or relaxed rules.
"""

from typing import Any, Optional


class GenerationError(Exception):
    """Base class for all floor generation errors."""
    pass


class InvalidConfigurationError(GenerationError, ValueError):
    """Raised when generation parameters are invalid."""
    pass


class GraphIntegrityError(GenerationError, ValueError):
    """Raised when a room graph violates a structural invariant."""
    pass


class ConstraintViolationError(GenerationError):
    """
    Raised when room type constraints cannot be satisfied.

    Attributes:
        room_type: Room type that could not be placed (if known)
        constraint: Constraint that rejected the most candidates (if known)
        node_id: Node that could not receive any room type (if known)
    """

    def __init__(
        self,
        message: str,
        room_type: Any = None,
        constraint: Any = None,
        node_id: Optional[int] = None,
    ):
        super().__init__(message)
        self.room_type = room_type
        self.constraint = constraint
        self.node_id = node_id
