"""
Constraint Contract
===================

Every placement rule answers one question: may `node` receive the rule's
target room type, given the graph and the current partial assignment?

Assignments are a mapping node id -> room type. A missing key means the
node is not decided yet; rules must never treat it as an error.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, FrozenSet, Generic, Hashable, Iterable, List, Mapping, Optional, Tuple, TypeVar, Union

from dungeonfloor.constants.generation_constants import (
    CONSTRAINT_PRIORITIES,
    DEFAULT_CONSTRAINT_PRIORITY,
)
from dungeonfloor.core.definitions import RoomGraph, RoomNode
from dungeonfloor.core.exceptions import InvalidConfigurationError

RoomType = TypeVar('RoomType', bound=Hashable)

Assignments = Mapping[int, RoomType]


class Constraint(ABC, Generic[RoomType]):
    """Base class for room placement rules."""

    def __init__(self, target_room_type: Optional[RoomType]):
        self._target_room_type = target_room_type

    @property
    def target_room_type(self) -> Optional[RoomType]:
        """Room type this rule governs."""
        return self._target_room_type

    @property
    def reference_room_types(self) -> FrozenSet[RoomType]:
        """Room types whose placement this rule reads."""
        return frozenset()

    @property
    def depends_on_assignments(self) -> bool:
        """Whether the verdict can change as other nodes get assigned."""
        return False

    @property
    def priority(self) -> int:
        """Placement ordering hint for the solver (higher goes first)."""
        return CONSTRAINT_PRIORITIES.get(type(self).__name__, DEFAULT_CONSTRAINT_PRIORITY)

    @abstractmethod
    def is_valid(
        self,
        node: RoomNode,
        graph: RoomGraph,
        assignments: Assignments,
    ) -> bool:
        """Check if node may be assigned the target room type."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._target_room_type!r})"


def require_non_negative(name: str, value: int) -> int:
    if value < 0:
        raise InvalidConfigurationError(f"{name} must be non-negative, got {value}")
    return value


def require_room_types(name: str, room_types: Iterable[RoomType]) -> FrozenSet[RoomType]:
    types = frozenset(room_types)
    if not types:
        raise InvalidConfigurationError(f"At least one {name} room type must be provided")
    return types


class CustomConstraint(Constraint[RoomType]):
    """Wrap a user predicate (node, graph, assignments) -> bool."""

    def __init__(
        self,
        target_room_type: RoomType,
        predicate: Callable[[RoomNode, RoomGraph, Assignments], bool],
        depends_on_assignments: bool = True,
    ):
        super().__init__(target_room_type)
        if predicate is None:
            raise InvalidConfigurationError("CustomConstraint requires a predicate")
        self.predicate = predicate
        self._depends_on_assignments = depends_on_assignments

    @property
    def depends_on_assignments(self) -> bool:
        return self._depends_on_assignments

    def is_valid(self, node, graph, assignments) -> bool:
        return bool(self.predicate(node, graph, assignments))


ConstraintSpec = Union[Constraint, Tuple[Hashable, Constraint]]


def group_constraints(constraints: Iterable[ConstraintSpec]) -> Dict[Any, List[Constraint]]:
    """
    Group rules by the room type they govern.

    Items are either a Constraint (tagged by its target room type) or an
    explicit (room_type, constraint) pair. Insertion order is preserved.
    """
    grouped: Dict[Any, List[Constraint]] = {}
    for item in constraints or ():
        if isinstance(item, tuple):
            if len(item) != 2 or not isinstance(item[1], Constraint):
                raise InvalidConfigurationError(
                    f"Expected (room_type, constraint) pair, got {item!r}"
                )
            room_type, constraint = item
        elif isinstance(item, Constraint):
            room_type, constraint = item.target_room_type, item
        else:
            raise InvalidConfigurationError(f"Not a constraint: {item!r}")

        if room_type is None:
            raise InvalidConfigurationError(
                f"{constraint!r} has no target room type; pass it as a (room_type, constraint) pair"
            )
        grouped.setdefault(room_type, []).append(constraint)
    return grouped
