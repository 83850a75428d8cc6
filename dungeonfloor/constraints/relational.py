"""
Relational Constraints
======================

Rules whose verdict depends on which room types are already placed.

Policy for references that are not decided yet:
- Minimum-distance / adjacency-exclusion / ordering rules are permissive
  (assignment order must not be forced on the caller).
- Maximum-distance / adjacency-requirement rules are restrictive
  (a bound cannot be certified against a room that does not exist).

Distances are measured to the single nearest assigned reference room across
all listed reference types. Every room in the assignment map counts, so a
caller re-checking a placed room removes it from the map first.
"""

from typing import FrozenSet, List

from dungeonfloor.constraints.base import (
    Constraint,
    RoomType,
    require_non_negative,
    require_room_types,
)


class ReferenceTypeConstraint(Constraint[RoomType]):
    """Shared plumbing for rules that look at other placed room types."""

    def __init__(self, target_room_type: RoomType, reference_room_types):
        super().__init__(target_room_type)
        self._reference_room_types = require_room_types('reference', reference_room_types)

    @property
    def reference_room_types(self) -> FrozenSet[RoomType]:
        return self._reference_room_types

    @property
    def depends_on_assignments(self) -> bool:
        return True

    def find_reference_nodes(self, assignments) -> List[int]:
        """Assigned node ids holding a reference type."""
        return [
            node_id for node_id, room_type in assignments.items()
            if room_type in self._reference_room_types
        ]

    def _reference_repr(self) -> str:
        return ', '.join(sorted(repr(t) for t in self._reference_room_types))


class MinDistanceFromRoomTypeConstraint(ReferenceTypeConstraint):
    """Room must be at least `min_distance` hops from every reference room."""

    def __init__(self, target_room_type: RoomType, min_distance: int, *reference_room_types: RoomType):
        super().__init__(target_room_type, reference_room_types)
        self.min_distance = require_non_negative('min_distance', min_distance)

    def is_valid(self, node, graph, assignments) -> bool:
        reference_nodes = self.find_reference_nodes(assignments)
        if not reference_nodes:
            return True

        nearest = graph.distance_to_nearest(node.id, reference_nodes)
        # Unreachable references are infinitely far away
        if nearest is None:
            return True
        return nearest >= self.min_distance

    def __repr__(self) -> str:
        return (
            f"MinDistanceFromRoomTypeConstraint({self.target_room_type!r}, "
            f"{self.min_distance}, {self._reference_repr()})"
        )


class MaxDistanceFromRoomTypeConstraint(ReferenceTypeConstraint):
    """Room must be at most `max_distance` hops from some reference room."""

    def __init__(self, target_room_type: RoomType, max_distance: int, *reference_room_types: RoomType):
        super().__init__(target_room_type, reference_room_types)
        self.max_distance = require_non_negative('max_distance', max_distance)

    def is_valid(self, node, graph, assignments) -> bool:
        reference_nodes = self.find_reference_nodes(assignments)
        if not reference_nodes:
            return False

        nearest = graph.distance_to_nearest(node.id, reference_nodes)
        if nearest is None:
            return False
        return nearest <= self.max_distance

    def __repr__(self) -> str:
        return (
            f"MaxDistanceFromRoomTypeConstraint({self.target_room_type!r}, "
            f"{self.max_distance}, {self._reference_repr()})"
        )


class MustBeAdjacentToConstraint(ReferenceTypeConstraint):
    """Room must share a connection with an assigned room of a reference type."""

    def __init__(self, target_room_type: RoomType, *required_adjacent_types: RoomType):
        super().__init__(target_room_type, required_adjacent_types)

    def is_valid(self, node, graph, assignments) -> bool:
        for neighbor_id in graph.neighbors(node.id):
            if assignments.get(neighbor_id) in self._reference_room_types:
                return True
        return False

    def __repr__(self) -> str:
        return f"MustBeAdjacentToConstraint({self.target_room_type!r}, {self._reference_repr()})"


class MustNotBeAdjacentToConstraint(ReferenceTypeConstraint):
    """Room must not share a connection with an assigned room of a reference type."""

    def __init__(self, target_room_type: RoomType, *forbidden_adjacent_types: RoomType):
        super().__init__(target_room_type, forbidden_adjacent_types)

    def is_valid(self, node, graph, assignments) -> bool:
        for neighbor_id in graph.neighbors(node.id):
            if assignments.get(neighbor_id) in self._reference_room_types:
                return False
        return True

    def __repr__(self) -> str:
        return f"MustNotBeAdjacentToConstraint({self.target_room_type!r}, {self._reference_repr()})"


class MustComeBeforeConstraint(ReferenceTypeConstraint):
    """
    On the critical path, room must precede at least one reference room.

    Permissive when the candidate is off the critical path or when no
    reference room sits on the critical path yet.
    """

    def __init__(self, target_room_type: RoomType, *reference_room_types: RoomType):
        super().__init__(target_room_type, reference_room_types)

    def is_valid(self, node, graph, assignments) -> bool:
        candidate_index = graph.critical_path_index(node.id)
        if candidate_index is None:
            return True

        reference_indices = [
            graph.critical_path_index(node_id)
            for node_id in self.find_reference_nodes(assignments)
        ]
        reference_indices = [i for i in reference_indices if i is not None]
        if not reference_indices:
            return True

        return any(candidate_index < i for i in reference_indices)

    def __repr__(self) -> str:
        return f"MustComeBeforeConstraint({self.target_room_type!r}, {self._reference_repr()})"


class MaxPerFloorConstraint(Constraint[RoomType]):
    """At most `max_count` rooms of the target type on the floor."""

    def __init__(self, target_room_type: RoomType, max_count: int):
        super().__init__(target_room_type)
        self.max_count = require_non_negative('max_count', max_count)

    @property
    def reference_room_types(self) -> FrozenSet[RoomType]:
        return frozenset([self.target_room_type])

    @property
    def depends_on_assignments(self) -> bool:
        return True

    def is_valid(self, node, graph, assignments) -> bool:
        placed = sum(
            1 for room_type in assignments.values()
            if room_type == self.target_room_type
        )
        return placed < self.max_count

    def __repr__(self) -> str:
        return f"MaxPerFloorConstraint({self.target_room_type!r}, {self.max_count})"
