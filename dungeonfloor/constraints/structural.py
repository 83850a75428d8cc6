"""
Structural Constraints
======================

Rules that only read facts fixed at generation time: distance from the start
room, degree, and critical path membership. Their verdict never changes during
assignment.

A node that cannot be reached from the start (only possible for hand-built
graphs) has an infinite distance: minimum bounds pass, maximum bounds fail.
"""

from dungeonfloor.constraints.base import Constraint, RoomType, require_non_negative


class MinDistanceFromStartConstraint(Constraint[RoomType]):
    """Room must be at least `min_distance` hops from the start room."""

    def __init__(self, target_room_type: RoomType, min_distance: int):
        super().__init__(target_room_type)
        self.min_distance = require_non_negative('min_distance', min_distance)

    def is_valid(self, node, graph, assignments) -> bool:
        if node.distance_from_start is None:
            return True
        return node.distance_from_start >= self.min_distance

    def __repr__(self) -> str:
        return f"MinDistanceFromStartConstraint({self.target_room_type!r}, {self.min_distance})"


class MaxDistanceFromStartConstraint(Constraint[RoomType]):
    """Room must be at most `max_distance` hops from the start room."""

    def __init__(self, target_room_type: RoomType, max_distance: int):
        super().__init__(target_room_type)
        self.max_distance = require_non_negative('max_distance', max_distance)

    def is_valid(self, node, graph, assignments) -> bool:
        if node.distance_from_start is None:
            return False
        return node.distance_from_start <= self.max_distance

    def __repr__(self) -> str:
        return f"MaxDistanceFromStartConstraint({self.target_room_type!r}, {self.max_distance})"


class MustBeDeadEndConstraint(Constraint[RoomType]):
    """Room must have exactly one connection."""

    def is_valid(self, node, graph, assignments) -> bool:
        return node.is_dead_end


class NotOnCriticalPathConstraint(Constraint[RoomType]):
    """Room must be off the main route."""

    def is_valid(self, node, graph, assignments) -> bool:
        return not node.is_on_critical_path


class OnlyOnCriticalPathConstraint(Constraint[RoomType]):
    """Room must be on the main route."""

    def is_valid(self, node, graph, assignments) -> bool:
        return node.is_on_critical_path


class MinConnectionCountConstraint(Constraint[RoomType]):
    """Room must have at least `min_connections` connections."""

    def __init__(self, target_room_type: RoomType, min_connections: int):
        super().__init__(target_room_type)
        self.min_connections = require_non_negative('min_connections', min_connections)

    def is_valid(self, node, graph, assignments) -> bool:
        return node.connection_count >= self.min_connections

    def __repr__(self) -> str:
        return f"MinConnectionCountConstraint({self.target_room_type!r}, {self.min_connections})"


class MaxConnectionCountConstraint(Constraint[RoomType]):
    """Room must have at most `max_connections` connections."""

    def __init__(self, target_room_type: RoomType, max_connections: int):
        super().__init__(target_room_type)
        self.max_connections = require_non_negative('max_connections', max_connections)

    def is_valid(self, node, graph, assignments) -> bool:
        return node.connection_count <= self.max_connections

    def __repr__(self) -> str:
        return f"MaxConnectionCountConstraint({self.target_room_type!r}, {self.max_connections})"
