"""
Constraint Composition
======================

Boolean algebra over constraints of one room type domain.

    CompositeConstraint.and_(c1, c2, ...)   all children pass (empty: True)
    CompositeConstraint.or_(c1, c2, ...)    some child passes (empty: False)
    CompositeConstraint.not_(c)             the child fails

Composites are constraints themselves and nest arbitrarily. AND requires every
child to govern the same room type; OR and NOT do not, so rule shapes such as
"shop or treasure in a dead end" can be expressed and evaluated for their
pass/fail verdict.

Usage:
    rule = CompositeConstraint.and_(
        NotOnCriticalPathConstraint(RoomType.SECRET),
        CompositeConstraint.or_(
            MustBeDeadEndConstraint(RoomType.SECRET),
            MinDistanceFromStartConstraint(RoomType.SECRET, 4),
        ),
    )
"""

from enum import Enum
from typing import FrozenSet, Optional, Sequence, Tuple

from dungeonfloor.constraints.base import Constraint, RoomType
from dungeonfloor.core.exceptions import InvalidConfigurationError


class CompositionOperator(Enum):
    """Operator joining child constraints."""
    AND = "and"
    OR = "or"
    NOT = "not"


class CompositeConstraint(Constraint[RoomType]):
    """Constraint combining children with AND / OR / NOT."""

    def __init__(
        self,
        operator: CompositionOperator,
        target_room_type: Optional[RoomType],
        constraints: Sequence[Constraint[RoomType]],
    ):
        super().__init__(target_room_type)
        self.operator = operator
        self._constraints: Tuple[Constraint[RoomType], ...] = tuple(constraints)

        if operator == CompositionOperator.NOT and len(self._constraints) != 1:
            raise InvalidConfigurationError(
                f"NOT composition must contain exactly one constraint, got {len(self._constraints)}"
            )

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def and_(cls, *constraints: Constraint[RoomType]) -> 'CompositeConstraint[RoomType]':
        """All constraints must pass; they must share one target room type."""
        _check_not_none(constraints)
        if not constraints:
            return cls(CompositionOperator.AND, None, ())

        target = constraints[0].target_room_type
        for constraint in constraints[1:]:
            if constraint.target_room_type != target:
                raise InvalidConfigurationError(
                    "All constraints in an AND composition must target the same room type. "
                    f"Expected {target!r}, but found {constraint.target_room_type!r}."
                )
        return cls(CompositionOperator.AND, target, constraints)

    @classmethod
    def or_(cls, *constraints: Constraint[RoomType]) -> 'CompositeConstraint[RoomType]':
        """At least one constraint must pass; target is the first child's."""
        _check_not_none(constraints)
        target = constraints[0].target_room_type if constraints else None
        return cls(CompositionOperator.OR, target, constraints)

    @classmethod
    def not_(cls, constraint: Constraint[RoomType]) -> 'CompositeConstraint[RoomType]':
        """The wrapped constraint must fail."""
        _check_not_none((constraint,))
        return cls(CompositionOperator.NOT, constraint.target_room_type, (constraint,))

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    @property
    def constraints(self) -> Tuple[Constraint[RoomType], ...]:
        return self._constraints

    @property
    def reference_room_types(self) -> FrozenSet[RoomType]:
        types: FrozenSet[RoomType] = frozenset()
        for constraint in self._constraints:
            types = types | constraint.reference_room_types
        return types

    @property
    def depends_on_assignments(self) -> bool:
        return any(c.depends_on_assignments for c in self._constraints)

    @property
    def priority(self) -> int:
        return max((c.priority for c in self._constraints), default=super().priority)

    def is_valid(self, node, graph, assignments) -> bool:
        if self.operator == CompositionOperator.AND:
            for constraint in self._constraints:
                if not constraint.is_valid(node, graph, assignments):
                    return False
            return True

        if self.operator == CompositionOperator.OR:
            for constraint in self._constraints:
                if constraint.is_valid(node, graph, assignments):
                    return True
            return False

        return not self._constraints[0].is_valid(node, graph, assignments)

    def __repr__(self) -> str:
        children = ', '.join(repr(c) for c in self._constraints)
        return f"{self.operator.name}({children})"


def _check_not_none(constraints) -> None:
    if constraints is None or any(c is None for c in constraints):
        raise InvalidConfigurationError("Constraints cannot be None")
