"""
Constraints Module
==================

Room placement rules and their boolean composition.

- base: Constraint contract, CustomConstraint
- structural: distance-from-start, dead end, critical path, degree rules
- relational: rules reading other placed room types
- composite: AND / OR / NOT composition
"""

from .base import Constraint, ConstraintSpec, CustomConstraint, RoomType, group_constraints
from .structural import (
    MinDistanceFromStartConstraint,
    MaxDistanceFromStartConstraint,
    MustBeDeadEndConstraint,
    NotOnCriticalPathConstraint,
    OnlyOnCriticalPathConstraint,
    MinConnectionCountConstraint,
    MaxConnectionCountConstraint,
)
from .relational import (
    MinDistanceFromRoomTypeConstraint,
    MaxDistanceFromRoomTypeConstraint,
    MustBeAdjacentToConstraint,
    MustNotBeAdjacentToConstraint,
    MustComeBeforeConstraint,
    MaxPerFloorConstraint,
)
from .composite import CompositeConstraint, CompositionOperator

__all__ = [
    # Contract
    'Constraint',
    'ConstraintSpec',
    'CustomConstraint',
    'RoomType',
    'group_constraints',
    # Structural
    'MinDistanceFromStartConstraint',
    'MaxDistanceFromStartConstraint',
    'MustBeDeadEndConstraint',
    'NotOnCriticalPathConstraint',
    'OnlyOnCriticalPathConstraint',
    'MinConnectionCountConstraint',
    'MaxConnectionCountConstraint',
    # Relational
    'MinDistanceFromRoomTypeConstraint',
    'MaxDistanceFromRoomTypeConstraint',
    'MustBeAdjacentToConstraint',
    'MustNotBeAdjacentToConstraint',
    'MustComeBeforeConstraint',
    'MaxPerFloorConstraint',
    # Composition
    'CompositeConstraint',
    'CompositionOperator',
]
