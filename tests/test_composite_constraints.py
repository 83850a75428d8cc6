"""
Tests for Constraint Composition
================================

Covers:
1. Boolean laws of AND / OR / NOT
2. Target room type rules (AND enforces, OR / NOT do not)
3. Nesting depth and evaluation cost
4. Metadata propagation (references, priority)

Run: pytest tests/test_composite_constraints.py -v
"""

import sys
import time
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dungeonfloor.constraints import (
    CompositeConstraint,
    CompositionOperator,
    MaxDistanceFromRoomTypeConstraint,
    MaxDistanceFromStartConstraint,
    MinDistanceFromStartConstraint,
    MustBeDeadEndConstraint,
    MustNotBeAdjacentToConstraint,
    NotOnCriticalPathConstraint,
    OnlyOnCriticalPathConstraint,
)
from dungeonfloor.core import InvalidConfigurationError, RoomGraph, RoomGraphBuilder

T = 'treasure'
SHOP = 'shop'
BOSS = 'boss'


@pytest.fixture
def seven_rooms():
    """
    Linear floor 0-1-2-3-4-5-6 whose critical path is only room 1.
    """
    builder = RoomGraphBuilder()
    builder.add_nodes(7)
    for i in range(6):
        builder.connect(i, i + 1)
    builder.mark_critical_path([1])
    return builder.build()


@pytest.fixture
def fork():
    return RoomGraph.from_edges(6, [(0, 1), (1, 2), (2, 3), (1, 4), (4, 5)])


LEAVES = [
    MinDistanceFromStartConstraint(T, 2),
    MaxDistanceFromStartConstraint(T, 1),
    MustBeDeadEndConstraint(T),
    NotOnCriticalPathConstraint(T),
    OnlyOnCriticalPathConstraint(T),
]


def verdicts(constraint, graph, assignments=None):
    assignments = assignments or {}
    return [constraint.is_valid(node, graph, assignments) for node in graph.nodes]


class TestBooleanLaws:
    """Composition behaves like boolean algebra on every node."""

    @pytest.mark.parametrize("leaf", LEAVES, ids=repr)
    def test_singletons_and_double_negation(self, fork, leaf):
        expected = verdicts(leaf, fork)
        assert verdicts(CompositeConstraint.and_(leaf), fork) == expected
        assert verdicts(CompositeConstraint.or_(leaf), fork) == expected
        double = CompositeConstraint.not_(CompositeConstraint.not_(leaf))
        assert verdicts(double, fork) == expected

    @pytest.mark.parametrize("leaf", LEAVES, ids=repr)
    def test_contradiction_and_excluded_middle(self, fork, leaf):
        negated = CompositeConstraint.not_(leaf)
        assert not any(verdicts(CompositeConstraint.and_(leaf, negated), fork))
        assert all(verdicts(CompositeConstraint.or_(leaf, negated), fork))

    def test_empty_compositions(self, fork):
        assert all(verdicts(CompositeConstraint.and_(), fork))
        assert not any(verdicts(CompositeConstraint.or_(), fork))

    def test_and_matches_pointwise_conjunction(self, fork):
        a, b = LEAVES[0], LEAVES[2]
        expected = [x and y for x, y in zip(verdicts(a, fork), verdicts(b, fork))]
        assert verdicts(CompositeConstraint.and_(a, b), fork) == expected

    def test_or_matches_pointwise_disjunction(self, fork):
        a, b = LEAVES[1], LEAVES[2]
        expected = [x or y for x, y in zip(verdicts(a, fork), verdicts(b, fork))]
        assert verdicts(CompositeConstraint.or_(a, b), fork) == expected


class TestOrScenario:
    """Far-away rooms or rooms on the main route."""

    def test_far_or_critical(self, seven_rooms):
        rule = CompositeConstraint.or_(
            MinDistanceFromStartConstraint(T, 5),
            OnlyOnCriticalPathConstraint(T),
        )
        assert rule.is_valid(seven_rooms.get_node(1), seven_rooms, {})
        assert rule.is_valid(seven_rooms.get_node(6), seven_rooms, {})
        assert not rule.is_valid(seven_rooms.get_node(2), seven_rooms, {})


class TestTargetRoomType:
    """Which compositions may mix room types."""

    def test_and_requires_one_target(self):
        with pytest.raises(InvalidConfigurationError, match="same room type"):
            CompositeConstraint.and_(MustBeDeadEndConstraint(T), MustBeDeadEndConstraint(SHOP))

    def test_or_allows_mixed_targets(self, fork):
        rule = CompositeConstraint.or_(MustBeDeadEndConstraint(SHOP), MinDistanceFromStartConstraint(T, 3))
        assert rule.target_room_type == SHOP
        assert verdicts(rule, fork) == [True, False, False, True, False, True]

    def test_not_keeps_child_target(self):
        rule = CompositeConstraint.not_(MustBeDeadEndConstraint(SHOP))
        assert rule.target_room_type == SHOP
        assert rule.operator == CompositionOperator.NOT

    def test_empty_has_no_target(self):
        assert CompositeConstraint.and_().target_room_type is None
        assert CompositeConstraint.or_().target_room_type is None

    def test_none_children_rejected(self):
        with pytest.raises(InvalidConfigurationError):
            CompositeConstraint.and_(MustBeDeadEndConstraint(T), None)
        with pytest.raises(InvalidConfigurationError):
            CompositeConstraint.or_(None)
        with pytest.raises(InvalidConfigurationError):
            CompositeConstraint.not_(None)

    def test_not_requires_exactly_one_child(self):
        leaf = MustBeDeadEndConstraint(T)
        with pytest.raises(InvalidConfigurationError):
            CompositeConstraint(CompositionOperator.NOT, T, [leaf, leaf])
        with pytest.raises(InvalidConfigurationError):
            CompositeConstraint(CompositionOperator.NOT, T, [])


class TestNestingAndCost:
    """Deep trees and wide conjunctions."""

    def test_deep_nesting(self, fork):
        leaf = MustBeDeadEndConstraint(T)
        rule = leaf
        for _ in range(40):
            rule = CompositeConstraint.not_(rule)
        rule = CompositeConstraint.and_(CompositeConstraint.or_(rule))
        assert verdicts(rule, fork) == verdicts(leaf, fork)

    def test_mixed_nesting(self, fork):
        # (dead end AND off path) OR distance >= 3
        rule = CompositeConstraint.or_(
            CompositeConstraint.and_(MustBeDeadEndConstraint(T), NotOnCriticalPathConstraint(T)),
            MinDistanceFromStartConstraint(T, 3),
        )
        # critical path 0-1-2-3, room 5 is the off-path dead end
        assert verdicts(rule, fork) == [False, False, False, True, False, True]

    def test_wide_conjunction_is_fast(self, fork):
        leaves = [MinDistanceFromStartConstraint(T, 0) for _ in range(15)]
        rule = CompositeConstraint.and_(*leaves)
        start = time.time()
        for _ in range(100):
            assert all(verdicts(rule, fork))
        assert time.time() - start < 1.0


class TestMetadata:
    """Composite metadata is derived from the children."""

    def test_reference_types_are_unioned(self):
        rule = CompositeConstraint.and_(
            MustNotBeAdjacentToConstraint(T, BOSS),
            CompositeConstraint.not_(MaxDistanceFromRoomTypeConstraint(T, 2, SHOP)),
        )
        assert rule.reference_room_types == frozenset({BOSS, SHOP})
        assert rule.depends_on_assignments

    def test_static_children_stay_static(self):
        rule = CompositeConstraint.or_(MustBeDeadEndConstraint(T), NotOnCriticalPathConstraint(T))
        assert rule.reference_room_types == frozenset()
        assert not rule.depends_on_assignments

    def test_priority_is_max_of_children(self):
        dead_end = MustBeDeadEndConstraint(T)
        far = MinDistanceFromStartConstraint(T, 2)
        assert CompositeConstraint.and_(far, dead_end).priority == dead_end.priority

    def test_children_and_repr(self):
        a, b = MustBeDeadEndConstraint(T), NotOnCriticalPathConstraint(T)
        rule = CompositeConstraint.and_(a, b)
        assert rule.constraints == (a, b)
        assert repr(rule) == f"AND({a!r}, {b!r})"
