"""
Tests for Placement Constraints
===============================

Covers:
1. Structural rules (distance from start, dead end, critical path, degree)
2. Relational rules and the unassigned-reference policy
3. Disconnected graphs (unreachable counts as infinitely far)
4. Constraint metadata used by the solver

Run: pytest tests/test_constraints.py -v
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dungeonfloor.constraints import (
    CustomConstraint,
    MaxConnectionCountConstraint,
    MaxDistanceFromRoomTypeConstraint,
    MaxDistanceFromStartConstraint,
    MaxPerFloorConstraint,
    MinConnectionCountConstraint,
    MinDistanceFromRoomTypeConstraint,
    MinDistanceFromStartConstraint,
    MustBeAdjacentToConstraint,
    MustBeDeadEndConstraint,
    MustComeBeforeConstraint,
    MustNotBeAdjacentToConstraint,
    NotOnCriticalPathConstraint,
    OnlyOnCriticalPathConstraint,
    group_constraints,
)
from dungeonfloor.core import InvalidConfigurationError, RoomGraph

T = 'treasure'
BOSS = 'boss'
SHOP = 'shop'


@pytest.fixture
def chain():
    """Linear floor 0-1-2-3-4, all on the critical path."""
    return RoomGraph.from_edges(5, [(0, 1), (1, 2), (2, 3), (3, 4)])


@pytest.fixture
def fork():
    """
    0 - 1 - 2 - 3
        |
        4
    """
    return RoomGraph.from_edges(5, [(0, 1), (1, 2), (2, 3), (1, 4)])


@pytest.fixture
def split():
    """Two components: 0-1 (start side) and 2-3."""
    return RoomGraph.from_edges(4, [(0, 1), (2, 3)])


def verdicts(constraint, graph, assignments=None):
    assignments = assignments or {}
    return [constraint.is_valid(node, graph, assignments) for node in graph.nodes]


class TestStructuralConstraints:
    """Rules on facts fixed at generation time."""

    def test_min_distance_from_start(self, chain):
        assert verdicts(MinDistanceFromStartConstraint(T, 2), chain) == [False, False, True, True, True]

    def test_max_distance_from_start(self, chain):
        assert verdicts(MaxDistanceFromStartConstraint(T, 2), chain) == [True, True, True, False, False]

    @pytest.mark.parametrize("bound", range(6))
    def test_distance_rules_are_monotonic(self, chain, bound):
        """Once Min passes it keeps passing further out, Max the other way round."""
        min_results = verdicts(MinDistanceFromStartConstraint(T, bound), chain)
        max_results = verdicts(MaxDistanceFromStartConstraint(T, bound), chain)
        assert min_results == sorted(min_results)
        assert max_results == sorted(max_results, reverse=True)

    def test_unreachable_node(self, split):
        unreachable = split.get_node(3)
        assert MinDistanceFromStartConstraint(T, 50).is_valid(unreachable, split, {})
        assert not MaxDistanceFromStartConstraint(T, 50).is_valid(unreachable, split, {})

    def test_dead_end(self, fork):
        assert verdicts(MustBeDeadEndConstraint(T), fork) == [True, False, False, True, True]

    def test_critical_path_membership(self, fork):
        assert fork.critical_path == (0, 1, 2, 3)
        assert verdicts(OnlyOnCriticalPathConstraint(T), fork) == [True, True, True, True, False]
        assert verdicts(NotOnCriticalPathConstraint(T), fork) == [False, False, False, False, True]

    def test_connection_count(self, fork):
        assert verdicts(MinConnectionCountConstraint(T, 2), fork) == [False, True, True, False, False]
        assert verdicts(MaxConnectionCountConstraint(T, 2), fork) == [True, False, True, True, True]

    @pytest.mark.parametrize("factory", [
        lambda: MinDistanceFromStartConstraint(T, -1),
        lambda: MaxDistanceFromStartConstraint(T, -1),
        lambda: MinConnectionCountConstraint(T, -2),
        lambda: MaxConnectionCountConstraint(T, -2),
        lambda: MinDistanceFromRoomTypeConstraint(T, -1, BOSS),
        lambda: MaxDistanceFromRoomTypeConstraint(T, -1, BOSS),
        lambda: MaxPerFloorConstraint(T, -1),
    ])
    def test_negative_bounds_rejected(self, factory):
        with pytest.raises(InvalidConfigurationError):
            factory()


class TestDistanceFromRoomType:
    """Min / max distance to the nearest placed reference room."""

    def test_min_without_reference_passes(self, chain):
        assert all(verdicts(MinDistanceFromRoomTypeConstraint(T, 3, BOSS), chain))

    def test_max_without_reference_fails(self, chain):
        assert not any(verdicts(MaxDistanceFromRoomTypeConstraint(T, 3, BOSS), chain))

    def test_min_with_reference(self, chain):
        constraint = MinDistanceFromRoomTypeConstraint(T, 2, BOSS)
        assert verdicts(constraint, chain, {4: BOSS}) == [True, True, True, False, False]

    def test_max_with_reference(self, chain):
        constraint = MaxDistanceFromRoomTypeConstraint(T, 1, BOSS)
        assert verdicts(constraint, chain, {4: BOSS}) == [False, False, False, True, True]

    def test_monotonic_along_chain(self, chain):
        assignments = {0: BOSS}
        nodes = [chain.get_node(i) for i in (1, 2, 3, 4)]
        min_rule = MinDistanceFromRoomTypeConstraint(T, 3, BOSS)
        max_rule = MaxDistanceFromRoomTypeConstraint(T, 2, BOSS)
        assert [min_rule.is_valid(n, chain, assignments) for n in nodes] == [False, False, True, True]
        assert [max_rule.is_valid(n, chain, assignments) for n in nodes] == [True, True, False, False]

    def test_nearest_across_all_reference_types(self, chain):
        constraint = MinDistanceFromRoomTypeConstraint(T, 2, BOSS, SHOP)
        assignments = {0: SHOP, 4: BOSS}
        assert not constraint.is_valid(chain.get_node(1), chain, assignments)
        assert constraint.is_valid(chain.get_node(2), chain, assignments)

    def test_assigned_candidate_is_a_reference(self, chain):
        """The map is read as given: a placed candidate sits at distance 0."""
        node = chain.get_node(4)
        assignments = {4: BOSS}
        assert MaxDistanceFromRoomTypeConstraint(T, 1, BOSS).is_valid(node, chain, assignments)
        assert not MinDistanceFromRoomTypeConstraint(T, 2, BOSS).is_valid(node, chain, assignments)

    def test_same_type_spacing(self, chain):
        constraint = MinDistanceFromRoomTypeConstraint(BOSS, 2, BOSS)
        node = chain.get_node(2)
        assert not constraint.is_valid(node, chain, {2: BOSS})
        # Re-check view: the room itself taken out of the map
        assert constraint.is_valid(node, chain, {0: BOSS})
        assert not constraint.is_valid(node, chain, {3: BOSS})

    def test_unreachable_reference(self, split):
        node = split.get_node(1)
        assignments = {3: BOSS}
        assert MinDistanceFromRoomTypeConstraint(T, 2, BOSS).is_valid(node, split, assignments)
        assert not MaxDistanceFromRoomTypeConstraint(T, 2, BOSS).is_valid(node, split, assignments)

    def test_reference_type_required(self):
        with pytest.raises(InvalidConfigurationError):
            MinDistanceFromRoomTypeConstraint(T, 2)
        with pytest.raises(InvalidConfigurationError):
            MaxDistanceFromRoomTypeConstraint(T, 2)


class TestNeighborhoodConstraints:
    """Adjacency, ordering and per-floor limits."""

    def test_must_be_adjacent(self, fork):
        constraint = MustBeAdjacentToConstraint(T, SHOP)
        assert not any(verdicts(constraint, fork))
        assert verdicts(constraint, fork, {1: SHOP}) == [True, False, True, False, True]

    def test_must_not_be_adjacent(self, fork):
        constraint = MustNotBeAdjacentToConstraint(T, BOSS)
        assert all(verdicts(constraint, fork))
        assert verdicts(constraint, fork, {3: BOSS}) == [True, True, False, True, True]

    def test_must_come_before(self, fork):
        constraint = MustComeBeforeConstraint(T, BOSS)
        assignments = {2: BOSS}
        assert constraint.is_valid(fork.get_node(1), fork, assignments)
        assert not constraint.is_valid(fork.get_node(3), fork, assignments)
        # Off the critical path: permissive
        assert constraint.is_valid(fork.get_node(4), fork, assignments)

    def test_must_come_before_without_reference_on_path(self, fork):
        constraint = MustComeBeforeConstraint(T, BOSS)
        assert all(verdicts(constraint, fork))
        assert all(verdicts(constraint, fork, {4: BOSS}))

    def test_max_per_floor(self, chain):
        constraint = MaxPerFloorConstraint(SHOP, 1)
        assert constraint.is_valid(chain.get_node(3), chain, {})
        assert not constraint.is_valid(chain.get_node(3), chain, {2: SHOP})
        # Every placed room counts, the candidate's own included
        assert not constraint.is_valid(chain.get_node(2), chain, {2: SHOP})
        assert not MaxPerFloorConstraint(BOSS, 1).is_valid(chain.get_node(4), chain, {4: BOSS})

    def test_custom_constraint(self, chain):
        even = CustomConstraint(T, lambda node, graph, assignments: node.id % 2 == 0)
        assert verdicts(even, chain) == [True, False, True, False, True]


class TestConstraintMetadata:
    """Information the solver reads from rules."""

    def test_structural_rules_are_static(self):
        constraint = MustBeDeadEndConstraint(T)
        assert constraint.target_room_type == T
        assert constraint.reference_room_types == frozenset()
        assert not constraint.depends_on_assignments

    def test_relational_rules_declare_references(self):
        constraint = MaxDistanceFromRoomTypeConstraint(T, 2, BOSS, SHOP)
        assert constraint.reference_room_types == frozenset({BOSS, SHOP})
        assert constraint.depends_on_assignments

    def test_max_per_floor_references_itself(self):
        assert MaxPerFloorConstraint(SHOP, 1).reference_room_types == frozenset({SHOP})

    def test_priority_prefers_specific_rules(self):
        assert MustBeDeadEndConstraint(T).priority > MinDistanceFromStartConstraint(T, 1).priority
        assert CustomConstraint(T, lambda *args: True).priority == 1

    def test_repr_names_parameters(self):
        assert repr(MinDistanceFromStartConstraint(T, 3)) == "MinDistanceFromStartConstraint('treasure', 3)"
        assert repr(MustBeDeadEndConstraint(T)) == "MustBeDeadEndConstraint('treasure')"


class TestGrouping:
    """Tagging rules by room type."""

    def test_tagged_and_paired_forms(self):
        dead_end = MustBeDeadEndConstraint(T)
        far = MinDistanceFromStartConstraint(BOSS, 3)
        grouped = group_constraints([dead_end, (SHOP, far), far])
        assert grouped == {T: [dead_end], SHOP: [far], BOSS: [far]}
        assert list(grouped) == [T, SHOP, BOSS]

    @pytest.mark.parametrize("item", [
        ('shop',),
        ('shop', 'not a constraint'),
        'not a constraint',
    ])
    def test_malformed_items_rejected(self, item):
        with pytest.raises(InvalidConfigurationError):
            group_constraints([item])
