"""
Room Type Assignment
====================

Decides which room type goes on every node of a generated floor.

Search order:
1. Start node gets the spawn type unconditionally
2. Boss: nodes satisfying every boss rule, farthest from start first
3. Required rooms (type, count): one decision per room, types that others
   refer to are placed first, then the most specific rules
4. Fill: every remaining node (in id order) tries each constrained
   non-default type whose rules pass, then falls back to the default type,
   which must pass its own rules too

Each decision is a frame on an explicit stack holding its ordered options and
a cursor. A placement is kept only if it does not break a rule of an
already-placed room (rules are re-evaluated against the map without the room
itself). When a frame runs out of options it is popped and the previous frame
moves on to its next option. The number of pops is bounded by
SolverConfig.max_backtracks so that hopeless configurations fail fast.

Failure is a value, not a crash: AssignmentResult(success=False) names the
room type, node and rule that could not be satisfied. unwrap() turns it into a
ConstraintViolationError for callers that prefer exceptions.

Usage:
    result = solve(
        graph,
        spawn_type=RoomType.SPAWN,
        boss_type=RoomType.BOSS,
        default_type=RoomType.COMBAT,
        constraints=[MustBeDeadEndConstraint(RoomType.TREASURE)],
        room_requirements=[(RoomType.TREASURE, 2)],
    )
    if result.success:
        print(result.assignments)
"""

import logging
import random
from dataclasses import dataclass, field
from enum import Enum, auto
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from dungeonfloor.constants.generation_constants import DEFAULT_MAX_BACKTRACKS
from dungeonfloor.constraints.base import Constraint, ConstraintSpec, group_constraints
from dungeonfloor.core.definitions import RoomGraph
from dungeonfloor.core.exceptions import ConstraintViolationError, InvalidConfigurationError
from dungeonfloor.utils.graph_utils import find_constraint_violations, validate_graph_integrity

logger = logging.getLogger(__name__)


# ============================================================================
# CONFIGURATION & RESULTS
# ============================================================================

@dataclass
class SolverConfig:
    """Configuration for the assignment search."""
    max_backtracks: int = DEFAULT_MAX_BACKTRACKS
    verify_solution: bool = True  # Re-validate the final map against every rule


@dataclass
class AssignmentResult:
    """Outcome of a room type assignment."""
    success: bool
    assignments: Mapping[int, Any] = field(default_factory=lambda: MappingProxyType({}))
    boss_node_id: Optional[int] = None
    backtracks: int = 0

    # Failure details
    failed_room_type: Any = None
    failed_node_id: Optional[int] = None
    failed_constraint: Optional[Constraint] = None
    reason: Optional[str] = None

    def unwrap(self) -> Mapping[int, Any]:
        """Return the assignments or raise ConstraintViolationError."""
        if not self.success:
            raise ConstraintViolationError(
                self.reason or "Room type assignment failed",
                room_type=self.failed_room_type,
                constraint=self.failed_constraint,
                node_id=self.failed_node_id,
            )
        return self.assignments


# ============================================================================
# INPUT NORMALIZATION
# ============================================================================

def normalize_requirements(
    room_requirements: Optional[Iterable[Tuple[Any, int]]],
    spawn_type: Any,
    boss_type: Any,
) -> List[Tuple[Any, int]]:
    """Validate (room_type, count) pairs, merging repeated types."""
    merged: Dict[Any, int] = {}
    for room_type, count in room_requirements or ():
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise InvalidConfigurationError(
                f"Room requirement count for {room_type!r} must be a non-negative integer, got {count!r}"
            )
        if room_type == spawn_type or room_type == boss_type:
            logger.debug(f"Ignoring requirement for anchor room type {room_type!r}")
            continue
        merged[room_type] = merged.get(room_type, 0) + count
    return [(room_type, count) for room_type, count in merged.items() if count > 0]


def order_requirements(
    requirements: Sequence[Tuple[Any, int]],
    rules: Mapping[Any, Sequence[Constraint]],
) -> List[Tuple[Any, int]]:
    """
    Order required types for placement.

    A type whose rules reference another required type is placed after it
    (restrictive rules such as max-distance cannot pass before their
    reference exists). Within one dependency level, higher priority first.
    """
    required = {room_type for room_type, _ in requirements}
    depth = {room_type: 0 for room_type in required}

    # Longest reference chain; bounded so reference cycles terminate
    for _ in range(len(required)):
        changed = False
        for room_type in required:
            for constraint in rules.get(room_type, ()):
                for ref in constraint.reference_room_types:
                    if ref in required and ref != room_type and depth[room_type] <= depth[ref]:
                        depth[room_type] = depth[ref] + 1
                        changed = True
        if not changed:
            break

    def priority(room_type: Any) -> int:
        return sum(c.priority for c in rules.get(room_type, ()))

    return sorted(requirements, key=lambda req: (depth[req[0]], -priority(req[0])))


# ============================================================================
# SEARCH
# ============================================================================

class DecisionKind(Enum):
    """What a search frame decides."""
    BOSS = auto()
    REQUIREMENT = auto()
    FILL = auto()


@dataclass
class Decision:
    """One frame of the backtracking stack."""
    kind: DecisionKind
    options: List[Tuple[int, Any]]  # (node_id, room_type) in preference order
    room_type: Any = None
    node_id: Optional[int] = None
    slot_index: int = -1
    cursor: int = 0
    placed_node: Optional[int] = None


class AssignmentSearch:
    """Backtracking search state for a single assign() call."""

    def __init__(
        self,
        graph: RoomGraph,
        spawn_type: Any,
        boss_type: Any,
        default_type: Any,
        rules: Dict[Any, List[Constraint]],
        slots: List[Any],
        requirement_counts: Dict[Any, int],
        fill_types: List[Any],
        rng: Optional[random.Random],
        config: SolverConfig,
    ):
        self.graph = graph
        self.spawn_type = spawn_type
        self.boss_type = boss_type
        self.default_type = default_type
        self.rules = rules
        self.slots = slots
        self.requirement_counts = requirement_counts
        self.fill_types = fill_types
        self.config = config

        self.assignments: Dict[int, Any] = {graph.start_node_id: spawn_type}
        self.stack: List[Decision] = []
        self.backtracks = 0
        self._dead_end: Optional[Tuple[int, Decision, Optional[Constraint]]] = None

        # Fixed candidate order per required type; consecutive slots of the
        # same type only look further along it, so the search enumerates
        # combinations rather than permutations.
        node_ids = [n.id for n in graph.nodes if n.id != graph.start_node_id]
        self.candidate_order: Dict[Any, List[int]] = {}
        for room_type in dict.fromkeys(slots):
            order = list(node_ids)
            if rng is not None:
                rng.shuffle(order)
            self.candidate_order[room_type] = order

    # ------------------------------------------------------------------
    # Rule evaluation
    # ------------------------------------------------------------------

    def passes(self, node_id: int, room_type: Any) -> bool:
        """Check every rule of room_type at node_id against the current map."""
        node = self.graph.get_node(node_id)
        for constraint in self.rules.get(room_type, ()):
            if not constraint.is_valid(node, self.graph, self.assignments):
                return False
        return True

    def still_valid(self, node_id: int) -> bool:
        """Re-check a placed room against the map without itself."""
        room_type = self.assignments.pop(node_id)
        try:
            return self.passes(node_id, room_type)
        finally:
            self.assignments[node_id] = room_type

    def _affected_by(self, placed_type: Any, room_type: Any) -> bool:
        for constraint in self.rules.get(room_type, ()):
            if not constraint.depends_on_assignments:
                continue
            refs = constraint.reference_room_types
            if not refs or placed_type in refs:
                return True
        return False

    def is_consistent(self, node_id: int, room_type: Any) -> bool:
        """Whether placing room_type at node_id keeps earlier rooms valid."""
        for other_id, other_type in list(self.assignments.items()):
            if other_id == node_id or other_id == self.graph.start_node_id:
                continue
            if self._affected_by(room_type, other_type) and not self.still_valid(other_id):
                logger.debug(
                    f"Placing {room_type!r} at node {node_id} breaks "
                    f"{other_type!r} at node {other_id}"
                )
                return False
        return True

    def blame(self, room_type: Any, node_ids: Optional[Sequence[int]] = None) -> Optional[Constraint]:
        """Rule of room_type rejecting the most candidate nodes."""
        if node_ids is None:
            node_ids = [n.id for n in self.graph.nodes if n.id not in self.assignments]
        worst: Optional[Constraint] = None
        worst_rejections = 0
        for constraint in self.rules.get(room_type, ()):
            rejections = sum(
                1 for node_id in node_ids
                if not constraint.is_valid(self.graph.get_node(node_id), self.graph, self.assignments)
            )
            if rejections > worst_rejections:
                worst, worst_rejections = constraint, rejections
        return worst

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def next_decision(self) -> Optional[Decision]:
        """Build the frame for the next undecided choice (None when complete)."""
        if not self.stack:
            candidates = [
                n for n in self.graph.nodes
                if n.id != self.graph.start_node_id and self.passes(n.id, self.boss_type)
            ]
            # Farthest first, unreachable last, lowest id on ties
            candidates.sort(key=lambda n: (
                n.distance_from_start is None,
                -(n.distance_from_start or 0),
                n.id,
            ))
            return Decision(
                kind=DecisionKind.BOSS,
                options=[(n.id, self.boss_type) for n in candidates],
                room_type=self.boss_type,
            )

        slot_index = sum(1 for d in self.stack if d.kind == DecisionKind.REQUIREMENT)
        if slot_index < len(self.slots):
            room_type = self.slots[slot_index]
            order = self.candidate_order[room_type]
            start = 0
            previous = self.stack[-1]
            if previous.kind == DecisionKind.REQUIREMENT and previous.room_type == room_type:
                start = order.index(previous.placed_node) + 1
            options = [
                (node_id, room_type) for node_id in order[start:]
                if node_id not in self.assignments and self.passes(node_id, room_type)
            ]
            return Decision(
                kind=DecisionKind.REQUIREMENT,
                options=options,
                room_type=room_type,
                slot_index=slot_index,
            )

        for node in self.graph.nodes:
            if node.id not in self.assignments:
                options = [
                    (node.id, room_type)
                    for room_type in self.fill_types + [self.default_type]
                    if self.passes(node.id, room_type)
                ]
                return Decision(kind=DecisionKind.FILL, options=options, node_id=node.id)

        return None

    def advance(self, decision: Decision) -> bool:
        """Place the next consistent option of decision; False if exhausted."""
        while decision.cursor < len(decision.options):
            node_id, room_type = decision.options[decision.cursor]
            decision.cursor += 1

            self.assignments[node_id] = room_type
            if self.is_consistent(node_id, room_type):
                decision.placed_node = node_id
                return True
            del self.assignments[node_id]

        return False

    def undo(self, decision: Decision) -> None:
        if decision.placed_node is not None:
            del self.assignments[decision.placed_node]
            decision.placed_node = None

    def record_dead_end(self, decision: Decision) -> None:
        """Remember the deepest frame that ran out of options."""
        depth = len(self.stack)
        if self._dead_end is not None and self._dead_end[0] > depth:
            return

        if decision.kind == DecisionKind.FILL:
            constraint = self.blame(self.default_type, [decision.node_id])
        else:
            constraint = self.blame(decision.room_type)
        self._dead_end = (depth, decision, constraint)

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def run(self) -> AssignmentResult:
        self.stack.append(self.next_decision())

        while self.stack:
            top = self.stack[-1]
            self.undo(top)

            if self.advance(top):
                following = self.next_decision()
                if following is None:
                    return self.success()
                self.stack.append(following)
                continue

            self.record_dead_end(top)
            self.stack.pop()
            if self.stack:
                self.backtracks += 1
                if self.backtracks > self.config.max_backtracks:
                    return self.failure(
                        f"Search gave up after {self.config.max_backtracks} backtracks"
                    )

        return self.failure()

    def success(self) -> AssignmentResult:
        boss_node_id = self.stack[0].placed_node

        if self.config.verify_solution:
            violations = find_constraint_violations(
                self.graph, self.assignments, self.rules, self.spawn_type
            )
            if violations:
                return self.failure(f"Final assignment violates rules: {violations[0]}")

        logger.debug(
            f"Assigned {len(self.assignments)} rooms (boss at node {boss_node_id}, "
            f"{self.backtracks} backtracks)"
        )
        return AssignmentResult(
            success=True,
            assignments=MappingProxyType(dict(sorted(self.assignments.items()))),
            boss_node_id=boss_node_id,
            backtracks=self.backtracks,
        )

    def failure(self, prefix: Optional[str] = None) -> AssignmentResult:
        room_type: Any = None
        node_id: Optional[int] = None
        constraint: Optional[Constraint] = None
        reason = "No valid room type assignment exists"

        if self._dead_end is not None:
            _, decision, constraint = self._dead_end
            if decision.kind == DecisionKind.BOSS:
                room_type = self.boss_type
                reason = f"No valid location for {self.boss_type!r}"
            elif decision.kind == DecisionKind.REQUIREMENT:
                room_type = decision.room_type
                placed = sum(1 for t in self.slots[:decision.slot_index] if t == room_type)
                reason = (
                    f"Could only place {placed}/{self.requirement_counts[room_type]} "
                    f"rooms of type {room_type!r}"
                )
            else:
                room_type = self.default_type
                node_id = decision.node_id
                reason = (
                    f"No room type fits node {node_id} "
                    f"(default {self.default_type!r} not allowed there)"
                )
            if constraint is not None:
                reason += f"; most restrictive rule: {constraint!r}"

        if prefix:
            reason = f"{prefix}. {reason}"

        logger.debug(f"Assignment failed: {reason}")
        return AssignmentResult(
            success=False,
            backtracks=self.backtracks,
            failed_room_type=room_type,
            failed_node_id=node_id,
            failed_constraint=constraint,
            reason=reason,
        )


class RoomTypeAssigner:
    """Assigns room types to all nodes of a floor graph."""

    def __init__(self, config: Optional[SolverConfig] = None):
        self.config = config or SolverConfig()

    def assign(
        self,
        graph: RoomGraph,
        spawn_type: Any,
        boss_type: Any,
        default_type: Any,
        constraints: Iterable[ConstraintSpec] = (),
        room_requirements: Optional[Iterable[Tuple[Any, int]]] = None,
        rng: Optional[random.Random] = None,
    ) -> AssignmentResult:
        """
        Assign a room type to every node.

        Args:
            graph: Floor graph (read only)
            spawn_type: Type for the start node
            boss_type: Type for the boss room
            default_type: Fallback type for nodes no other type claims
            constraints: Rules, each a Constraint or (room_type, Constraint)
            room_requirements: (room_type, count) rooms that must be placed
            rng: Shuffles candidate nodes for required rooms (id order if None)

        Returns:
            AssignmentResult, successful with a total map or failed with details

        Raises:
            InvalidConfigurationError: malformed constraints or requirements
            GraphIntegrityError: graph breaks a structural invariant
        """
        validate_graph_integrity(graph)
        if self.config.max_backtracks < 0:
            raise InvalidConfigurationError(
                f"max_backtracks must be non-negative, got {self.config.max_backtracks}"
            )

        rules = group_constraints(constraints)
        requirements = order_requirements(
            normalize_requirements(room_requirements, spawn_type, boss_type), rules
        )
        required_types = {room_type for room_type, _ in requirements}
        anchors = {spawn_type, boss_type, default_type}
        fill_types = [t for t in rules if t not in anchors and t not in required_types]

        slots = [room_type for room_type, count in requirements for _ in range(count)]

        logger.debug(
            f"Assigning {graph.node_count} rooms: {len(slots)} required placements, "
            f"fill types {fill_types!r}"
        )

        search = AssignmentSearch(
            graph=graph,
            spawn_type=spawn_type,
            boss_type=boss_type,
            default_type=default_type,
            rules=rules,
            slots=slots,
            requirement_counts=dict(requirements),
            fill_types=fill_types,
            rng=rng,
            config=self.config,
        )
        return search.run()


def solve(
    graph: RoomGraph,
    spawn_type: Any,
    boss_type: Any,
    default_type: Any,
    constraints: Iterable[ConstraintSpec] = (),
    room_requirements: Optional[Iterable[Tuple[Any, int]]] = None,
    rng: Optional[random.Random] = None,
    config: Optional[SolverConfig] = None,
) -> AssignmentResult:
    """Assign room types to every node of graph (see RoomTypeAssigner.assign)."""
    return RoomTypeAssigner(config).assign(
        graph,
        spawn_type,
        boss_type,
        default_type,
        constraints,
        room_requirements=room_requirements,
        rng=rng,
    )
