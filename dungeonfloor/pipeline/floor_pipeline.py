"""
Floor Pipeline with Retry Logic
===============================

Topology generation followed by room type assignment, retried with a fresh
seed when the assignment is unsatisfiable for the drawn topology.

Attempt k (0-based) uses random.Random(seed + k) for both stages, so a floor
is fully reproducible from (config, seed) and the attempt number reported in
the FloorPlan.

Usage:
    config = FloorConfig(
        seed=42,
        room_count=12,
        spawn_room_type=RoomType.SPAWN,
        boss_room_type=RoomType.BOSS,
        default_room_type=RoomType.COMBAT,
        constraints=[MustBeDeadEndConstraint(RoomType.TREASURE)],
        room_requirements=[(RoomType.TREASURE, 2)],
        max_attempts=5,
    )
    plan = FloorGenerator(config).generate()
    print(plan.assignments)
"""

import logging
import random
import time
from dataclasses import dataclass, field
from numbers import Integral
from typing import Any, Callable, List, Mapping, Optional, Tuple

from dungeonfloor.constants.generation_constants import (
    DEFAULT_BRANCHING_FACTOR,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_ROOM_COUNT,
)
from dungeonfloor.constraints.base import ConstraintSpec, group_constraints
from dungeonfloor.core.definitions import RoomGraph
from dungeonfloor.core.exceptions import ConstraintViolationError, InvalidConfigurationError
from dungeonfloor.generation.graph_generator import GraphGenerator, validate_generation_parameters
from dungeonfloor.generation.room_type_assigner import (
    AssignmentResult,
    RoomTypeAssigner,
    SolverConfig,
)

logger = logging.getLogger(__name__)


@dataclass
class FloorConfig:
    """Configuration for generating one floor."""
    spawn_room_type: Any
    boss_room_type: Any
    default_room_type: Any
    seed: Optional[int] = None  # None = draw one, reported in FloorPlan.seed
    room_count: int = DEFAULT_ROOM_COUNT
    branching_factor: float = DEFAULT_BRANCHING_FACTOR
    constraints: List[ConstraintSpec] = field(default_factory=list)
    room_requirements: List[Tuple[Any, int]] = field(default_factory=list)
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    # Capability check of the room template catalogue
    template_supports: Optional[Callable[[Any], bool]] = None
    solver: SolverConfig = field(default_factory=SolverConfig)

    def used_room_types(self) -> List[Any]:
        """Every room type the floor may contain, anchors first."""
        types = [self.spawn_room_type, self.boss_room_type, self.default_room_type]
        types.extend(room_type for room_type, _ in self.room_requirements)
        types.extend(group_constraints(self.constraints))
        return list(dict.fromkeys(types))

    def validate(self) -> None:
        """
        Check the configuration before any generation work.

        Raises:
            InvalidConfigurationError: bad room count, branching factor,
                attempt count, or a room type without templates
        """
        validate_generation_parameters(self.room_count, self.branching_factor)

        attempts = self.max_attempts
        if isinstance(attempts, bool) or not isinstance(attempts, Integral) or attempts < 1:
            raise InvalidConfigurationError(
                f"max_attempts must be a positive integer, got {self.max_attempts!r}"
            )

        required_rooms = 2 + sum(count for _, count in self.room_requirements)
        if required_rooms > self.room_count:
            logger.warning(
                f"{required_rooms} rooms required (spawn, boss and requirements) "
                f"but room_count is {self.room_count}"
            )

        if self.template_supports is not None:
            unsupported = [t for t in self.used_room_types() if not self.template_supports(t)]
            if unsupported:
                raise InvalidConfigurationError(
                    f"No room templates available for room types {unsupported!r}"
                )


@dataclass
class FloorPlan:
    """A generated floor with every node typed."""
    graph: RoomGraph
    assignments: Mapping[int, Any]
    boss_node_id: int
    seed: int
    attempts: int = 1
    backtracks: int = 0
    execution_time: float = 0.0


class FloorGenerator:
    """
    Generates floors from a FloorConfig.

    Each attempt can fail (unsatisfiable assignment for the drawn topology)
    and retry independently; configuration errors are never retried.
    """

    def __init__(self, config: FloorConfig):
        """
        Args:
            config: Floor configuration (validated here)
        """
        config.validate()
        self.config = config
        # Attempts pass their own rng
        self.graph_generator = GraphGenerator()
        self.assigner = RoomTypeAssigner(config.solver)
        self.history: List[AssignmentResult] = []

    def generate(self) -> FloorPlan:
        """
        Generate a floor, retrying up to max_attempts times.

        Returns:
            FloorPlan of the first successful attempt

        Raises:
            ConstraintViolationError: every attempt was unsatisfiable
                (details of the last attempt)
        """
        config = self.config
        seed = config.seed if config.seed is not None else random.randrange(2 ** 31)
        self.history = []
        start_time = time.time()

        for attempt in range(config.max_attempts):
            attempt_seed = seed + attempt
            rng = random.Random(attempt_seed)
            logger.info(f"[floor] Attempt {attempt + 1}/{config.max_attempts} (seed {attempt_seed})")

            graph = self.graph_generator.generate(config.room_count, config.branching_factor, rng=rng)
            result = self.assigner.assign(
                graph,
                config.spawn_room_type,
                config.boss_room_type,
                config.default_room_type,
                config.constraints,
                room_requirements=config.room_requirements,
                rng=rng,
            )
            self.history.append(result)

            if result.success:
                execution_time = time.time() - start_time
                logger.info(
                    f"[floor] Success in {execution_time:.2f}s: {graph.node_count} rooms, "
                    f"boss at node {result.boss_node_id}"
                )
                return FloorPlan(
                    graph=graph,
                    assignments=result.assignments,
                    boss_node_id=result.boss_node_id,
                    seed=seed,
                    attempts=attempt + 1,
                    backtracks=result.backtracks,
                    execution_time=execution_time,
                )

            logger.warning(f"[floor] Attempt {attempt + 1} failed: {result.reason}")

        logger.error(f"[floor] Failed after {config.max_attempts} attempts")
        last = self.history[-1]
        raise ConstraintViolationError(
            f"Floor generation failed after {config.max_attempts} attempts: {last.reason}",
            room_type=last.failed_room_type,
            constraint=last.failed_constraint,
            node_id=last.failed_node_id,
        )


def generate_floor(config: FloorConfig) -> FloorPlan:
    """Generate one floor from config (see FloorGenerator.generate)."""
    return FloorGenerator(config).generate()
