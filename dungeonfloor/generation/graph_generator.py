"""
Floor Topology Generator
========================

Builds the room graph of a floor as a random tree.

Process:
1. Create the start room (id 0)
2. For every further room, draw from the random source:
    - with probability `branching_factor`, attach it to a uniformly random
      existing room (branching)
    - otherwise attach it to the tip of the current longest chain (linear growth)
3. One BFS from the start assigns distances; the longest start-to-leaf
   chain becomes the critical path

Every new room adds exactly one connection, so the result is a tree with
`node_count - 1` connections: connected and acyclic by construction.

Determinism:
    The generator draws only from the injected `random.Random`. Same seed and
    same parameters produce the same graph, node for node. Never share one
    Random instance between concurrent generate() calls.

Usage:
    generator = GraphGenerator(seed=42)
    graph = generator.generate(node_count=12, branching_factor=0.3)
"""

import logging
import random
from numbers import Integral, Real
from typing import List, Optional

from dungeonfloor.constants.generation_constants import (
    MAX_BRANCHING_FACTOR,
    MIN_BRANCHING_FACTOR,
    MIN_ROOM_COUNT,
)
from dungeonfloor.core.definitions import RoomGraph, RoomGraphBuilder
from dungeonfloor.core.exceptions import InvalidConfigurationError

logger = logging.getLogger(__name__)


class GraphGenerator:
    """
    Seeded spanning-tree generator for floor topologies.

    The generator owns a private random source created from `seed`; callers
    that manage their own source pass it to generate() instead.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Args:
            seed: Random seed for deterministic generation
        """
        self.seed = seed
        self.rng = random.Random(seed)

    def generate(
        self,
        node_count: int,
        branching_factor: float,
        rng: Optional[random.Random] = None,
    ) -> RoomGraph:
        """
        Generate a connected floor graph.

        Args:
            node_count: Number of rooms (>= 1)
            branching_factor: Probability in [0, 1] that a room branches off a
                random earlier room instead of extending the main chain
            rng: Random source to draw from (defaults to the generator's own)

        Returns:
            RoomGraph with distances and critical path computed

        Raises:
            InvalidConfigurationError: node_count < 1 or branching_factor
                outside [0, 1]
        """
        validate_generation_parameters(node_count, branching_factor)
        rng = rng if rng is not None else self.rng

        builder = RoomGraphBuilder()
        start = builder.add_node()
        builder.set_start(start)

        depths: List[int] = [0]
        chain_tip = start
        branches = 0

        for node_id in range(1, node_count):
            if rng.random() < branching_factor:
                parent = rng.randrange(node_id)
                branches += 1
            else:
                parent = chain_tip

            builder.add_node()
            builder.connect(parent, node_id)
            depths.append(depths[parent] + 1)

            if depths[node_id] > depths[chain_tip]:
                chain_tip = node_id

        graph = builder.build()

        logger.debug(
            f"Generated floor graph: {graph.node_count} nodes, "
            f"{graph.connection_count} connections, {branches} branches, "
            f"{len(graph.dead_ends())} dead ends, "
            f"critical path length {len(graph.critical_path)}"
        )

        return graph


def validate_generation_parameters(node_count: int, branching_factor: float) -> None:
    """Fail fast on parameters the generator cannot honour."""
    if isinstance(node_count, bool) or not isinstance(node_count, Integral):
        raise InvalidConfigurationError(f"node_count must be an integer, got {node_count!r}")
    if node_count < MIN_ROOM_COUNT:
        raise InvalidConfigurationError(
            f"node_count must be at least {MIN_ROOM_COUNT}, got {node_count}"
        )
    if isinstance(branching_factor, bool) or not isinstance(branching_factor, Real):
        raise InvalidConfigurationError(
            f"branching_factor must be a number, got {branching_factor!r}"
        )
    if not MIN_BRANCHING_FACTOR <= branching_factor <= MAX_BRANCHING_FACTOR:
        raise InvalidConfigurationError(
            f"branching_factor must be in [{MIN_BRANCHING_FACTOR}, {MAX_BRANCHING_FACTOR}], "
            f"got {branching_factor}"
        )
