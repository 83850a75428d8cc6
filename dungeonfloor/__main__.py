"""
DUNGEON FLOOR GENERATOR - Command Line Entry Point
==================================================
Generate -> Assign -> Validate

Generates a demo floor with a small rule set and prints it.

Usage:
    # One floor with the default demo rules
    python -m dungeonfloor --seed 42

    # Bigger, bushier floor with retries
    python -m dungeonfloor --rooms 20 --branching 0.5 --attempts 5

    # Save the floor in the replay format
    python -m dungeonfloor --seed 42 --json floor.json
"""

import argparse
import json
import logging
import sys
from enum import Enum

from dungeonfloor.constants.generation_constants import (
    DEFAULT_BRANCHING_FACTOR,
    DEFAULT_MAX_BACKTRACKS,
    DEFAULT_ROOM_COUNT,
)
from dungeonfloor.constraints import (
    CompositeConstraint,
    MaxDistanceFromRoomTypeConstraint,
    MaxPerFloorConstraint,
    MinDistanceFromRoomTypeConstraint,
    MinDistanceFromStartConstraint,
    MustBeDeadEndConstraint,
    MustNotBeAdjacentToConstraint,
    NotOnCriticalPathConstraint,
    OnlyOnCriticalPathConstraint,
)
from dungeonfloor.core.exceptions import ConstraintViolationError, InvalidConfigurationError
from dungeonfloor.generation.room_type_assigner import SolverConfig
from dungeonfloor.pipeline.floor_pipeline import FloorConfig, FloorGenerator, FloorPlan
from dungeonfloor.utils.graph_utils import floor_to_dict, save_floor, validate_topology

logger = logging.getLogger(__name__)


class DemoRoomType(Enum):
    """Room types used by the demo rule set."""
    SPAWN = 'S'
    BOSS = 'B'
    COMBAT = '.'
    TREASURE = 'T'
    SHOP = '$'
    SECRET = '?'


def demo_constraints():
    """Rule set for the demo floor."""
    R = DemoRoomType
    return [
        # Boss
        MinDistanceFromStartConstraint(R.BOSS, 3),
        OnlyOnCriticalPathConstraint(R.BOSS),
        # Treasure off the main route, not next to the boss
        MustBeDeadEndConstraint(R.TREASURE),
        CompositeConstraint.and_(
            NotOnCriticalPathConstraint(R.TREASURE),
            MustNotBeAdjacentToConstraint(R.TREASURE, R.BOSS),
        ),
        # One shop, reachable early
        MaxPerFloorConstraint(R.SHOP, 1),
        CompositeConstraint.not_(MustBeDeadEndConstraint(R.SHOP)),
        MaxDistanceFromRoomTypeConstraint(R.SHOP, 3, R.SPAWN),
        # Secret rooms keep away from each other
        MustBeDeadEndConstraint(R.SECRET),
        MinDistanceFromRoomTypeConstraint(R.SECRET, 3, R.SECRET, R.TREASURE),
    ]


def format_plan(plan: FloorPlan) -> str:
    """Render a floor plan as an indented tree from the start room."""
    graph = plan.graph
    lines = [
        f"Floor: {graph.node_count} rooms, seed {plan.seed}, "
        f"{plan.attempts} attempt(s), {plan.backtracks} backtrack(s)",
        f"Critical path: {' -> '.join(str(n) for n in graph.critical_path)}",
        "",
    ]

    visited = set()
    stack = [(graph.start_node_id, 0)]
    while stack:
        node_id, depth = stack.pop()
        if node_id in visited:
            continue
        visited.add(node_id)

        node = graph.get_node(node_id)
        room_type = plan.assignments[node_id]
        marker = '*' if node.is_on_critical_path else ' '
        lines.append(f"{'  ' * depth}{marker}[{room_type.value}] {node_id} {room_type.name}")

        children = [n for n in graph.neighbors(node_id) if n not in visited]
        for child in sorted(children, reverse=True):
            stack.append((child, depth + 1))

    return "\n".join(lines)


def main():
    parser = argparse.ArgumentParser(
        description='Dungeon floor generator - topology + room type assignment'
    )

    parser.add_argument(
        '--seed', '-s', type=int, default=None,
        help='Random seed (random if omitted)'
    )
    parser.add_argument(
        '--rooms', '-r', type=int, default=DEFAULT_ROOM_COUNT,
        help=f'Number of rooms (default: {DEFAULT_ROOM_COUNT})'
    )
    parser.add_argument(
        '--branching', '-b', type=float, default=DEFAULT_BRANCHING_FACTOR,
        help=f'Branching factor in [0, 1] (default: {DEFAULT_BRANCHING_FACTOR})'
    )
    parser.add_argument(
        '--treasure', type=int, default=1,
        help='Required treasure rooms (default: 1)'
    )
    parser.add_argument(
        '--attempts', '-a', type=int, default=3,
        help='Seeds to try before giving up (default: 3)'
    )
    parser.add_argument(
        '--max-backtracks', type=int, default=DEFAULT_MAX_BACKTRACKS,
        help=f'Solver backtrack limit (default: {DEFAULT_MAX_BACKTRACKS})'
    )
    parser.add_argument(
        '--json', '-j', type=str,
        help='Write the floor in the replay format to this file ("-" for stdout)'
    )
    parser.add_argument(
        '--verbose', '-v', action='store_true',
        help='Debug logging'
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    config = FloorConfig(
        seed=args.seed,
        room_count=args.rooms,
        branching_factor=args.branching,
        spawn_room_type=DemoRoomType.SPAWN,
        boss_room_type=DemoRoomType.BOSS,
        default_room_type=DemoRoomType.COMBAT,
        constraints=demo_constraints(),
        room_requirements=[(DemoRoomType.TREASURE, args.treasure), (DemoRoomType.SHOP, 1)],
        max_attempts=args.attempts,
        solver=SolverConfig(max_backtracks=args.max_backtracks),
    )

    try:
        plan = FloorGenerator(config).generate()
    except InvalidConfigurationError as e:
        parser.error(str(e))
    except ConstraintViolationError as e:
        logger.error(f"{e}")
        return 1

    is_valid, errors = validate_topology(plan.graph)
    if not is_valid:
        logger.error(f"Generated floor failed topology validation: {errors}")
        return 1

    if args.json == '-':
        json.dump(floor_to_dict(plan.graph, plan.assignments), sys.stdout, indent=2)
        print()
    elif args.json:
        save_floor(args.json, plan.graph, plan.assignments)
        print(f"Saved to: {args.json}")
    else:
        print(format_plan(plan))

    return 0


if __name__ == '__main__':
    sys.exit(main())
