"""
dungeonfloor - Floor Graph Generation
=====================================

Procedural dungeon floor layouts as room graphs, plus constraint-driven
room type assignment.

Submodules:
- core: graph model (RoomNode, RoomConnection, RoomGraph, RoomGraphBuilder) + errors
- constraints: placement rules and AND / OR / NOT composition
- generation: seeded topology generator and backtracking assigner
- pipeline: retrying end-to-end floor generation
- utils: networkx bridge, validation, replay serialization

Usage:
    from dungeonfloor import GraphGenerator, solve
    graph = GraphGenerator(seed=42).generate(node_count=12, branching_factor=0.3)
    result = solve(graph, 'spawn', 'boss', 'combat')
"""

__version__ = "1.0.0"

from dungeonfloor.core import (
    RoomNode,
    RoomConnection,
    RoomGraph,
    RoomGraphBuilder,
    GenerationError,
    InvalidConfigurationError,
    GraphIntegrityError,
    ConstraintViolationError,
)
from dungeonfloor.constraints import Constraint, CompositeConstraint, CustomConstraint
from dungeonfloor.utils import validate_topology, find_constraint_violations
from dungeonfloor.generation import (
    GraphGenerator,
    RoomTypeAssigner,
    SolverConfig,
    AssignmentResult,
    solve,
)
from dungeonfloor.pipeline import FloorConfig, FloorPlan, FloorGenerator, generate_floor

__all__ = [
    '__version__',
    # Model
    'RoomNode',
    'RoomConnection',
    'RoomGraph',
    'RoomGraphBuilder',
    # Errors
    'GenerationError',
    'InvalidConfigurationError',
    'GraphIntegrityError',
    'ConstraintViolationError',
    # Constraints
    'Constraint',
    'CompositeConstraint',
    'CustomConstraint',
    # Generation
    'GraphGenerator',
    'RoomTypeAssigner',
    'SolverConfig',
    'AssignmentResult',
    'solve',
    # Pipeline
    'FloorConfig',
    'FloorPlan',
    'FloorGenerator',
    'generate_floor',
    # Utils
    'validate_topology',
    'find_constraint_violations',
]
