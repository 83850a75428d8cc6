"""
Generation Module
=================

- graph_generator: seeded random tree topology (GraphGenerator)
- room_type_assigner: backtracking room type search (RoomTypeAssigner, solve)
"""

from .graph_generator import GraphGenerator, validate_generation_parameters
from .room_type_assigner import (
    AssignmentResult,
    RoomTypeAssigner,
    SolverConfig,
    solve,
)

__all__ = [
    'GraphGenerator',
    'validate_generation_parameters',
    'AssignmentResult',
    'RoomTypeAssigner',
    'SolverConfig',
    'solve',
]
