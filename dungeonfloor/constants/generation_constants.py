"""
Generation Constants
====================

Default parameters for floor topology generation and room type assignment.

Sources:
- Graph generator defaults tuned for 8-30 room floors
- Solver priorities: more specific rules are placed first so that
  backtracking stays rare on well-formed configurations
"""

from typing import Dict

# ==========================================
# GRAPH GENERATION
# ==========================================

DEFAULT_ROOM_COUNT: int = 12
DEFAULT_BRANCHING_FACTOR: float = 0.3

MIN_ROOM_COUNT: int = 1
MIN_BRANCHING_FACTOR: float = 0.0
MAX_BRANCHING_FACTOR: float = 1.0

# Node id of the start room produced by the generator
START_NODE_ID: int = 0

# Degree of a dead-end room
DEAD_END_DEGREE: int = 1

# ==========================================
# ASSIGNMENT SOLVER
# ==========================================

# Upper bound on undone decisions before the solver gives up
DEFAULT_MAX_BACKTRACKS: int = 10_000

# Retries performed by the floor pipeline (one seed per attempt)
DEFAULT_MAX_ATTEMPTS: int = 1

# Placement priority per constraint kind (higher = placed earlier)
CONSTRAINT_PRIORITIES: Dict[str, int] = {
    'MustBeDeadEndConstraint': 10,
    'OnlyOnCriticalPathConstraint': 8,
    'NotOnCriticalPathConstraint': 7,
    'MaxPerFloorConstraint': 5,
    'MustBeAdjacentToConstraint': 4,
    'MustComeBeforeConstraint': 4,
    'MinDistanceFromStartConstraint': 3,
    'MaxDistanceFromStartConstraint': 3,
    'MinDistanceFromRoomTypeConstraint': 3,
    'MaxDistanceFromRoomTypeConstraint': 3,
    'MaxConnectionCountConstraint': 2,
    'MinConnectionCountConstraint': 2,
    'MustNotBeAdjacentToConstraint': 2,
}

DEFAULT_CONSTRAINT_PRIORITY: int = 1

# ==========================================
# SERIALIZATION
# ==========================================

FLOOR_FORMAT_VERSION: int = 1
