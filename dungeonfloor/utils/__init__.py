"""
Utility Module
==============

Graph operations around RoomGraph that sit outside generation.

Components:
    - NetworkX export: to_networkx
    - Validation: validate_graph_integrity, validate_topology,
      find_constraint_violations
    - Replay format: floor_to_dict, floor_from_dict, save_floor, load_floor
"""

from .graph_utils import (
    to_networkx,
    validate_graph_integrity,
    validate_topology,
    find_constraint_violations,
    encode_room_type,
    floor_to_dict,
    floor_from_dict,
    save_floor,
    load_floor,
)

__all__ = [
    # NetworkX
    'to_networkx',
    # Validation
    'validate_graph_integrity',
    'validate_topology',
    'find_constraint_violations',
    # Serialization
    'encode_room_type',
    'floor_to_dict',
    'floor_from_dict',
    'save_floor',
    'load_floor',
]
