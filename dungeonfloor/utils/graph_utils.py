"""
Floor Graph Utilities
=====================

Helpers around RoomGraph that are not part of generation itself.

This module provides:
- NetworkX export (analysis, plotting)
- Structural integrity checks (missing start, dangling endpoints, ...)
- Topology validation (connectivity, tree property, critical path shape)
- Re-validation of a finished room type assignment
- JSON replay format: enough to rebuild and re-check a floor without
  re-running generation

Usage:
    import networkx as nx
    from dungeonfloor.utils.graph_utils import to_networkx, validate_topology

    G = to_networkx(graph, assignments)
    is_valid, errors = validate_topology(graph)
    if not is_valid:
        print(f"Validation failed: {errors}")
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import networkx as nx

from dungeonfloor.constants.generation_constants import FLOOR_FORMAT_VERSION
from dungeonfloor.constraints.base import Constraint, ConstraintSpec, group_constraints
from dungeonfloor.core.definitions import RoomGraph, RoomGraphBuilder
from dungeonfloor.core.exceptions import GraphIntegrityError

logger = logging.getLogger(__name__)


# ==========================================
# NETWORKX BRIDGE
# ==========================================

def to_networkx(graph: RoomGraph, assignments: Optional[Mapping[int, Any]] = None) -> nx.Graph:
    """
    Convert a RoomGraph to an undirected NetworkX graph.

    Node attributes:
        - 'distance': hop distance from start (None if unreachable)
        - 'critical': critical path membership
        - 'start': True for the start node
        - 'room_type': assigned type (only when assignments are given)
    """
    G = nx.Graph()
    for node in graph.nodes:
        attrs = {
            'distance': node.distance_from_start,
            'critical': node.is_on_critical_path,
            'start': node.id == graph.start_node_id,
        }
        if assignments is not None and node.id in assignments:
            attrs['room_type'] = assignments[node.id]
        G.add_node(node.id, **attrs)

    for conn in graph.connections:
        G.add_edge(conn.node_a_id, conn.node_b_id)

    return G


# ==========================================
# VALIDATION
# ==========================================

def validate_graph_integrity(graph: RoomGraph) -> None:
    """
    Check the structural invariants every consumer relies on.

    Raises:
        GraphIntegrityError: naming the first violated invariant
    """
    if graph.node_count == 0:
        raise GraphIntegrityError("Graph has no nodes")
    if graph.start_node_id not in graph:
        raise GraphIntegrityError(f"Start node {graph.start_node_id} does not exist")

    for position, node in enumerate(graph.nodes):
        if node.id != position:
            raise GraphIntegrityError(f"Node at position {position} has id {node.id}")

    seen = set()
    for idx, conn in enumerate(graph.connections):
        for endpoint in conn.as_pair():
            if endpoint not in graph:
                raise GraphIntegrityError(
                    f"Connection {idx} ({conn.node_a_id}, {conn.node_b_id}) "
                    f"has dangling endpoint {endpoint}"
                )
        if conn.node_a_id == conn.node_b_id:
            raise GraphIntegrityError(f"Connection {idx} is a self loop on node {conn.node_a_id}")
        key = frozenset(conn.as_pair())
        if key in seen:
            raise GraphIntegrityError(
                f"Duplicate connection ({conn.node_a_id}, {conn.node_b_id})"
            )
        seen.add(key)

    for node in graph.nodes:
        for conn_idx in node.connection_ids:
            if not 0 <= conn_idx < graph.connection_count:
                raise GraphIntegrityError(f"Node {node.id} references missing connection {conn_idx}")
            if not graph.connections[conn_idx].involves(node.id):
                raise GraphIntegrityError(
                    f"Node {node.id} lists connection {conn_idx} it is not part of"
                )


def validate_topology(graph: RoomGraph) -> Tuple[bool, List[str]]:
    """
    Validate the shape guarantees of a generated floor.

    Checks:
    - Graph is connected and every node has a distance
    - Graph is a tree (connections == nodes - 1)
    - Start node has distance 0
    - Critical path starts at the start node and follows connections

    Returns:
        Tuple of (is_valid, error_messages)
    """
    errors = []
    G = to_networkx(graph)

    if not nx.is_connected(G):
        errors.append("Graph is not connected (has isolated components)")

    unreachable = [n.id for n in graph.nodes if n.distance_from_start is None]
    if unreachable:
        errors.append(f"Nodes unreachable from start: {unreachable}")

    if graph.connection_count != graph.node_count - 1:
        errors.append(
            f"Graph is not a tree: {graph.node_count} nodes, "
            f"{graph.connection_count} connections"
        )

    start_distance = graph.get_start_node().distance_from_start
    if start_distance != 0:
        errors.append(f"Start node distance is {start_distance}, expected 0")

    path = graph.critical_path
    if not path or path[0] != graph.start_node_id:
        errors.append(f"Critical path {list(path)} does not begin at the start node")
    for a, b in zip(path, path[1:]):
        if not G.has_edge(a, b):
            errors.append(f"Critical path jumps from {a} to {b} without a connection")

    is_valid = len(errors) == 0
    return is_valid, errors


def find_constraint_violations(
    graph: RoomGraph,
    assignments: Mapping[int, Any],
    constraints: Union[Mapping[Any, Iterable[Constraint]], Iterable[ConstraintSpec]],
    spawn_type: Any = None,
) -> List[str]:
    """
    Re-check a finished assignment against every rule.

    Each room is evaluated against the map without itself, the same view
    the solver had when placing it. The start node is exempt when it holds
    spawn_type.

    Returns:
        List of violation messages (empty if the assignment is valid)
    """
    if isinstance(constraints, Mapping):
        rules = {room_type: list(cs) for room_type, cs in constraints.items()}
    else:
        rules = group_constraints(constraints)

    errors = []
    others = dict(assignments)

    for node in graph.nodes:
        if node.id not in assignments:
            errors.append(f"Node {node.id} has no room type")
            continue

        room_type = assignments[node.id]
        if node.id == graph.start_node_id and room_type == spawn_type:
            continue

        del others[node.id]
        for constraint in rules.get(room_type, ()):
            if not constraint.is_valid(node, graph, others):
                errors.append(f"Node {node.id} ({room_type!r}) violates {constraint!r}")
        others[node.id] = room_type

    return errors


# ==========================================
# REPLAY SERIALIZATION
# ==========================================

def encode_room_type(room_type: Any) -> Any:
    """Enum members are stored by name, anything else as-is."""
    if isinstance(room_type, Enum):
        return room_type.name
    return room_type


def floor_to_dict(
    graph: RoomGraph,
    assignments: Optional[Mapping[int, Any]] = None,
    encode: Callable[[Any], Any] = encode_room_type,
) -> Dict[str, Any]:
    """Serialize a floor (and optionally its room types) to plain data."""
    return {
        'version': FLOOR_FORMAT_VERSION,
        'start_node_id': graph.start_node_id,
        'nodes': [
            {
                'id': node.id,
                'distance_from_start': node.distance_from_start,
                'is_on_critical_path': node.is_on_critical_path,
            }
            for node in graph.nodes
        ],
        'connections': [list(conn.as_pair()) for conn in graph.connections],
        'critical_path': list(graph.critical_path),
        'assignments': {
            str(node_id): encode(room_type)
            for node_id, room_type in sorted((assignments or {}).items())
        },
    }


def floor_from_dict(
    data: Mapping[str, Any],
    decode: Optional[Callable[[Any], Any]] = None,
) -> Tuple[RoomGraph, Dict[int, Any]]:
    """
    Rebuild a floor from floor_to_dict() output.

    Stored distances and critical path are restored verbatim, so the result
    matches the serialized floor even if it was built by hand.

    Args:
        data: Serialized floor
        decode: Maps stored room type values back (e.g. RoomType.__getitem__)

    Returns:
        Tuple of (graph, assignments)
    """
    version = data.get('version')
    if version != FLOOR_FORMAT_VERSION:
        raise GraphIntegrityError(
            f"Unsupported floor format version {version!r} (expected {FLOOR_FORMAT_VERSION})"
        )

    builder = RoomGraphBuilder()
    for position, node_data in enumerate(data['nodes']):
        if node_data['id'] != position:
            raise GraphIntegrityError(
                f"Serialized node at position {position} has id {node_data['id']}"
            )
        builder.add_node()

    for a, b in data['connections']:
        builder.connect(a, b)

    builder.set_start(data['start_node_id'])
    builder.mark_critical_path(data['critical_path'])
    for node_data in data['nodes']:
        builder.override_distance(node_data['id'], node_data['distance_from_start'])

    graph = builder.build()

    decode = decode or (lambda value: value)
    assignments = {
        int(node_id): decode(value)
        for node_id, value in data.get('assignments', {}).items()
    }
    return graph, assignments


def save_floor(
    path: Union[str, Path],
    graph: RoomGraph,
    assignments: Optional[Mapping[int, Any]] = None,
    encode: Callable[[Any], Any] = encode_room_type,
) -> Path:
    """Write a floor to a JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(floor_to_dict(graph, assignments, encode), f, indent=2)
    logger.info(f"Saved floor ({graph.node_count} rooms) to {path}")
    return path


def load_floor(
    path: Union[str, Path],
    decode: Optional[Callable[[Any], Any]] = None,
) -> Tuple[RoomGraph, Dict[int, Any]]:
    """Read a floor written by save_floor()."""
    with open(path) as f:
        data = json.load(f)
    return floor_from_dict(data, decode)
