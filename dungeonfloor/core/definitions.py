"""
Floor Graph Definitions
=======================

Data model for the topology of a dungeon floor.

A floor is an undirected graph of rooms (nodes) joined by corridors
(connections). Nodes and connections live in flat, id-indexed tuples owned by
the RoomGraph; a node refers to its incident connections by index, which keeps
the structure trivial to copy, serialize and validate.

Derived facts (hop distance from the start room, critical path membership)
are computed once when the graph is built and are read-only afterwards. The
only way to construct a RoomGraph is through RoomGraphBuilder, which is used by
the generator and by test fixtures.

Usage:
    builder = RoomGraphBuilder()
    a, b, c = builder.add_nodes(3)
    builder.connect(a, b)
    builder.connect(b, c)
    graph = builder.build()

    graph.get_node(c).distance_from_start   # 2
    graph.critical_path                     # (0, 1, 2)
"""

import logging
from collections import deque
from dataclasses import dataclass
from functools import cached_property
from numbers import Integral
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

import numpy as np

from dungeonfloor.constants.generation_constants import DEAD_END_DEGREE, START_NODE_ID
from dungeonfloor.core.exceptions import GraphIntegrityError, InvalidConfigurationError

logger = logging.getLogger(__name__)


# ============================================================================
# GRAPH ELEMENTS
# ============================================================================

@dataclass(frozen=True)
class RoomConnection:
    """Undirected corridor between two rooms."""
    node_a_id: int
    node_b_id: int

    def other(self, node_id: int) -> int:
        """Get the endpoint opposite to node_id."""
        if node_id == self.node_a_id:
            return self.node_b_id
        if node_id == self.node_b_id:
            return self.node_a_id
        raise GraphIntegrityError(
            f"Node {node_id} is not part of connection "
            f"({self.node_a_id}, {self.node_b_id})"
        )

    def involves(self, node_id: int) -> bool:
        return node_id == self.node_a_id or node_id == self.node_b_id

    def as_pair(self) -> Tuple[int, int]:
        return (self.node_a_id, self.node_b_id)


@dataclass(frozen=True)
class RoomNode:
    """Room in the floor graph."""
    id: int
    distance_from_start: Optional[int] = None  # None = unreachable from start
    is_on_critical_path: bool = False
    connection_ids: Tuple[int, ...] = ()  # Indices into RoomGraph.connections

    @property
    def connection_count(self) -> int:
        """Degree of the room."""
        return len(self.connection_ids)

    @property
    def is_dead_end(self) -> bool:
        return self.connection_count == DEAD_END_DEGREE

    @property
    def is_reachable(self) -> bool:
        return self.distance_from_start is not None


# ============================================================================
# TRAVERSAL HELPERS
# ============================================================================

def bfs_distances(adjacency: Sequence[Sequence[int]], source: int) -> Dict[int, int]:
    """Hop distances from source to every reachable node."""
    distances = {source: 0}
    queue = deque([source])

    while queue:
        current = queue.popleft()
        current_dist = distances[current]

        for neighbor in adjacency[current]:
            if neighbor not in distances:
                distances[neighbor] = current_dist + 1
                queue.append(neighbor)

    return distances


def bfs_parents(adjacency: Sequence[Sequence[int]], source: int) -> Dict[int, Optional[int]]:
    """BFS tree parents (source maps to None)."""
    parents: Dict[int, Optional[int]] = {source: None}
    queue = deque([source])

    while queue:
        current = queue.popleft()
        for neighbor in adjacency[current]:
            if neighbor not in parents:
                parents[neighbor] = current
                queue.append(neighbor)

    return parents


# ============================================================================
# ROOM GRAPH
# ============================================================================

class RoomGraph:
    """
    Immutable floor topology.

    Nodes are stored in id order, so node lookup is an index into a tuple.
    Instances are created by RoomGraphBuilder; treat every attribute as
    read-only.
    """

    def __init__(
        self,
        nodes: Sequence[RoomNode],
        connections: Sequence[RoomConnection],
        start_node_id: int,
        critical_path: Sequence[int] = (),
    ):
        self._nodes: Tuple[RoomNode, ...] = tuple(nodes)
        self._connections: Tuple[RoomConnection, ...] = tuple(connections)
        self._start_node_id = start_node_id
        self._critical_path: Tuple[int, ...] = tuple(critical_path)

        if not 0 <= start_node_id < len(self._nodes):
            raise GraphIntegrityError(
                f"Start node {start_node_id} does not exist "
                f"(graph has {len(self._nodes)} nodes)"
            )

        adjacency: List[List[int]] = [[] for _ in self._nodes]
        for node in self._nodes:
            for conn_idx in node.connection_ids:
                adjacency[node.id].append(self._connections[conn_idx].other(node.id))
        self._adjacency: Tuple[Tuple[int, ...], ...] = tuple(tuple(a) for a in adjacency)

    # ------------------------------------------------------------------
    # Basic queries
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> Tuple[RoomNode, ...]:
        return self._nodes

    @property
    def connections(self) -> Tuple[RoomConnection, ...]:
        return self._connections

    @property
    def start_node_id(self) -> int:
        return self._start_node_id

    @property
    def critical_path(self) -> Tuple[int, ...]:
        """Node ids from the start room to the far end of the main route."""
        return self._critical_path

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        if isinstance(node_id, bool) or not isinstance(node_id, Integral):
            return False
        return 0 <= node_id < len(self._nodes)

    def __repr__(self) -> str:
        return (
            f"RoomGraph(nodes={self.node_count}, connections={self.connection_count}, "
            f"start={self._start_node_id}, critical_path={list(self._critical_path)})"
        )

    def get_node(self, node_id: int) -> RoomNode:
        """Get node by ID."""
        if node_id not in self:
            raise GraphIntegrityError(f"Node {node_id} does not exist")
        return self._nodes[node_id]

    def get_start_node(self) -> RoomNode:
        return self._nodes[self._start_node_id]

    def neighbors(self, node_id: int) -> Tuple[int, ...]:
        """Get neighbor node IDs."""
        if node_id not in self:
            raise GraphIntegrityError(f"Node {node_id} does not exist")
        return self._adjacency[node_id]

    def dead_ends(self) -> List[RoomNode]:
        return [n for n in self._nodes if n.is_dead_end]

    def critical_path_index(self, node_id: int) -> Optional[int]:
        """Position of node_id on the critical path, or None if off the path."""
        return self._critical_path_positions.get(node_id)

    @cached_property
    def _critical_path_positions(self) -> Dict[int, int]:
        return {node_id: i for i, node_id in enumerate(self._critical_path)}

    # ------------------------------------------------------------------
    # Distances
    # ------------------------------------------------------------------

    @cached_property
    def distance_matrix(self) -> np.ndarray:
        """
        All-pairs hop distances.

        Returns:
            [num_nodes, num_nodes] float array; unreachable pairs are inf
        """
        n = len(self._nodes)
        matrix = np.full((n, n), np.inf)
        for source in range(n):
            for target, dist in bfs_distances(self._adjacency, source).items():
                matrix[source, target] = dist
        logger.debug(f"Computed {n}x{n} distance matrix")
        return matrix

    def distance_between(self, node_a: int, node_b: int) -> Optional[int]:
        """Shortest hop count between two nodes, or None if disconnected."""
        self.get_node(node_a)
        self.get_node(node_b)
        dist = self.distance_matrix[node_a, node_b]
        return None if np.isinf(dist) else int(dist)

    def distance_to_nearest(self, node_id: int, targets: Iterable[int]) -> Optional[int]:
        """
        Hop count from node_id to the closest node in targets.

        Returns:
            Distance to the nearest target, or None if no target is reachable
            (or targets is empty)
        """
        target_ids = list(targets)
        if not target_ids:
            return None
        row = self.distance_matrix[node_id, target_ids]
        nearest = row.min()
        return None if np.isinf(nearest) else int(nearest)

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    def edge_set(self) -> Set[FrozenSet[int]]:
        return {frozenset(c.as_pair()) for c in self._connections}

    @classmethod
    def from_edges(
        cls,
        node_count: int,
        edges: Iterable[Tuple[int, int]],
        start_node_id: int = START_NODE_ID,
        critical_path: Optional[Sequence[int]] = None,
    ) -> 'RoomGraph':
        """Build a graph from an explicit edge list (ids 0..node_count-1)."""
        builder = RoomGraphBuilder()
        builder.add_nodes(node_count)
        for a, b in edges:
            builder.connect(a, b)
        builder.set_start(start_node_id)
        if critical_path is not None:
            builder.mark_critical_path(critical_path)
        return builder.build()


# ============================================================================
# BUILDER
# ============================================================================

class RoomGraphBuilder:
    """
    Construction path for RoomGraph.

    Collects nodes and connections, then derives distances (one BFS from the
    start node) and the critical path in build(). Test fixtures may override
    the derived facts explicitly through mark_critical_path() and
    override_distance().
    """

    def __init__(self):
        self._node_count = 0
        self._edges: List[Tuple[int, int]] = []
        self._edge_keys: Set[FrozenSet[int]] = set()
        self._start_node_id = START_NODE_ID
        self._critical_path: Optional[List[int]] = None
        self._distance_overrides: Dict[int, Optional[int]] = {}

    @property
    def node_count(self) -> int:
        return self._node_count

    def add_node(self) -> int:
        """Add a node and return its id."""
        node_id = self._node_count
        self._node_count += 1
        return node_id

    def add_nodes(self, count: int) -> List[int]:
        if count < 0:
            raise InvalidConfigurationError(f"Cannot add {count} nodes")
        return [self.add_node() for _ in range(count)]

    def connect(self, node_a: int, node_b: int) -> int:
        """
        Connect two existing nodes.

        Returns:
            Index of the new connection

        Raises:
            GraphIntegrityError: dangling endpoint, self loop or duplicate
        """
        for endpoint in (node_a, node_b):
            if not 0 <= endpoint < self._node_count:
                raise GraphIntegrityError(
                    f"Connection ({node_a}, {node_b}) references missing node {endpoint}"
                )
        if node_a == node_b:
            raise GraphIntegrityError(f"Self loop on node {node_a}")

        key = frozenset((node_a, node_b))
        if key in self._edge_keys:
            raise GraphIntegrityError(f"Duplicate connection ({node_a}, {node_b})")

        self._edge_keys.add(key)
        self._edges.append((node_a, node_b))
        return len(self._edges) - 1

    def set_start(self, node_id: int) -> 'RoomGraphBuilder':
        self._start_node_id = node_id
        return self

    def mark_critical_path(self, node_ids: Sequence[int]) -> 'RoomGraphBuilder':
        """Use an explicit critical path instead of the derived one."""
        self._critical_path = list(node_ids)
        return self

    def override_distance(self, node_id: int, distance: Optional[int]) -> 'RoomGraphBuilder':
        """Replace the BFS distance of one node (fixtures only)."""
        if distance is not None and distance < 0:
            raise InvalidConfigurationError(f"Distance must be non-negative, got {distance}")
        self._distance_overrides[node_id] = distance
        return self

    def build(self) -> RoomGraph:
        """Derive distances and critical path, and freeze the graph."""
        if self._node_count < 1:
            raise GraphIntegrityError("A room graph needs at least one node")
        if not 0 <= self._start_node_id < self._node_count:
            raise GraphIntegrityError(
                f"Start node {self._start_node_id} does not exist "
                f"(graph has {self._node_count} nodes)"
            )

        adjacency: List[List[int]] = [[] for _ in range(self._node_count)]
        incident: List[List[int]] = [[] for _ in range(self._node_count)]
        for idx, (a, b) in enumerate(self._edges):
            adjacency[a].append(b)
            adjacency[b].append(a)
            incident[a].append(idx)
            incident[b].append(idx)

        distances: Dict[int, Optional[int]] = dict(bfs_distances(adjacency, self._start_node_id))
        for node_id, distance in self._distance_overrides.items():
            if not 0 <= node_id < self._node_count:
                raise GraphIntegrityError(f"Distance override for missing node {node_id}")
            distances[node_id] = distance

        if self._critical_path is not None:
            for node_id in self._critical_path:
                if not 0 <= node_id < self._node_count:
                    raise GraphIntegrityError(f"Critical path references missing node {node_id}")
            critical_path = list(self._critical_path)
        else:
            critical_path = derive_critical_path(adjacency, self._start_node_id)

        on_path = set(critical_path)
        nodes = [
            RoomNode(
                id=node_id,
                distance_from_start=distances.get(node_id),
                is_on_critical_path=node_id in on_path,
                connection_ids=tuple(incident[node_id]),
            )
            for node_id in range(self._node_count)
        ]
        connections = [RoomConnection(a, b) for a, b in self._edges]

        return RoomGraph(nodes, connections, self._start_node_id, critical_path)


def derive_critical_path(adjacency: Sequence[Sequence[int]], start_node_id: int) -> List[int]:
    """
    Longest shortest-path chain from the start node.

    The far end is the reachable node with the greatest BFS distance (lowest
    id on ties). In a tree that node is always a leaf.
    """
    parents = bfs_parents(adjacency, start_node_id)
    distances = bfs_distances(adjacency, start_node_id)

    far_end = start_node_id
    for node_id in sorted(distances):
        if distances[node_id] > distances[far_end]:
            far_end = node_id

    path = []
    current: Optional[int] = far_end
    while current is not None:
        path.append(current)
        current = parents[current]
    path.reverse()
    return path
