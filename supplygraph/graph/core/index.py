"""Node index: one identifier space for every entity in the graph.

Wraps a NetworkX MultiDiGraph whose nodes are integer ids carrying the node
variant object, and whose edges record the structural relationships
(trie containment, link endpoints) between them.
"""

import logging
from typing import Iterator, Optional, Tuple, Type, Union

import networkx as nx

from supplygraph.config.schema import MAX_NODE_ID
from supplygraph.errors import IDSpaceExhaustedError, NotFoundError, TypeMismatchError

from ..models.nodes import EdgeKind, Node, NodeKind

logger = logging.getLogger("supplygraph.graph.core.index")

NodeTypes = Union[Type[Node], Tuple[Type[Node], ...]]


class NodeIndex:
    """Identifier allocator and id -> node mapping.

    Identifiers start at 1, increase monotonically and are never reused.
    There is no removal path.
    """

    def __init__(self, id_limit: int = MAX_NODE_ID) -> None:
        self._graph = nx.MultiDiGraph()
        self._last_id = 0
        self._id_limit = id_limit
        logger.debug("NodeIndex initialized (id_limit=%d)", id_limit)

    @property
    def native_graph(self) -> nx.MultiDiGraph:
        """Underlying NetworkX graph for read-only analysis."""
        return self._graph

    @property
    def last_id(self) -> int:
        return self._last_id

    def allocate(self) -> int:
        """Return a fresh identifier.

        Raises:
            IDSpaceExhaustedError: If the configured id limit was reached.
        """
        if self._last_id >= self._id_limit:
            raise IDSpaceExhaustedError(
                f"node index exhausted after {self._last_id} identifiers"
            )
        self._last_id += 1
        return self._last_id

    def add(self, node: Node) -> None:
        """Store a node under its identifier.

        Raises:
            ValueError: If the id was not allocated here or is already taken.
        """
        if node.id <= 0 or node.id > self._last_id:
            raise ValueError(f"Node id {node.id} was not allocated by this index")
        if self._graph.has_node(node.id):
            raise ValueError(f"Node id {node.id} is already in use")
        self._graph.add_node(node.id, kind=node.kind.value, node=node)
        logger.debug("Added node: %d (kind=%s)", node.id, node.kind.value)

    def add_edge(self, source: int, target: int, kind: EdgeKind) -> int:
        """Record a structural edge between two stored nodes."""
        for endpoint in (source, target):
            if not self._graph.has_node(endpoint):
                raise NotFoundError(f"node {endpoint} does not exist")
        return self._graph.add_edge(source, target, kind=kind.value)

    def has(self, node_id: int) -> bool:
        return self._graph.has_node(node_id)

    def lookup(self, node_id: int) -> Node:
        """Return the node stored under ``node_id``.

        Raises:
            NotFoundError: If no node has this id.
        """
        data = self._graph.nodes.get(node_id)
        if data is None:
            raise NotFoundError(f"ID {node_id} does not match existing node")
        return data["node"]

    def lookup_typed(self, node_id: int, expected: NodeTypes) -> Node:
        """Return the node stored under ``node_id`` if it is of ``expected`` type.

        Args:
            node_id: Identifier to resolve.
            expected: Node class, or tuple of classes, the caller accepts.

        Raises:
            NotFoundError: If no node has this id.
            TypeMismatchError: If the node exists but is another variant.
        """
        node = self.lookup(node_id)
        if not isinstance(node, expected):
            kinds = expected if isinstance(expected, tuple) else (expected,)
            wanted = " or ".join(k.kind.value for k in kinds)
            raise TypeMismatchError(
                f"ID {node_id} is a {node.kind.value} node, expected {wanted}"
            )
        return node

    def nodes(self, kind: Optional[NodeKind] = None) -> Iterator[Node]:
        """Iterate stored nodes in id order, optionally restricted to one kind."""
        for _, data in self._graph.nodes(data=True):
            if kind is None or data["kind"] == kind.value:
                yield data["node"]

    def out_edges(self, node_id: int, kind: Optional[EdgeKind] = None) -> Iterator[Tuple[int, int]]:
        for u, v, data in self._graph.out_edges(node_id, data=True):
            if kind is None or data.get("kind") == kind.value:
                yield u, v

    def in_edges(self, node_id: int, kind: Optional[EdgeKind] = None) -> Iterator[Tuple[int, int]]:
        for u, v, data in self._graph.in_edges(node_id, data=True):
            if kind is None or data.get("kind") == kind.value:
                yield u, v

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    def edge_count(self) -> int:
        return self._graph.number_of_edges()
