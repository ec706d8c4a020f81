"""Mutable graph of workflow nodes and edges.

The store owns node identity: ids come from a per-store counter that only
goes up, so a removed node's id is never handed out again. Edges may name
nodes that were removed later; reads skip them.
"""

import logging
import random
from typing import Any, Callable

from autoflow.catalog import Catalog, default_catalog
from autoflow.errors import InvalidReference
from autoflow.models.graph import (
    ChangeKind,
    Edge,
    GraphChange,
    GraphSnapshot,
    Position,
    WorkflowNode,
)
from autoflow.utils import identifiers

logger = logging.getLogger(__name__)

GraphObserver = Callable[[GraphChange], None]

# the canvas opens with this node
DEFAULT_NODE_LABEL = "YouTube Channel Monitor"
DEFAULT_NODE_POSITION = Position(x=250, y=50)


class GraphStore:
    """Owns the node and edge collections of one workflow graph."""

    def __init__(
        self,
        catalog: Catalog = default_catalog,
        layout_x: tuple[float, float] = (100.0, 500.0),
        layout_y: tuple[float, float] = (150.0, 550.0),
        strict_edges: bool = False,
        rng: random.Random | None = None,
    ) -> None:
        """Create an empty graph.

        Args:
            catalog: node types used for display defaults
            layout_x: x range for nodes added without a position
            layout_y: y range for nodes added without a position
            strict_edges: raise InvalidReference when connecting a missing node
            rng: random source for placement (seed it in tests)
        """
        self.catalog = catalog
        self.layout_x = layout_x
        self.layout_y = layout_y
        self.strict_edges = strict_edges
        self._rng = rng or random.Random()
        self._nodes: dict[str, WorkflowNode] = {}
        self._edges: list[Edge] = []
        # ids of edges created while an endpoint was missing; never shown
        self._dangling: set[str] = set()
        self._next_id = 1
        self._observers: list[GraphObserver] = []

    # reads

    def nodes(self) -> list[WorkflowNode]:
        """Nodes in insertion order."""
        return list(self._nodes.values())

    def edges(self) -> list[Edge]:
        """Edges whose endpoints both exist."""
        return [edge for edge in self._edges if self._is_live(edge)]

    def get_node(self, node_id: str) -> WorkflowNode | None:
        return self._nodes.get(node_id)

    def snapshot(self) -> GraphSnapshot:
        """Deep copy of the current graph. Later edits do not reach it."""
        live = self.edges()
        return GraphSnapshot(
            nodes=tuple(node.model_copy(deep=True) for node in self._nodes.values()),
            edges=tuple(edge.model_copy() for edge in live),
            dangling_edges=len(self._edges) - len(live),
        )

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    # mutations

    def add_node(
        self,
        type_id: str,
        position: Position | None = None,
        label: str | None = None,
    ) -> WorkflowNode:
        """Create a node of `type_id`. Unknown types get generic defaults."""
        descriptor = self.catalog.describe_or_generic(type_id)
        node = WorkflowNode(
            id=self._allocate_id(),
            type_id=type_id,
            label=label if label is not None else descriptor.label,
            position=position.model_copy() if position is not None else self._random_position(),
        )
        self._nodes[node.id] = node
        logger.debug("Added node %s (%s)", node.id, type_id)
        self._notify(GraphChange(kind=ChangeKind.node_added, node_id=node.id))
        return node

    def seed_default(self) -> WorkflowNode:
        """Add the channel monitor trigger the canvas starts with."""
        return self.add_node(
            "trigger",
            position=DEFAULT_NODE_POSITION.model_copy(),
            label=DEFAULT_NODE_LABEL,
        )

    def connect(self, source_id: str, target_id: str) -> Edge:
        """Append an edge. Cycles, duplicates and self-loops are allowed.

        In permissive mode an edge naming a node that does not exist yet is
        kept but stays dangling, even if a later node receives that id.
        """
        if self.strict_edges:
            for node_id in (source_id, target_id):
                if node_id not in self._nodes:
                    raise InvalidReference(node_id)

        edge = Edge(id=self._unique_edge_id(source_id, target_id), source=source_id, target=target_id)
        if not (source_id in self._nodes and target_id in self._nodes):
            self._dangling.add(edge.id)
        self._edges.append(edge)
        logger.debug("Connected %s -> %s", source_id, target_id)
        self._notify(GraphChange(kind=ChangeKind.edge_added, edge_id=edge.id))
        return edge

    def update_node_config(self, node_id: str, patch: dict[str, Any]) -> None:
        """Shallow-merge `patch` into the node's config.

        Missing nodes are ignored: the inspector can race with a removal.
        """
        node = self._nodes.get(node_id)
        if node is None:
            logger.debug("Config update for missing node %s ignored", node_id)
            return
        node.config.update(patch)
        self._notify(GraphChange(kind=ChangeKind.node_config, node_id=node_id))

    def move_node(self, node_id: str, position: Position) -> None:
        node = self._nodes.get(node_id)
        if node is None:
            return
        node.position = position.model_copy()
        self._notify(GraphChange(kind=ChangeKind.node_moved, node_id=node_id))

    def rename_node(self, node_id: str, label: str) -> None:
        node = self._nodes.get(node_id)
        if node is None:
            return
        node.label = label
        self._notify(GraphChange(kind=ChangeKind.node_renamed, node_id=node_id))

    def remove_node(self, node_id: str) -> None:
        """Remove a node and every edge that names it."""
        if self._nodes.pop(node_id, None) is None:
            return
        removed = [edge.id for edge in self._edges if node_id in (edge.source, edge.target)]
        self._edges = [edge for edge in self._edges if node_id not in (edge.source, edge.target)]
        self._dangling.difference_update(removed)
        logger.debug("Removed node %s and %d edge(s)", node_id, len(removed))
        self._notify(
            GraphChange(kind=ChangeKind.node_removed, node_id=node_id, removed_edges=removed)
        )

    def remove_edge(self, edge_id: str) -> None:
        before = len(self._edges)
        self._edges = [edge for edge in self._edges if edge.id != edge_id]
        if len(self._edges) != before:
            self._dangling.discard(edge_id)
            self._notify(GraphChange(kind=ChangeKind.edge_removed, edge_id=edge_id))

    # observers

    def subscribe(self, observer: GraphObserver) -> Callable[[], None]:
        """Register an observer for graph changes. Returns an unsubscribe callable."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self, change: GraphChange) -> None:
        for observer in list(self._observers):
            try:
                observer(change)
            except Exception:
                logger.exception("Graph observer %r failed on %s", observer, change.kind.value)

    # helpers

    def _allocate_id(self) -> str:
        node_id = str(self._next_id)
        self._next_id += 1
        return node_id

    def _random_position(self) -> Position:
        return Position(
            x=self._rng.uniform(*self.layout_x),
            y=self._rng.uniform(*self.layout_y),
        )

    def _unique_edge_id(self, source_id: str, target_id: str) -> str:
        base = identifiers.edge_id(source_id, target_id)
        taken = {edge.id for edge in self._edges}
        if base not in taken:
            return base
        n = 2
        while f"{base}-{n}" in taken:
            n += 1
        return f"{base}-{n}"

    def _is_live(self, edge: Edge) -> bool:
        if edge.id in self._dangling:
            return False
        return edge.source in self._nodes and edge.target in self._nodes
