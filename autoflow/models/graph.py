"""Data model for the workflow graph held by the store.

Nodes keep their insertion order; the engine derives execution order from
node positions, not from edges.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Position(BaseModel):
    """2D canvas coordinate."""

    x: float
    y: float


class WorkflowNode(BaseModel):
    """a step in the workflow graph."""

    id: str
    type_id: str
    label: str
    position: Position
    config: dict[str, Any] = Field(default_factory=dict)  # absent keys mean "use default"


class Edge(BaseModel):
    """a directed connection between two nodes. Decorative: never gates execution."""

    id: str
    source: str
    target: str


class GraphSnapshot(BaseModel):
    """frozen copy of the graph at one instant."""

    model_config = {"frozen": True}

    nodes: tuple[WorkflowNode, ...] = ()
    edges: tuple[Edge, ...] = ()
    dangling_edges: int = 0  # edges dropped because an endpoint no longer exists

    def node_ids(self) -> list[str]:
        return [node.id for node in self.nodes]


class ChangeKind(str, Enum):
    """Kinds of structural edits reported to store subscribers."""

    node_added = "node_added"
    node_removed = "node_removed"
    node_moved = "node_moved"
    node_renamed = "node_renamed"
    node_config = "node_config"
    edge_added = "edge_added"
    edge_removed = "edge_removed"


class GraphChange(BaseModel):
    """Notification sent to store subscribers after every mutation."""

    kind: ChangeKind
    node_id: str | None = None
    edge_id: str | None = None
    removed_edges: list[str] = Field(default_factory=list)
