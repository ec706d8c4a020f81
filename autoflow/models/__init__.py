"""Core data models for autoflow."""

from autoflow.models.graph import (
    ChangeKind,
    Edge,
    GraphChange,
    GraphSnapshot,
    Position,
    WorkflowNode,
)
from autoflow.models.node_type import (
    ConfigField,
    FieldKind,
    NodeTypeDescriptor,
)
from autoflow.models.run import (
    RejectReason,
    RunRecord,
    RunResult,
    RunStatus,
    StepPolicy,
)

__all__ = [
    # Catalog
    "ConfigField",
    "FieldKind",
    "NodeTypeDescriptor",
    # Graph
    "ChangeKind",
    "Edge",
    "GraphChange",
    "GraphSnapshot",
    "Position",
    "WorkflowNode",
    # Runs
    "RejectReason",
    "RunRecord",
    "RunResult",
    "RunStatus",
    "StepPolicy",
]
