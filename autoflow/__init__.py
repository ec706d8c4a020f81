"""autoflow - visual workflow graphs with a simulated execution engine."""

from autoflow.catalog import Catalog, default_catalog
from autoflow.config import Settings, load_settings
from autoflow.engine import ExecutionEngine, execution_order
from autoflow.errors import (
    AlreadyRunning,
    AutoflowError,
    EmptyGraph,
    InvalidReference,
    StepFailed,
    UnrecognizedType,
)
from autoflow.models import (
    Edge,
    GraphSnapshot,
    NodeTypeDescriptor,
    Position,
    RunRecord,
    RunResult,
    RunStatus,
    StepPolicy,
    WorkflowNode,
)
from autoflow.selection import SelectionBridge
from autoflow.session import WorkflowSession
from autoflow.store import GraphStore

__all__ = [
    # Models
    "Edge",
    "GraphSnapshot",
    "NodeTypeDescriptor",
    "Position",
    "RunRecord",
    "RunResult",
    "RunStatus",
    "StepPolicy",
    "WorkflowNode",
    # Errors
    "AlreadyRunning",
    "AutoflowError",
    "EmptyGraph",
    "InvalidReference",
    "StepFailed",
    "UnrecognizedType",
    # Components
    "Catalog",
    "default_catalog",
    "GraphStore",
    "SelectionBridge",
    "ExecutionEngine",
    "execution_order",
    "WorkflowSession",
    # Config
    "Settings",
    "load_settings",
]
