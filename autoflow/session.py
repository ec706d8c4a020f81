"""One editing session: graph, selection, and engine wired together.

This is the surface the canvas UI (or the HTTP API) talks to. Each session
owns its own store, id counter, selection and log, so sessions never share
state.
"""

import random
from typing import Any, Callable

from autoflow.adapters.sinks import LogObserver
from autoflow.behaviors import BehaviorTable
from autoflow.catalog import Catalog, default_catalog
from autoflow.config import Settings
from autoflow.engine import ExecutionEngine, Sleeper, StatusObserver
from autoflow.models.graph import Edge, GraphSnapshot, Position, WorkflowNode
from autoflow.models.node_type import NodeTypeDescriptor
from autoflow.models.run import RunResult, RunStatus
from autoflow.selection import SelectionBridge
from autoflow.store import GraphStore


class WorkflowSession:
    """Facade over GraphStore, SelectionBridge and ExecutionEngine."""

    def __init__(
        self,
        settings: Settings | None = None,
        catalog: Catalog = default_catalog,
        behaviors: BehaviorTable | None = None,
        sleep: Sleeper | None = None,
        rng: random.Random | None = None,
    ) -> None:
        settings = settings or Settings()
        self.settings = settings
        self.catalog = catalog
        self.store = GraphStore(
            catalog=catalog,
            layout_x=settings.layout_x,
            layout_y=settings.layout_y,
            strict_edges=settings.strict_edges,
            rng=rng,
        )
        self.selection = SelectionBridge(self.store)
        engine_kwargs: dict[str, Any] = {}
        if sleep is not None:
            engine_kwargs["sleep"] = sleep
        self.engine = ExecutionEngine(
            store=self.store,
            behaviors=behaviors,
            start_delay=settings.start_delay,
            step_delay=settings.step_delay,
            finish_delay=settings.finish_delay,
            **engine_kwargs,
        )
        if settings.seed_default:
            self.store.seed_default()

    # palette

    def list_node_types(self) -> list[NodeTypeDescriptor]:
        return self.catalog.list_types()

    # graph edits

    def add_node(
        self,
        type_id: str,
        position: Position | None = None,
        label: str | None = None,
    ) -> WorkflowNode:
        """Palette activation. Placement is chosen by the store when omitted."""
        return self.store.add_node(type_id, position, label)

    def connect(self, source_id: str, target_id: str) -> Edge:
        return self.store.connect(source_id, target_id)

    def move_node(self, node_id: str, position: Position) -> None:
        self.store.move_node(node_id, position)

    def rename_node(self, node_id: str, label: str) -> None:
        self.store.rename_node(node_id, label)

    def remove_node(self, node_id: str) -> None:
        self.store.remove_node(node_id)

    def remove_edge(self, edge_id: str) -> None:
        self.store.remove_edge(edge_id)

    def graph(self) -> GraphSnapshot:
        return self.store.snapshot()

    # inspector

    def select_node(self, node_id: str) -> WorkflowNode | None:
        return self.selection.select(node_id)

    def clear_selection(self) -> None:
        self.selection.clear()

    def selected_node(self) -> WorkflowNode | None:
        return self.selection.current()

    def patch_selected_config(self, fields: dict[str, Any]) -> None:
        self.selection.patch_config(fields)

    # execution

    async def run(self, supersede: bool = False) -> RunResult:
        """Start a run over the current graph. See ExecutionEngine.run."""
        return await self.engine.run(supersede=supersede)

    def can_run(self) -> bool:
        """Whether the execute control should be enabled."""
        return len(self.store) > 0 and not self.engine.is_running

    def observe_log(self, observer: LogObserver) -> Callable[[], None]:
        return self.engine.log.subscribe(observer)

    def observe_status(self, observer: StatusObserver) -> Callable[[], None]:
        return self.engine.subscribe(observer)

    def log_lines(self, offset: int = 0) -> list[str]:
        return self.engine.log.lines_since(offset)

    @property
    def status(self) -> RunStatus:
        return self.engine.status
