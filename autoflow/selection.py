"""Selection state and the inspector's access to the selected node."""

import logging
from typing import Any

from autoflow.models.graph import ChangeKind, GraphChange, WorkflowNode
from autoflow.models.node_type import ConfigField
from autoflow.store import GraphStore

logger = logging.getLogger(__name__)


class SelectionBridge:
    """Tracks at most one selected node and patches its config.

    The selection is cleared when the selected node is removed from the store.
    """

    def __init__(self, store: GraphStore) -> None:
        self.store = store
        self._selected_id: str | None = None
        self._unsubscribe = store.subscribe(self._on_graph_change)

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    def select(self, node_id: str) -> WorkflowNode | None:
        """Select `node_id`, or clear the selection if it does not exist."""
        node = self.store.get_node(node_id)
        self._selected_id = node.id if node else None
        return node

    def clear(self) -> None:
        self._selected_id = None

    def current(self) -> WorkflowNode | None:
        if self._selected_id is None:
            return None
        return self.store.get_node(self._selected_id)

    def patch_config(self, fields: dict[str, Any]) -> None:
        """Merge `fields` into the selected node's config. No-op without a selection."""
        if self._selected_id is None:
            return
        self.store.update_node_config(self._selected_id, fields)

    def editable_fields(self) -> list[tuple[ConfigField, Any]]:
        """Config fields of the selected node paired with their effective values."""
        node = self.current()
        if node is None:
            return []
        catalog = self.store.catalog
        values = catalog.effective_config(node)
        return [(field, values.get(field.name)) for field in catalog.config_fields(node.type_id)]

    def close(self) -> None:
        """Stop following store changes."""
        self._unsubscribe()

    def _on_graph_change(self, change: GraphChange) -> None:
        if change.kind == ChangeKind.node_removed and change.node_id == self._selected_id:
            logger.debug("Selected node %s removed; clearing selection", change.node_id)
            self._selected_id = None
