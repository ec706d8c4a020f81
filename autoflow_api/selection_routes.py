"""API routes for the node inspector panel."""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from autoflow.models.graph import WorkflowNode
from autoflow.models.node_type import ConfigField
from autoflow.session import WorkflowSession
from autoflow_api.deps import get_session

router = APIRouter()


class SelectRequest(BaseModel):
    """request body for selecting a node."""

    node_id: str


class FieldValue(BaseModel):
    """an editable field with its effective value."""

    field: ConfigField
    value: Any = None


class SelectionResponse(BaseModel):
    """the selected node (if any) and its editable fields."""

    node: WorkflowNode | None = None
    fields: list[FieldValue] = []


def _selection(session: WorkflowSession) -> SelectionResponse:
    return SelectionResponse(
        node=session.selected_node(),
        fields=[
            FieldValue(field=field, value=value)
            for field, value in session.selection.editable_fields()
        ],
    )


@router.get("/selection")
def get_selection(session: WorkflowSession = Depends(get_session)) -> SelectionResponse:
    return _selection(session)


@router.put("/selection")
def select_node(request: SelectRequest, session: WorkflowSession = Depends(get_session)) -> SelectionResponse:
    """select a node. An unknown id clears the selection."""
    session.select_node(request.node_id)
    return _selection(session)


@router.delete("/selection")
def clear_selection(session: WorkflowSession = Depends(get_session)) -> SelectionResponse:
    """close the inspector panel."""
    session.clear_selection()
    return _selection(session)


@router.patch("/selection/config")
def patch_selected_config(
    fields: dict[str, Any],
    session: WorkflowSession = Depends(get_session),
) -> SelectionResponse:
    """merge form values into the selected node's config. No-op without a selection."""
    session.patch_selected_config(fields)
    return _selection(session)
