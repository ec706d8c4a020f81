"""API routes for the palette and graph editing."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from autoflow.errors import InvalidReference
from autoflow.models.graph import Edge, GraphSnapshot, Position, WorkflowNode
from autoflow.models.node_type import NodeTypeDescriptor
from autoflow.session import WorkflowSession
from autoflow_api.deps import get_session

router = APIRouter()


class AddNodeRequest(BaseModel):
    """request body for adding a node from the palette."""

    type_id: str
    position: Position | None = None  # the store picks a spot when omitted
    label: str | None = None


class UpdateNodeRequest(BaseModel):
    """request body for moving and/or renaming a node."""

    position: Position | None = None
    label: str | None = None


class ConnectRequest(BaseModel):
    """request body for a drag-to-connect gesture."""

    source: str
    target: str


def _require_node(session: WorkflowSession, node_id: str) -> WorkflowNode:
    node = session.store.get_node(node_id)
    if node is None:
        raise HTTPException(status_code=404, detail=f"Node not found: {node_id}")
    return node


@router.get("/node-types")
def list_node_types(session: WorkflowSession = Depends(get_session)) -> list[NodeTypeDescriptor]:
    """list the palette entries in display order."""
    return session.list_node_types()


@router.get("/graph")
def get_graph(session: WorkflowSession = Depends(get_session)) -> GraphSnapshot:
    """current nodes (insertion order) and live edges."""
    return session.graph()


@router.post("/nodes", status_code=201)
def add_node(request: AddNodeRequest, session: WorkflowSession = Depends(get_session)) -> WorkflowNode:
    """add a node; unknown type ids are accepted with generic defaults."""
    return session.add_node(request.type_id, request.position, request.label)


@router.get("/nodes/{node_id}")
def get_node(node_id: str, session: WorkflowSession = Depends(get_session)) -> WorkflowNode:
    return _require_node(session, node_id)


@router.patch("/nodes/{node_id}")
def update_node(
    node_id: str,
    request: UpdateNodeRequest,
    session: WorkflowSession = Depends(get_session),
) -> WorkflowNode:
    """move and/or rename a node."""
    node = _require_node(session, node_id)
    if request.position is not None:
        session.move_node(node_id, request.position)
    if request.label is not None:
        session.rename_node(node_id, request.label)
    return node


@router.delete("/nodes/{node_id}")
def delete_node(node_id: str, session: WorkflowSession = Depends(get_session)) -> dict:
    """remove a node and the edges attached to it."""
    _require_node(session, node_id)
    session.remove_node(node_id)
    return {"deleted": node_id}


@router.post("/edges", status_code=201)
def connect(request: ConnectRequest, session: WorkflowSession = Depends(get_session)) -> Edge:
    """connect two nodes. Missing endpoints are a 404 only in strict mode."""
    try:
        return session.connect(request.source, request.target)
    except InvalidReference as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/edges/{edge_id}")
def delete_edge(edge_id: str, session: WorkflowSession = Depends(get_session)) -> dict:
    if not any(edge.id == edge_id for edge in session.store.edges()):
        raise HTTPException(status_code=404, detail=f"Edge not found: {edge_id}")
    session.remove_edge(edge_id)
    return {"deleted": edge_id}
