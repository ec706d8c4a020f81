"""Shared FastAPI dependencies."""

from fastapi import Request

from autoflow.session import WorkflowSession


def get_session(request: Request) -> WorkflowSession:
    """The session created at startup (one per app)."""
    return request.app.state.session
