"""API routes for running the workflow and reading its log."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from autoflow.errors import AutoflowError
from autoflow.models.run import RunRecord, RunStatus
from autoflow.session import WorkflowSession
from autoflow_api.deps import get_session

router = APIRouter()


class RunRequest(BaseModel):
    """request body for the execute action."""

    supersede: bool = False  # cancel an in-flight run instead of rejecting


class StatusResponse(BaseModel):
    """status for the execute button and busy indicator."""

    status: RunStatus
    can_run: bool
    record: RunRecord | None = None


class LogResponse(BaseModel):
    """log lines after `offset`, plus the offset to poll from next."""

    run_id: str | None = None
    status: RunStatus
    lines: list[str]
    next_offset: int


@router.post("/runs", status_code=202)
async def start_run(
    request: RunRequest | None = None,
    wait: bool = False,
    session: WorkflowSession = Depends(get_session),
) -> RunRecord:
    """start a run over the current graph.

    With `wait=true` the response is sent once the run has finished.
    """
    result = await session.run(supersede=request.supersede if request else False)
    try:
        result.raise_if_rejected()
    except AutoflowError as e:
        raise HTTPException(status_code=409, detail={"reason": result.reason.value, "message": str(e)})

    if wait:
        return await session.engine.wait()
    return result.record


@router.get("/runs/current")
def get_status(session: WorkflowSession = Depends(get_session)) -> StatusResponse:
    return StatusResponse(
        status=session.status,
        can_run=session.can_run(),
        record=session.engine.record,
    )


@router.get("/log")
def get_log(offset: int = 0, session: WorkflowSession = Depends(get_session)) -> LogResponse:
    """read the execution log incrementally."""
    lines = session.log_lines(offset)
    record = session.engine.record
    return LogResponse(
        run_id=record.run_id if record else None,
        status=session.status,
        lines=lines,
        next_offset=max(offset, 0) + len(lines),
    )
