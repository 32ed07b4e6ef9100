"""Code execution bridge endpoints"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from models.bridge import (
    CodeResultResponse,
    PendingCodeResponse,
    ReportResultRequest,
    SubmitCodeRequest,
    SubmitCodeResponse,
)
from services.code_bridge import CodeExecutionBridge
from services.errors import RelayError

from .deps import get_bridge

router = APIRouter()


@router.post("/execute-code", response_model=SubmitCodeResponse)
async def execute_code(
    request: SubmitCodeRequest, bridge: CodeExecutionBridge = Depends(get_bridge)
) -> SubmitCodeResponse:
    """Queue code for the execution host"""
    try:
        task_id = bridge.submit(request.code)
    except RelayError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return SubmitCodeResponse(id=task_id)


@router.get(
    "/pending-code",
    response_model=PendingCodeResponse,
    response_model_exclude_none=True,
)
async def pending_code(bridge: CodeExecutionBridge = Depends(get_bridge)) -> PendingCodeResponse:
    """Host poll: hand over the oldest queued task"""
    task = bridge.poll_pending()
    if task is None:
        return PendingCodeResponse(pending=False)
    return PendingCodeResponse(
        pending=True, id=task.id, code=task.code, submitted_at=task.submitted_at
    )


@router.post("/code-result")
async def report_result(
    request: ReportResultRequest, bridge: CodeExecutionBridge = Depends(get_bridge)
) -> dict:
    """Host push: store the outcome of a task"""
    try:
        bridge.report_result(request.id, request.result, request.error, request.diff)
    except RelayError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"ok": True}


@router.get(
    "/code-result/{task_id}",
    response_model=CodeResultResponse,
    response_model_exclude_none=True,
)
async def get_result(
    task_id: str, bridge: CodeExecutionBridge = Depends(get_bridge)
) -> CodeResultResponse:
    """Submitter poll: read a stored result without consuming it"""
    entry = bridge.poll_result(task_id)
    if entry is None:
        return CodeResultResponse(ready=False)
    return CodeResultResponse(
        ready=True,
        result=entry.result,
        error=entry.error,
        diff=entry.diff,
        completed_at=entry.completed_at,
    )
