"""Code execution bridge data models"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .diff import DiffResult


class CodeTask(BaseModel):
    """Code submitted for execution by the host"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    code: str
    submitted_at: int = Field(alias="submittedAt")  # epoch ms


class CodeResult(BaseModel):
    """Outcome reported by the host for one task"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    result: str | None = None
    error: str | None = None
    diff: DiffResult | None = None
    completed_at: int = Field(alias="completedAt")  # epoch ms


class SubmitCodeRequest(BaseModel):
    code: str = ""


class SubmitCodeResponse(BaseModel):
    ok: bool = True
    id: str


class ReportResultRequest(BaseModel):
    id: str = ""
    result: str | None = None
    error: str | None = None
    diff: DiffResult | None = None


class PendingCodeResponse(BaseModel):
    """Response of the host's pending poll"""

    model_config = ConfigDict(populate_by_name=True)

    pending: bool
    id: str | None = None
    code: str | None = None
    submitted_at: int | None = Field(None, alias="submittedAt")


class CodeResultResponse(BaseModel):
    """Response of the submitter's result poll"""

    model_config = ConfigDict(populate_by_name=True)

    ready: bool
    result: str | None = None
    error: str | None = None
    diff: DiffResult | None = None
    completed_at: int | None = Field(None, alias="completedAt")
