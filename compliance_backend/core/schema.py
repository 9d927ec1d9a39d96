from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

WORKFLOW_SUCCEEDED = "succeeded"


class UploadResponse(BaseModel):
    """File record returned by the upload endpoint."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    name: str = ""
    size: int = 0
    extension: str | None = None
    mime_type: str = "application/octet-stream"
    created_by: str | None = None
    created_at: int | None = None

    @field_validator("created_by", mode="before")
    @classmethod
    def _stringify_creator(cls, value: Any) -> str | None:
        if value is None:
            return None
        return str(value)


class Assessment(BaseModel):
    model_config = ConfigDict(extra="allow")

    # kept as a plain string: unexpected symbols must survive parsing
    compliance_status: str = ""
    reasoning: str = ""
    alternative_solution: str | None = None
    reference_source: str | None = None
    type: str | None = None


class JudgementItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    original_item: str = ""
    assessment: Assessment = Field(default_factory=Assessment)

    @property
    def status(self) -> str:
        return self.assessment.compliance_status


class WorkflowOutputs(BaseModel):
    model_config = ConfigDict(extra="allow")

    judgement: list[JudgementItem] = Field(default_factory=list)

    @field_validator("judgement", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class WorkflowRunResult(BaseModel):
    """Run object returned by a blocking workflow execution."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    workflow_id: str | None = None
    status: str = "running"
    outputs: WorkflowOutputs = Field(default_factory=WorkflowOutputs)
    error: str | None = None
    elapsed_time: float = 0.0
    total_tokens: int = 0
    total_steps: int = 0
    created_at: int | None = None
    finished_at: int | None = None

    @field_validator("outputs", mode="before")
    @classmethod
    def _outputs_none_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def succeeded(self) -> bool:
        return self.status == WORKFLOW_SUCCEEDED

    @property
    def judgement(self) -> list[JudgementItem]:
        return self.outputs.judgement

    @classmethod
    def from_response(cls, body: dict[str, Any]) -> "WorkflowRunResult":
        """Parse either the blocking response envelope or a bare run object."""

        data = body.get("data")
        if isinstance(data, dict):
            run = dict(data)
            if not run.get("id") and body.get("workflow_run_id"):
                run["id"] = body["workflow_run_id"]
            return cls.model_validate(run)
        run = dict(body)
        if not run.get("id") and run.get("workflow_run_id"):
            run["id"] = run["workflow_run_id"]
        return cls.model_validate(run)
