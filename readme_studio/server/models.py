"""Pydantic models for the HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class IssueModel(_CamelModel):
    """Serialized integrity issue; ``type`` carries the severity."""

    type: str
    code: str
    message: str
    suggestion: str | None = None


class IntegrityResponse(_CamelModel):
    """Integrity issues grouped by bucket."""

    conflicts: list[IssueModel]
    warnings: list[IssueModel]
    suggestions: list[IssueModel]


class TestCaseModel(_CamelModel):
    """Serialized test recommendation."""

    name: str
    description: str
    steps: list[str]
    expected_result: str = Field(..., alias="expectedResult")


class TestsPlanResponse(_CamelModel):
    """Test recommendations grouped by category."""

    unit_tests: list[TestCaseModel] = Field(..., alias="unitTests")
    integration_tests: list[TestCaseModel] = Field(..., alias="integrationTests")
    e2e_tests: list[TestCaseModel] = Field(..., alias="e2eTests")
    manual_checks: list[TestCaseModel] = Field(..., alias="manualChecks")


class GenerateResponse(_CamelModel):
    """Response payload for README generation."""

    id: str
    doc_id: str | None = Field(default=None, alias="docId")
    readme: str
    integrity: IntegrityResponse
    warning: str | None = None


class ResultResponse(_CamelModel):
    """Short-lived generated README."""

    id: str
    readme: str
    timestamp: int


class HealthResponse(_CamelModel):
    """Liveness payload."""

    status: str
    timestamp: datetime


class InfoResponse(_CamelModel):
    """Service description."""

    name: str
    version: str
    endpoints: list[str]


class MarkdownCreateRequest(_CamelModel):
    """Request payload for saving a README document."""

    title: str = Field(..., min_length=1)
    markdown: str = Field(..., min_length=1)
    project_name: str | None = Field(default=None, alias="projectName")


class MarkdownUpdateRequest(_CamelModel):
    """Partial update of a README document."""

    project_name: str | None = Field(default=None, alias="projectName")
    description: str | None = None
    markdown: str | None = None
    content: str | None = None

    def changes(self) -> dict[str, str]:
        """Return only the fields the caller supplied."""
        return self.model_dump(exclude_none=True, by_alias=False)


class DocumentModel(_CamelModel):
    """Serialized README document."""

    id: str
    title: str
    markdown: str
    project_name: str = Field(..., alias="projectName")
    description: str
    content: str | None = None
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")


class DocumentEnvelope(_CamelModel):
    """Single document response."""

    success: bool = True
    data: DocumentModel
    message: str | None = None


class DocumentListEnvelope(_CamelModel):
    """Document list response."""

    success: bool = True
    data: list[DocumentModel]
    total: int


class SpecEnvelope(_CamelModel):
    """Stored specification for re-editing a document."""

    success: bool = True
    data: dict[str, Any]


class AckResponse(_CamelModel):
    """Acknowledgement for mutations without a body."""

    success: bool = True
    message: str
