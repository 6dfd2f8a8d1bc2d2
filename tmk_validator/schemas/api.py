"""Pydantic models for API request/response serialization."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class ValidationRequest(BaseModel):
    """A raw JSON document plus the report options."""
    json_text: str = Field(..., description="The document exactly as typed")
    detailed: bool = Field(False, description="Include the per-field score breakdown")
    show_raw_errors: bool = Field(False, description="Include checker errors when invalid")
    auto_fix: bool = Field(False, description="Repair key and enum casing before checking")


class ErrorDetail(BaseModel):
    instance_path: str
    keyword: str
    message: str


class FieldResult(BaseModel):
    score: int
    max: int = 2
    reason: str


class ValidationResponse(BaseModel):
    schema_name: str
    valid: bool
    score: int
    max: int
    errors: list[ErrorDetail] | None = None
    fields: dict[str, FieldResult] | None = None
    normalized: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Run history
# ---------------------------------------------------------------------------

class RunResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    schema_name: str | None
    valid: bool | None
    score: int | None
    max_score: int | None
    auto_fix: bool
    error_count: int
    failure: str | None
    created_at: datetime


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    status: str = "healthy"
    environment: str
    registry: str = "ready"
