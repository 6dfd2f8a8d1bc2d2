"""
FastAPI routes – the main API surface.

Demonstrates:
- Dependency injection (schema registry and database session via Depends)
- Running the validation pipeline via an HTTP trigger
- Request-level errors mapped to HTTP status codes, validation failures
  returned as ordinary data
"""

from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from tmk_validator.config import settings
from tmk_validator.models.database import get_db
from tmk_validator.pipeline.stages import ValidationReport, run_validation
from tmk_validator.schemas.api import (
    ErrorDetail,
    FieldResult,
    HealthResponse,
    RunResponse,
    ValidationRequest,
    ValidationResponse,
)
from tmk_validator.services.errors import RegistryNotReadyError, ValidatorError
from tmk_validator.services.history import recent_runs, record_run
from tmk_validator.services.registry import RegistryState, SchemaRegistry

logger = logging.getLogger(__name__)

router = APIRouter()

registry = SchemaRegistry(settings.SCHEMA_DIR, settings.MODEL_NAMES)


def get_registry() -> SchemaRegistry:
    return registry


def _ready(schemas: SchemaRegistry) -> SchemaRegistry:
    try:
        schemas.ensure_ready()
    except RegistryNotReadyError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return schemas


def to_response(report: ValidationReport) -> ValidationResponse:
    return ValidationResponse(
        schema_name=report.schema_name,
        valid=report.valid,
        score=report.score,
        max=report.max,
        errors=[ErrorDetail(**e.to_dict()) for e in report.errors] if report.errors is not None else None,
        fields=(
            {name: FieldResult(**asdict(info)) for name, info in report.fields.items()}
            if report.fields is not None
            else None
        ),
        normalized=report.normalized,
    )


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@router.get("/health", response_model=HealthResponse)
def health_check(schemas: SchemaRegistry = Depends(get_registry)):
    """Reports whether the schema registry finished loading."""
    return HealthResponse(
        status="healthy" if schemas.state == RegistryState.READY else "degraded",
        environment=settings.ENVIRONMENT,
        registry=schemas.state.value,
    )


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

@router.get("/schemas", response_model=list[str])
def list_schemas(schemas: SchemaRegistry = Depends(get_registry)):
    return _ready(schemas).names()


@router.get("/schemas/{name}")
def get_schema(name: str, schemas: SchemaRegistry = Depends(get_registry)):
    schemas = _ready(schemas)
    if name not in schemas:
        raise HTTPException(status_code=404, detail=f"Unknown schema: {name}")
    return schemas.get_schema(name)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

@router.post("/validate", response_model=ValidationResponse, response_model_exclude_none=True)
def validate_document(
    request: ValidationRequest,
    schemas: SchemaRegistry = Depends(get_registry),
    db: Session = Depends(get_db),
):
    """
    Validate and score a raw JSON document. An invalid document is a 200 with
    ``valid: false``; unparseable input or an unknown model is a 422.
    """
    schemas = _ready(schemas)
    try:
        report = run_validation(
            request.json_text,
            schemas,
            detailed=request.detailed,
            show_raw_errors=request.show_raw_errors,
            auto_fix=request.auto_fix,
            on_collision=settings.KEY_COLLISION_MODE,
        )
    except ValidatorError as exc:
        if settings.RECORD_RUNS:
            record_run(db, auto_fix=request.auto_fix, failure=str(exc))
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    if settings.RECORD_RUNS:
        record_run(db, auto_fix=request.auto_fix, report=report)
    return to_response(report)


# ---------------------------------------------------------------------------
# Run history
# ---------------------------------------------------------------------------

@router.get("/runs", response_model=list[RunResponse])
def list_runs(limit: int = Query(20, ge=1, le=500), db: Session = Depends(get_db)):
    """Most recent validation runs first."""
    return recent_runs(db, limit=limit)
