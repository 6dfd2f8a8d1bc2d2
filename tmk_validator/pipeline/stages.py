"""
The validation request: parse -> resolve model -> normalize -> check -> score.

Each stage receives the shared context and returns the keys it adds. A
malformed document or an unresolvable model stops the request and the error
reaches the caller; an invalid document is an ordinary result.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from tmk_validator.pipeline.runner import Pipeline
from tmk_validator.services.errors import MalformedInputError, UnknownSchemaError
from tmk_validator.services.normalizer import normalize
from tmk_validator.services.registry import SchemaRegistry
from tmk_validator.services.scoring import FieldScore, score
from tmk_validator.services.validation import ErrorRecord

logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    schema_name: str
    valid: bool
    score: int
    max: int
    error_count: int = 0
    errors: list[ErrorRecord] | None = None
    fields: dict[str, FieldScore] | None = None
    normalized: dict[str, Any] | None = None
    steps: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Stages (each receives and returns a context dict)
# ---------------------------------------------------------------------------


def parse(context: dict[str, Any]) -> dict[str, Any]:
    try:
        document = json.loads(context["raw_text"])
    except (TypeError, json.JSONDecodeError) as exc:
        raise MalformedInputError(f"Invalid JSON: {exc}") from exc
    except RecursionError as exc:
        raise MalformedInputError("Invalid JSON: nesting too deep") from exc
    return {"document": document}


def resolve_model(context: dict[str, Any]) -> dict[str, Any]:
    """
    Pick the schema named by the document's ``model`` field. With auto-fix the
    field is repaired first, so ``{"Model": "task"}`` resolves to Task.
    """
    registry: SchemaRegistry = context["registry"]
    document = context["document"]

    if context["auto_fix"] and isinstance(document, dict):
        document = normalize(
            document, registry.model_selector_schema(), on_collision=context["on_collision"]
        )

    name = document.get("model") if isinstance(document, dict) else None
    if not isinstance(name, str) or name not in registry:
        raise UnknownSchemaError(
            'Invalid or missing "model" field. Must be one of: '
            + ", ".join(registry.names())
            + "."
        )
    return {"document": document, "schema_name": name}


def normalize_document(context: dict[str, Any]) -> dict[str, Any]:
    if not context["auto_fix"]:
        return {}
    registry: SchemaRegistry = context["registry"]
    document = normalize(
        context["document"],
        registry.get_schema(context["schema_name"]),
        on_collision=context["on_collision"],
    )
    return {"document": document, "normalized": document}


def check(context: dict[str, Any]) -> dict[str, Any]:
    registry: SchemaRegistry = context["registry"]
    result = registry.validate(context["document"], context["schema_name"])
    logger.info(
        "%s document is %s", context["schema_name"], "valid" if result["valid"] else "invalid"
    )
    return {"valid": result["valid"], "errors": result.get("errors", [])}


def score_document(context: dict[str, Any]) -> dict[str, Any]:
    registry: SchemaRegistry = context["registry"]
    name = context["schema_name"]
    report = score(
        context["document"],
        registry.get_schema(name),
        context["detailed"],
        checker=registry.checker(name),
    )
    return {"score_report": report}


# ---------------------------------------------------------------------------
# Pipeline factory
# ---------------------------------------------------------------------------


def build_validation_pipeline() -> Pipeline:
    pipeline = Pipeline("validate_document")
    pipeline.add_step("parse", parse)
    pipeline.add_step("resolve_model", resolve_model, after=["parse"])
    pipeline.add_step("normalize", normalize_document, after=["resolve_model"])
    pipeline.add_step("check", check, after=["normalize"])
    pipeline.add_step("score", score_document, after=["normalize"])
    return pipeline


def run_validation(
    raw_text: str,
    registry: SchemaRegistry,
    *,
    detailed: bool = False,
    show_raw_errors: bool = False,
    auto_fix: bool = False,
    on_collision: str = "error",
) -> ValidationReport:
    """
    Validate and score one raw JSON document.

    Raises MalformedInputError, UnknownSchemaError or KeyCollisionError for
    problems that stop the request; RegistryNotReadyError if called before
    the registry has loaded.
    """
    registry.ensure_ready()
    pipeline = build_validation_pipeline()
    summary = pipeline.run(
        {
            "raw_text": raw_text,
            "registry": registry,
            "detailed": detailed,
            "auto_fix": auto_fix,
            "on_collision": on_collision,
        },
        raise_on_failure=True,
    )
    context = summary["context"]
    scored = context["score_report"]

    return ValidationReport(
        schema_name=context["schema_name"],
        valid=context["valid"],
        score=scored.score,
        max=scored.max,
        error_count=len(context["errors"]),
        errors=context["errors"] if show_raw_errors and not context["valid"] else None,
        fields=scored.fields,
        normalized=context.get("normalized"),
        steps=summary["steps"],
    )
