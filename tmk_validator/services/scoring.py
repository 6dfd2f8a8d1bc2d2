"""
Partial-credit scoring of a document against its schema.

Every declared property is worth two points:

    0 - required but missing
    1 - present but malformed (the intent is legible, the shape is wrong)
    2 - present and valid, or optional and absent

so a nearly-right document scores close to ``max`` instead of simply failing.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

from tmk_validator.services.validation import Checker, ErrorRecord, compile_schema, json_pointer

logger = logging.getLogger(__name__)

FIELD_MAX = 2

MISSING_REQUIRED = "missing required field"
VACUOUSLY_CORRECT = "vacuously correct"
CORRECT_TYPE = "correct type"
VALIDATION_FAILED = "validation failed"


@dataclass
class FieldScore:
    score: int
    reason: str
    max: int = FIELD_MAX


@dataclass
class ScoreReport:
    score: int = 0
    max: int = 0
    fields: dict[str, FieldScore] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"score": self.score, "max": self.max}
        if self.fields is not None:
            result["fields"] = {name: asdict(info) for name, info in self.fields.items()}
        return result


def _reason_for(errors: list[ErrorRecord], name: str) -> str:
    pointer = json_pointer([name])
    for error in errors:
        path = error.instance_path
        if path == "" or path == pointer or path.startswith(pointer + "/"):
            return f"{error.keyword}: {error.message}"
    return VALIDATION_FAILED


def score_field(checker: Checker, name: str, definition: Any, data: dict[str, Any], required: bool) -> FieldScore:
    """Score one declared property of ``data``."""
    if name not in data:
        if required:
            return FieldScore(score=0, reason=MISSING_REQUIRED)
        return FieldScore(score=FIELD_MAX, reason=VACUOUSLY_CORRECT)

    valid, errors = checker.scoped(definition, name).check(data[name])
    if valid:
        return FieldScore(score=FIELD_MAX, reason=CORRECT_TYPE)
    return FieldScore(score=1, reason=_reason_for(errors, name))


def score(
    data: dict[str, Any],
    schema: dict[str, Any],
    detailed: bool = False,
    *,
    checker: Checker | None = None,
) -> ScoreReport:
    """
    Score ``data`` field by field against ``schema``.

    Pass the already-compiled ``checker`` for ``schema`` when one exists;
    otherwise the schema is compiled here. Each present field is checked with
    a checker scoped to that field's definition, which is what checking
    ``{field: value}`` against a single-property schema would report.
    """
    required = set(schema.get("required") or [])
    properties = schema.get("properties") or {}
    if checker is None:
        checker = compile_schema(schema)

    report = ScoreReport(fields={} if detailed else None)
    for name, definition in properties.items():
        result = score_field(checker, name, definition, data, name in required)
        report.max += FIELD_MAX
        report.score += result.score
        if detailed:
            report.fields[name] = result

    logger.debug("Scored %d/%d over %d fields", report.score, report.max, len(properties))
    return report
