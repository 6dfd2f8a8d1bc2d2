"""Validation run history – records and lists API validation requests."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from tmk_validator.models.run import ValidationRun
from tmk_validator.pipeline.stages import ValidationReport

logger = logging.getLogger(__name__)


def record_run(
    db: Session,
    *,
    auto_fix: bool,
    report: ValidationReport | None = None,
    failure: str | None = None,
) -> ValidationRun:
    """Persist the outcome of one request (a report, or the error that stopped it)."""
    run = ValidationRun(auto_fix=auto_fix, failure=failure)
    if report is not None:
        run.schema_name = report.schema_name
        run.valid = report.valid
        run.score = report.score
        run.max_score = report.max
        run.error_count = report.error_count
        run.steps = report.steps
    db.add(run)
    db.commit()
    logger.info(
        "RUN: %s valid=%s score=%s/%s%s",
        run.schema_name, run.valid, run.score, run.max_score,
        f" failure={failure}" if failure else "",
    )
    return run


def recent_runs(db: Session, limit: int = 20) -> list[ValidationRun]:
    return (
        db.query(ValidationRun)
        .order_by(ValidationRun.created_at.desc())
        .limit(limit)
        .all()
    )
