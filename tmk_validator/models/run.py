"""
Validation run history.

One row per document submitted to the API, kept so that scores can be
compared over time as a model is iterated on.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, Integer, String, Text, Uuid

from tmk_validator.models.database import Base


class ValidationRun(Base):
    __tablename__ = "validation_runs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    schema_name = Column(String(64), nullable=True, comment="Null when the model could not be resolved")
    valid = Column(Boolean, nullable=True)
    score = Column(Integer, nullable=True)
    max_score = Column(Integer, nullable=True)
    auto_fix = Column(Boolean, default=False, nullable=False)
    error_count = Column(Integer, default=0, nullable=False)
    failure = Column(Text, nullable=True, comment="Message of a request-level error")
    steps = Column(JSON, comment="Per-step status and timing")
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    __table_args__ = (
        Index("ix_validation_runs_created_at", "created_at"),
        Index("ix_validation_runs_schema", "schema_name"),
    )
