"""
FastAPI application entrypoint.

Run locally:  uvicorn tmk_validator.main:app --reload
"""

import logging

from fastapi import FastAPI

from tmk_validator.api.routes import registry, router
from tmk_validator.config import settings
from tmk_validator.models.database import Base, engine
from tmk_validator.services.errors import ValidatorError

logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s | %(name)s | %(message)s")

logger = logging.getLogger(__name__)

app = FastAPI(
    title="TMK Syntax Validator API",
    description=(
        "Validates Task, Method and Knowledge documents against their JSON "
        "schemas, optionally repairs key and enum casing, and scores each "
        "declared field with partial credit."
    ),
    version="1.0.0",
)

app.include_router(router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup():
    Base.metadata.create_all(bind=engine)
    try:
        await registry.load()
    except ValidatorError:
        # The registry stays FAILED; /health reports it and requests get a 503.
        logger.exception("Starting without schemas")
