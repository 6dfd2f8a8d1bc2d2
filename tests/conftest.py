"""Shared fixtures – an in-memory database and loaded schema registries."""

import asyncio
import json
import os

# Must be set before tmk_validator.models.database creates its engine.
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest  # noqa: E402

from tmk_validator.config import PACKAGE_SCHEMA_DIR  # noqa: E402
from tmk_validator.services.registry import SchemaRegistry  # noqa: E402

SCENARIO_SCHEMA = {
    "type": "object",
    "properties": {
        "model": {"type": "string", "enum": ["Task"]},
        "steps": {"type": "array"},
    },
    "required": ["model"],
}


@pytest.fixture
def scenario_schema():
    return json.loads(json.dumps(SCENARIO_SCHEMA))


@pytest.fixture
def registry():
    """The packaged Task/Method/Knowledge schemas, loaded."""
    schemas = SchemaRegistry(PACKAGE_SCHEMA_DIR, ["Task", "Method", "Knowledge"])
    asyncio.run(schemas.load())
    return schemas


@pytest.fixture
def scenario_registry(tmp_path):
    """A registry whose only model, Task, uses the two-field scenario schema."""
    (tmp_path / "Task.schema.json").write_text(json.dumps(SCENARIO_SCHEMA))
    schemas = SchemaRegistry(tmp_path, ["Task"])
    asyncio.run(schemas.load())
    return schemas


@pytest.fixture
def make_task():
    def _make_task(**overrides):
        task = {
            "model": "Task",
            "name": "Make Tea",
            "goal": "A cup of tea is ready",
            "given": ["kettle filled"],
            "makes": ["tea brewed"],
            "methods": ["Brew"],
            "subtasks": [
                {"name": "Boil Water", "kind": "Primitive"},
                {"name": "Steep", "kind": "Primitive"},
            ],
        }
        task.update(overrides)
        return task

    return _make_task
