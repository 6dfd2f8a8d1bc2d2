"""
Schema registry – the named TMK schemas and their compiled checkers.

Loading is a one-time asynchronous step guarded by an explicit state machine:

    UNINITIALIZED -> LOADING -> READY
                             -> FAILED

Every lookup requires READY, so nothing ever runs against a half-loaded set
of schemas. The checker map is built privately and published in one
assignment once every schema has compiled.
"""

from __future__ import annotations

import asyncio
import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Iterable

from tmk_validator.services.errors import (
    RegistryNotReadyError,
    SchemaLoadError,
    UnknownSchemaError,
)
from tmk_validator.services.validation import Checker, compile_schema

logger = logging.getLogger(__name__)


class RegistryState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


def schema_path(schema_dir: Path, name: str) -> Path:
    return schema_dir / f"{name}.schema.json"


def _read_schema(path: Path) -> dict[str, Any]:
    try:
        with path.open(encoding="utf-8") as handle:
            document = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        raise SchemaLoadError(f"Cannot load schema {path.name}: {exc}") from exc
    if not isinstance(document, dict):
        raise SchemaLoadError(f"Schema {path.name} is not a JSON object")
    return document


class SchemaRegistry:
    """
    Usage:
        registry = SchemaRegistry(Path("schemata"), ["Task", "Method", "Knowledge"])
        await registry.load()
        registry.validate(document, "Task")
    """

    def __init__(self, schema_dir: Path, names: Iterable[str]):
        self.schema_dir = Path(schema_dir)
        self._names = tuple(names)
        self.state = RegistryState.UNINITIALIZED
        self.error: str | None = None
        self._schemata: dict[str, dict[str, Any]] = {}
        self._checkers: dict[str, Checker] = {}

    async def load(self) -> None:
        """Read and compile every schema. Idempotent once READY."""
        if self.state == RegistryState.READY:
            return
        if self.state == RegistryState.LOADING:
            raise RegistryNotReadyError("Schema registry is already loading")

        self.state = RegistryState.LOADING
        self.error = None
        logger.info("Loading %d schemas from %s", len(self._names), self.schema_dir)
        try:
            schemata: dict[str, dict[str, Any]] = {}
            for name in self._names:
                schemata[name] = await asyncio.to_thread(
                    _read_schema, schema_path(self.schema_dir, name)
                )
            checkers = {name: compile_schema(schema) for name, schema in schemata.items()}
        except Exception as exc:
            self.state = RegistryState.FAILED
            self.error = str(exc)
            logger.error("Schema registry failed to load: %s", exc)
            raise

        self._schemata = schemata
        self._checkers = checkers
        self.state = RegistryState.READY
        logger.info("Schema registry ready: %s", ", ".join(self._names))

    def ensure_ready(self) -> None:
        if self.state != RegistryState.READY:
            detail = f": {self.error}" if self.error else ""
            raise RegistryNotReadyError(f"Schema registry is {self.state.value}{detail}")

    def names(self) -> list[str]:
        self.ensure_ready()
        return list(self._names)

    def __contains__(self, name: object) -> bool:
        self.ensure_ready()
        return isinstance(name, str) and name in self._checkers

    def get_schema(self, name: str) -> dict[str, Any]:
        self.ensure_ready()
        try:
            return self._schemata[name]
        except KeyError:
            raise UnknownSchemaError(f"Unknown schema: {name}") from None

    def checker(self, name: str) -> Checker:
        self.ensure_ready()
        try:
            return self._checkers[name]
        except KeyError:
            raise UnknownSchemaError(f"Unknown schema: {name}") from None

    def model_selector_schema(self) -> dict[str, Any]:
        """Schema used to repair just the ``model`` field before a schema is chosen."""
        return {
            "type": "object",
            "properties": {"model": {"type": "string", "enum": self.names()}},
        }

    def validate(self, data: Any, schema_name: str) -> dict[str, Any]:
        """
        Check ``data`` against the named schema.
        Returns {"valid": True} or {"valid": False, "errors": [ErrorRecord, ...]}.
        """
        valid, errors = self.checker(schema_name).check(data)
        if valid:
            return {"valid": True}
        return {"valid": False, "errors": errors}
