"""
JSON Schema conformance checking.

Demonstrates:
- Schema-driven data validation via the jsonschema library
- Collecting all errors rather than failing on the first one
- Structured error records (JSON Pointer path, failed keyword, message)
- Lenient schema acceptance: unknown keywords are ignored and the schema
  itself is never meta-validated
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable

import jsonschema
from jsonschema.validators import validator_for


@dataclass(frozen=True)
class ErrorRecord:
    """One conformance failure, located by a JSON Pointer into the instance."""

    instance_path: str
    keyword: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def json_pointer(parts: Iterable[Any]) -> str:
    """Render path segments as an RFC 6901 pointer ("" is the document root)."""
    return "".join(
        "/" + str(part).replace("~", "~0").replace("/", "~1") for part in parts
    )


class Checker:
    """
    A compiled schema. Call it with a value; it returns True/False and leaves
    every error found in ``errors`` (cleared on each call). Shared checkers
    should be used through ``check``, which keeps no state.
    """

    def __init__(self, validator: jsonschema.protocols.Validator, prefix: tuple = ()):
        self._validator = validator
        self._prefix = prefix
        self.errors: list[ErrorRecord] = []

    @property
    def schema(self) -> dict[str, Any]:
        return self._validator.schema

    def check(self, data: Any) -> tuple[bool, list[ErrorRecord]]:
        """Validate without touching ``errors``; safe to share between threads."""
        errors = [
            ErrorRecord(
                instance_path=json_pointer(self._prefix + tuple(error.absolute_path)),
                keyword=str(error.validator),
                message=error.message,
            )
            for error in self._validator.iter_errors(data)
        ]
        return not errors, errors

    def __call__(self, data: Any) -> bool:
        valid, self.errors = self.check(data)
        return valid

    def scoped(self, subschema: dict[str, Any], *path: Any) -> Checker:
        """
        Checker for a sub-schema of this one. ``$ref``s still resolve against
        the root document, and reported paths are prefixed with ``path`` so
        they read as if the whole document had been checked.
        """
        return Checker(self._validator.evolve(schema=subschema), self._prefix + path)


def compile_schema(schema: dict[str, Any]) -> Checker:
    """Build a Checker; the dialect follows ``$schema`` and defaults to Draft 7."""
    cls = validator_for(schema, default=jsonschema.Draft7Validator)
    return Checker(cls(schema, format_checker=jsonschema.FormatChecker()))
