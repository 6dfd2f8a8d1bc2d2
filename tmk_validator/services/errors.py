"""User-facing error types raised by the validator services."""


class ValidatorError(ValueError):
    """Base class for errors that terminate a single validation request."""


class MalformedInputError(ValidatorError):
    """Raw input text could not be parsed as JSON."""


class UnknownSchemaError(ValidatorError):
    """The document's model name does not resolve to a known schema."""


class KeyCollisionError(ValidatorError):
    """Two input keys normalize to the same canonical key."""

    def __init__(self, canonical: str, first: str, second: str):
        self.canonical = canonical
        self.first = first
        self.second = second
        super().__init__(
            f"Keys '{first}' and '{second}' both normalize to '{canonical}'"
        )


class RegistryNotReadyError(ValidatorError):
    """The schema registry has not finished loading (or failed to load)."""


class SchemaLoadError(ValidatorError):
    """A schema document could not be read during registry initialization."""
