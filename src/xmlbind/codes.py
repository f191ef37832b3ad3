"""Error code constants for xmlbind.api.deserialize().

These constants prevent stringly-typed error codes and let client code
tell document errors apart from schema-definition errors.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Deserialization error codes."""

    # Document errors (the input does not match the declared schema)
    EMPTY_OR_MALFORMED_INPUT = "EMPTY_OR_MALFORMED_INPUT"
    UNEXPECTED_NODE = "UNEXPECTED_NODE"
    INVALID_VALUE = "INVALID_VALUE"

    # Schema-definition errors (the target type is declared inconsistently)
    SCHEMA_MISANNOTATION = "SCHEMA_MISANNOTATION"

    # Unreachable states
    INTERNAL_INVARIANT = "INTERNAL_INVARIANT"

    @property
    def is_document_error(self) -> bool:
        return self in (
            ErrorCode.EMPTY_OR_MALFORMED_INPUT,
            ErrorCode.UNEXPECTED_NODE,
            ErrorCode.INVALID_VALUE,
        )
