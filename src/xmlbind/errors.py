"""Error taxonomy for xmlbind.

Every failure raised by the kernel is an XmlBindError subclass carrying an
ErrorCode and, for document errors, the offending node's name and position.
"""

from typing import Optional

from xmlbind.codes import ErrorCode


class XmlBindError(Exception):
    """Base exception for all deserialization failures."""
    code: ErrorCode = ErrorCode.INTERNAL_INVARIANT

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class EmptyOrMalformedInput(XmlBindError):
    """Raised when no root node could be located in the input."""
    code = ErrorCode.EMPTY_OR_MALFORMED_INPUT

    def __init__(self, message: str = "Unexpected termination of XML input",
                 line: Optional[int] = None, column: Optional[int] = None):
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} at line {line}, {column}"
        super().__init__(message)


class UnexpectedNode(XmlBindError):
    """Raised when an attribute or element has no role and no wildcard bag."""
    code = ErrorCode.UNEXPECTED_NODE

    def __init__(self, name: str, line: int, column: int, message: Optional[str] = None):
        self.name = name
        self.line = line
        self.column = column
        super().__init__(message or f"Unexpected element {name} at line {line}, {column}")


class ValueCoercionError(UnexpectedNode):
    """Raised when a node's text cannot be parsed into the field's declared kind."""
    code = ErrorCode.INVALID_VALUE

    def __init__(self, name: str, value: str, target: str, line: int, column: int):
        self.value = value
        self.target = target
        super().__init__(
            name, line, column,
            message=f"Cannot convert {value!r} of {name} to {target} at line {line}, {column}",
        )


class SchemaMisannotation(XmlBindError):
    """Raised when a target type's role declarations are inconsistent."""
    code = ErrorCode.SCHEMA_MISANNOTATION

    def __init__(self, description: str):
        self.description = description
        super().__init__(description)


class DuplicatedRole(SchemaMisannotation):
    """Raised when a singleton role or a document name is declared twice."""

    def __init__(self, role: str, container: type):
        self.role = role
        self.container = container
        super().__init__(
            f"There is allowed only one occurrence of {role} in {container.__qualname__}."
        )


class InternalInvariantViolation(XmlBindError):
    """Raised on states the algorithm considers unreachable."""
    code = ErrorCode.INTERNAL_INVARIANT

    def __init__(self, message: str = "Unexpected situation!"):
        super().__init__(message)
