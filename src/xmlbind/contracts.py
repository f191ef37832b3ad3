"""Public result models for xmlbind.api.deserialize()."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from xmlbind.codes import ErrorCode
from xmlbind.errors import XmlBindError


class DeserializationIssue(BaseModel):
    """The failure that aborted a deserialization call."""
    code: ErrorCode
    message: str
    name: Optional[str] = None  # offending attribute/element name (document errors)
    line: Optional[int] = None
    column: Optional[int] = None
    description: Optional[str] = None  # schema description (SCHEMA_MISANNOTATION)

    @classmethod
    def from_error(cls, error: XmlBindError) -> "DeserializationIssue":
        return cls(
            code=error.code,
            message=error.message,
            name=getattr(error, "name", None),
            line=getattr(error, "line", None),
            column=getattr(error, "column", None),
            description=getattr(error, "description", None),
        )


class DeserializationResult(BaseModel):
    """Outcome of one deserialization call: a populated object or an issue."""
    ok: bool
    value: Any = None
    error: Optional[DeserializationIssue] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    # Original exception, kept for unwrap(); not part of the dumped model
    _exception: Optional[XmlBindError] = None

    @classmethod
    def success(cls, value: Any) -> "DeserializationResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: XmlBindError) -> "DeserializationResult":
        result = cls(ok=False, error=DeserializationIssue.from_error(error))
        result._exception = error
        return result

    @property
    def is_document_error(self) -> bool:
        return self.error is not None and self.error.code.is_document_error

    def unwrap(self) -> Any:
        """Return the populated object, or raise the error that aborted the call."""
        if self.ok:
            return self.value
        if self._exception is not None:
            raise self._exception
        raise XmlBindError(self.error.message if self.error else "Deserialization failed")
