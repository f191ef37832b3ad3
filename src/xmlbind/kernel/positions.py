"""Source position capture into designated fields of populated objects."""

from typing import Any, Optional

from .nodes import SourcePosition


def write_position(target: Any, field: Optional[str], position: SourcePosition) -> None:
    """Write ``position`` into ``target.<field>`` if a sink field is declared.

    Sink fields are validated during schema discovery, so a missing field
    here is a programming error and surfaces as AttributeError.
    """
    if field is None:
        return
    setattr(target, field, position)
