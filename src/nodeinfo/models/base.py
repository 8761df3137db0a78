"""Base Pydantic model configuration for NodeInfo models.

All NodeInfo models inherit from NodeInfoBaseModel to ensure consistent behavior:
- Immutability (frozen=True) so a document never changes after construction
- Strict validation (extra="forbid") to catch misspelled fields
- Flexible field naming (populate_by_name=True) for camelCase wire aliases
- Construction failures surface as nodeinfo.errors.ValidationError, never as
  a raw pydantic error
"""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from nodeinfo.errors import ValidationError


def to_validation_error(exc: PydanticValidationError) -> ValidationError:
    """Convert the first pydantic error into a NodeInfo ValidationError.

    Only the first violation is reported, matching the one-error-at-a-time
    behaviour of the explicit invariant checks.
    """
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or None
    message = f"{field} {first['msg'].lower()}" if field else first["msg"]
    return ValidationError(message, field=field, details={"error_count": exc.error_count()})


class NodeInfoBaseModel(BaseModel):
    """Base model for all NodeInfo document entities.

    Example:
        >>> class MyModel(NodeInfoBaseModel):
        ...     name: str
        >>>
        >>> obj = MyModel(name="test")
        >>> obj.name = "other"  # Raises ValidationError (frozen)
        Traceback (most recent call last):
        ...
        pydantic_core._pydantic_core.ValidationError: ...
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        # Wire names (openRegistrations, localPosts) and Python names both accepted
        populate_by_name=True,
        validate_default=True,
    )

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except PydanticValidationError as e:
            raise to_validation_error(e) from e
