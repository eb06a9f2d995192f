"""
Request models for the resource layer.

Each request is an immutable dataclass validated when it is created:
required fields are constructor arguments, and `__post_init__` rejects
None or empty values for them. An incomplete request can never reach
the transport.
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, ClassVar, Dict, Tuple

from ..shared.errors import InvalidRequestError


def _to_param(value: Any) -> Any:
    if isinstance(value, RequestModel):
        return value.to_params()
    if isinstance(value, (list, tuple)):
        return [_to_param(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    return value


@dataclass(frozen=True)
class RequestModel:
    """Base class for request dataclasses."""

    REQUIRED: ClassVar[Tuple[str, ...]] = ()
    # At least one of these must be set (lookups by alternative identifiers)
    ONE_OF: ClassVar[Tuple[str, ...]] = ()

    def __post_init__(self):
        for name in self.REQUIRED:
            if getattr(self, name) in (None, ""):
                raise InvalidRequestError(name)

        if self.ONE_OF and all(getattr(self, name) in (None, "") for name in self.ONE_OF):
            raise InvalidRequestError(
                self.ONE_OF[0],
                f"Either {' or '.join(self.ONE_OF)} is required",
            )

    def to_params(self) -> Dict[str, Any]:
        """Field mapping for the request body, without unset fields."""
        params = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            params[f.name] = _to_param(value)
        return params
