from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import (
    Any,
    Awaitable,
    Callable,
    Mapping,
    Optional,
    Union,
)

from typing_extensions import TypeAlias

from warp._core._headers import Headers
from warp._utils import Timestamp


@dataclass
class Request:
    method: str
    url: str
    headers: Headers = field(default_factory=lambda: Headers({}))
    metadata: Mapping[str, Any] = field(default_factory=dict)
    """Framework specific data, e.g. the ASGI scope or path parameters."""


@dataclass
class Response:
    status_code: int
    headers: Headers = field(default_factory=lambda: Headers({}))


LastModifiedValidator: TypeAlias = Callable[
    [Request],
    Union[Optional[Timestamp], Awaitable[Optional[Timestamp]]],
]
ETagValidator: TypeAlias = Callable[[Request], Awaitable[str]]


@dataclass(frozen=True)
class LastModified:
    """
    Validate a route with a modification time.

    Args:
        validator: A callable returning the time the resource was last changed
            (a datetime, or seconds since the epoch), or the dotted name under
            which such a callable was registered in a `ValidatorRegistry`.
    """

    validator: Union[LastModifiedValidator, str]


@dataclass(frozen=True)
class ETag:
    """
    Validate a route with an opaque entity tag.

    Args:
        validator: An async callable returning the current tag of the resource.
            Failures are ignored and the request is served unvalidated.
    """

    validator: ETagValidator


RouteValidation: TypeAlias = Union[LastModified, ETag]


@dataclass
class ValidationContext:
    """
    Freshness tokens computed for the current request.

    Fields are only populated when a validator produced a usable value, even
    when validation is disabled, so handlers can always rely on them.
    """

    last_modified: Optional[datetime] = None
    etag: Optional[str] = None

    @property
    def has_token(self) -> bool:
        return self.last_modified is not None or self.etag is not None


@dataclass
class Success:
    """The handler produced a regular response."""

    response: Response


@dataclass
class Failure:
    """The pipeline produced an error response."""

    response: Response


HandlerOutcome: TypeAlias = Union[Success, Failure]
