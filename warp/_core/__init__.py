from warp._core._headers import Headers as Headers
from warp._core._states import (
    AnyState as AnyState,
    IdleRoute as IdleRoute,
    NeedETag as NeedETag,
    NeedLastModified as NeedLastModified,
    NotModified as NotModified,
    PassThrough as PassThrough,
    PreHandlerResult as PreHandlerResult,
    State as State,
    decorate_response as decorate_response,
)
from warp._core.models import (
    ETag as ETag,
    Failure as Failure,
    HandlerOutcome as HandlerOutcome,
    LastModified as LastModified,
    Request as Request,
    Response as Response,
    RouteValidation as RouteValidation,
    Success as Success,
    ValidationContext as ValidationContext,
)

__all__ = (
    "AnyState",
    "IdleRoute",
    "NeedETag",
    "NeedLastModified",
    "NotModified",
    "PassThrough",
    "PreHandlerResult",
    "State",
    "decorate_response",
    "Headers",
    "ETag",
    "Failure",
    "HandlerOutcome",
    "LastModified",
    "Request",
    "Response",
    "RouteValidation",
    "Success",
    "ValidationContext",
)
