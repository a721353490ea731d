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
from warp._exceptions import (
    ConfigurationError as ConfigurationError,
    InvalidRouteError as InvalidRouteError,
    UnknownValidatorError as UnknownValidatorError,
    WarpError as WarpError,
)
from warp._options import ValidationOptions as ValidationOptions
from warp._registry import ValidatorRegistry as ValidatorRegistry
from warp._validation import AsyncValidationProxy as AsyncValidationProxy

__all__ = (
    ## States
    "AnyState",
    "IdleRoute",
    "NeedETag",
    "NeedLastModified",
    "NotModified",
    "PassThrough",
    "PreHandlerResult",
    "State",
    "decorate_response",
    ## Models
    "Request",
    "Response",
    "ETag",
    "LastModified",
    "RouteValidation",
    "ValidationContext",
    "Success",
    "Failure",
    "HandlerOutcome",
    ## Headers
    "Headers",
    ## Configuration
    "ValidationOptions",
    "ValidatorRegistry",
    ## Errors
    "WarpError",
    "ConfigurationError",
    "InvalidRouteError",
    "UnknownValidatorError",
    # Proxy
    "AsyncValidationProxy",
)
