from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from warp._core.models import (
    ETag,
    Failure,
    HandlerOutcome,
    LastModified,
    Request,
    Response,
    RouteValidation,
    ValidationContext,
)
from warp._exceptions import InvalidRouteError
from warp._options import ValidationOptions
from warp._utils import format_http_date, is_valid_timestamp, parse_date, second_boundary, to_datetime

logger = logging.getLogger("warp.core.states")

VALIDATION_HEADERS = ("last-modified", "etag")


@dataclass
class State(ABC):
    options: ValidationOptions

    @abstractmethod
    def next(self, *args: Any, **kwargs: Any) -> Any:
        raise NotImplementedError("Subclasses must implement this method")


def modified_since_matches(request: Request, last_modified: Any) -> bool:
    """
    Tell whether the client's copy, dated by If-Modified-Since, is still current.

    The computed time is truncated to whole seconds first since HTTP dates
    cannot express anything finer. A missing or unparseable header never matches.

    Examples:
    --------
    >>> from datetime import datetime, timezone
    >>> from warp import Headers, Request
    >>> request = Request("GET", "/", headers=Headers({"if-modified-since": "Mon, 01 Jan 2024 00:00:00 GMT"}))
    >>> modified_since_matches(request, datetime(2024, 1, 1, 0, 0, 0, 500000, tzinfo=timezone.utc))
    True
    >>> modified_since_matches(request, datetime(2024, 1, 1, 0, 0, 1, tzinfo=timezone.utc))
    False
    """
    header = request.headers.get("if-modified-since")
    if not header:
        return False

    since = parse_date(header)
    if since is None:
        logger.debug("Ignoring unparseable If-Modified-Since header: %r", header)
        return False

    return since >= second_boundary(to_datetime(last_modified)).timestamp()


def none_match_matches(request: Request, etag: str) -> bool:
    """
    Exact, case-sensitive comparison of If-None-Match with the computed tag.

    No weak comparison and no list parsing: `W/"a"` does not match `"a"`.
    """
    header = request.headers.get("if-none-match")
    return header is not None and header == etag


def decorate_response(
    outcome: HandlerOutcome,
    context: ValidationContext,
    options: ValidationOptions,
) -> HandlerOutcome:
    """
    Attach (or strip) the validation headers of an outgoing response.

    - Error responses are returned untouched.
    - When enabled, the tokens held by the context are written to
      Last-Modified and ETag.
    - When disabled, Last-Modified and ETag are removed whether or not
      validation ran for the request.
    """
    if isinstance(outcome, Failure):
        logger.debug("Leaving error response untouched: status=%d", outcome.response.status_code)
        return outcome

    headers = outcome.response.headers
    if options.enabled and context.has_token:
        if context.last_modified is not None:
            headers["last-modified"] = format_http_date(context.last_modified)
        if context.etag is not None:
            headers["etag"] = context.etag
        logger.debug(
            "Decorated response: last_modified=%s etag=%s",
            headers.get("last-modified"),
            headers.get("etag"),
        )
    elif not options.enabled:
        stripped = [name for name in VALIDATION_HEADERS if name in headers]
        for name in stripped:
            del headers[name]
        if stripped:
            logger.debug("Stripped validation headers from response: %s", ", ".join(stripped))
    return outcome


@dataclass
class IdleRoute(State):
    """
    Entry point of the pre-handler phase.

    Picks the branch to follow from the route configuration and allocates the
    context of the request.
    """

    def next(
        self,
        request: Request,
        route: Optional[RouteValidation],
    ) -> Union["PassThrough", "NeedLastModified", "NeedETag"]:
        context = ValidationContext()

        if route is None:
            return PassThrough(options=self.options, context=context)
        if isinstance(route, LastModified):
            return NeedLastModified(options=self.options, request=request, route=route, context=context)
        if isinstance(route, ETag):
            return NeedETag(options=self.options, request=request, route=route, context=context)

        raise InvalidRouteError(f"Expected LastModified, ETag or None as route validation, got {route!r}.")


@dataclass
class NeedLastModified(State):
    request: Request
    route: LastModified
    context: ValidationContext

    def next(self, last_modified: Any) -> Union["PassThrough", "NotModified"]:
        """
        Compare the computed modification time with If-Modified-Since.

        The time is stored in the context whenever it is valid, regardless of
        `options.enabled`.
        """
        if not is_valid_timestamp(last_modified):
            logger.debug("Validator returned no usable timestamp: %r", last_modified)
            return PassThrough(options=self.options, context=self.context)

        self.context.last_modified = to_datetime(last_modified)

        if self.options.enabled and modified_since_matches(self.request, self.context.last_modified):
            logger.debug("Client copy is current: last_modified=%s", self.context.last_modified.isoformat())
            return NotModified(options=self.options, context=self.context)

        return PassThrough(options=self.options, context=self.context)


@dataclass
class NeedETag(State):
    request: Request
    route: ETag
    context: ValidationContext

    def next(self, etag: Any) -> Union["PassThrough", "NotModified"]:
        if not isinstance(etag, str):
            logger.debug("Validator returned no usable etag: %r", etag)
            return PassThrough(options=self.options, context=self.context)

        self.context.etag = etag

        if self.options.enabled and none_match_matches(self.request, etag):
            logger.debug("Client copy is current: etag=%s", etag)
            return NotModified(options=self.options, context=self.context)

        return PassThrough(options=self.options, context=self.context)

    def fail(self, error: BaseException) -> "PassThrough":
        """Computing the tag failed, serve the request unvalidated."""
        logger.warning("ETag validator failed, serving request unvalidated: %r", error, exc_info=error)
        return PassThrough(options=self.options, context=self.context)


@dataclass
class NotModified(State):
    """Terminal state: the handler is skipped and an empty 304 is sent."""

    context: ValidationContext
    response: Response = field(default_factory=lambda: Response(status_code=304))

    def next(self) -> None:
        return None


@dataclass
class PassThrough(State):
    """The handler runs, its outcome goes through `next` on the way out."""

    context: ValidationContext

    def next(self, outcome: HandlerOutcome) -> HandlerOutcome:
        return decorate_response(outcome, self.context, self.options)


AnyState = Union[IdleRoute, NeedLastModified, NeedETag, NotModified, PassThrough]
PreHandlerResult = Union[PassThrough, NotModified]

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
    "modified_since_matches",
    "none_match_matches",
)
