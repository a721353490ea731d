from __future__ import annotations

import logging
import typing as t

from warp._core._headers import Headers
from warp._core._states import NotModified, PassThrough
from warp._core.models import Failure, HandlerOutcome, Request, Response, RouteValidation, Success, ValidationContext
from warp._options import ValidationOptions
from warp._registry import ValidatorRegistry
from warp._utils import HEADERS_ENCODING
from warp._validation import AsyncValidationProxy

# Configure logger for this module
logger = logging.getLogger(__name__)

STATE_KEY = "warp"


class _ASGIScope(t.TypedDict, total=False):
    """ASGI HTTP scope type."""

    type: str
    asgi: dict[str, str]
    http_version: str
    method: str
    scheme: str
    path: str
    query_string: bytes
    root_path: str
    headers: list[tuple[bytes, bytes]]
    server: tuple[str, int | None] | None
    client: tuple[str, int] | None
    state: dict[str, t.Any]
    extensions: dict[str, t.Any]


_Scope = _ASGIScope
_Receive = t.Callable[[], t.Awaitable[dict[str, t.Any]]]
_Send = t.Callable[[dict[str, t.Any]], t.Awaitable[None]]
_ASGIApp = t.Callable[[_Scope, _Receive, _Send], t.Awaitable[None]]
_RouteResolver = t.Callable[[_Scope], t.Optional[RouteValidation]]


def get_validation_context(scope: t.Mapping[str, t.Any]) -> ValidationContext:
    """
    Return the validation context the middleware computed for this request.

    Handlers running behind `ASGIValidationMiddleware` can read the computed
    Last-Modified time or ETag from here. With Starlette or FastAPI the same
    object is available as `request.state.warp`.

    Returns an empty context for requests the middleware did not see.
    """
    context = scope.get("state", {}).get(STATE_KEY)
    if isinstance(context, ValidationContext):
        return context
    return ValidationContext()


class ASGIValidationMiddleware:
    """
    ASGI middleware answering conditional requests with 304 Not Modified.

    For each request the route validation is looked up, its validator is run
    and the result is compared with If-Modified-Since or If-None-Match. When
    the client copy is current the wrapped application is not called at all.
    Otherwise the application runs and its response is decorated with
    Last-Modified / ETag, or stripped of them when validation is disabled.

    Responses with a status code of 400 or above are treated as errors and
    passed through untouched.

    Args:
        app: The ASGI application to wrap.
        routes: Route validation per request path, or a callable receiving the
            ASGI scope and returning the route validation (or None).
        options: Validation options. Defaults to ValidationOptions(), which is disabled.
        registry: Named validators that LastModified routes may refer to.

    Raises:
        UnknownValidatorError: A route in `routes` names a validator missing from `registry`.

    Example:
        ```python
        from warp import LastModified, ValidationOptions
        from warp.asgi import ASGIValidationMiddleware

        app = ASGIValidationMiddleware(
            app=my_asgi_app,
            routes={"/posts": LastModified(posts_last_modified)},
            options=ValidationOptions(enabled=True),
        )
        ```
    """

    def __init__(
        self,
        app: _ASGIApp,
        routes: t.Mapping[str, t.Optional[RouteValidation]] | _RouteResolver | None = None,
        options: ValidationOptions | None = None,
        registry: ValidatorRegistry | None = None,
    ) -> None:
        self.app = app
        self.routes = routes if routes is not None else {}
        self._proxy = AsyncValidationProxy(options=options, registry=registry)

        if not callable(self.routes):
            self._proxy.check_routes(self.routes.values())

        logger.info(
            "Initialized ASGIValidationMiddleware with enabled=%s, routes=%s, registry=%s",
            self._proxy.options.enabled,
            "dynamic" if callable(self.routes) else len(self.routes),
            len(registry) if registry is not None else "None",
        )

    @property
    def options(self) -> ValidationOptions:
        return self._proxy.options

    def route_for(self, scope: _Scope) -> t.Optional[RouteValidation]:
        if callable(self.routes):
            return self.routes(scope)
        return self.routes.get(scope.get("path", "/"))

    async def __call__(self, scope: _Scope, receive: _Receive, send: _Send) -> None:
        """
        Handle an ASGI request.

        Args:
            scope: The ASGI scope dictionary.
            receive: The ASGI receive callable.
            send: The ASGI send callable.
        """
        # Only handle HTTP requests
        if scope["type"] != "http":
            logger.debug("Skipping non-HTTP request: type=%s", scope["type"])
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "/")

        request = self._asgi_to_internal_request(scope)
        result = await self._proxy.pre_handler(request, self.route_for(scope))

        if isinstance(result, NotModified):
            logger.info("Request short-circuited: method=%s path=%s status=304", method, path)
            await self._send_internal_response(result.response, send)
            return

        scope.setdefault("state", {})[STATE_KEY] = result.context

        # Closure over the pre-handler result of this request only
        async def inner_send(message: dict[str, t.Any]) -> None:
            if message["type"] == "http.response.start":
                message = self._decorate_start_message(message, result)
            await send(message)

        await self.app(scope, receive, inner_send)

    def _decorate_start_message(self, message: dict[str, t.Any], result: PassThrough) -> dict[str, t.Any]:
        response = Response(
            status_code=message["status"],
            headers=Headers.from_raw(
                (key.decode(HEADERS_ENCODING), value.decode(HEADERS_ENCODING))
                for key, value in message.get("headers", [])
            ),
        )
        outcome: HandlerOutcome = Failure(response) if response.status_code >= 400 else Success(response)
        outcome = result.next(outcome)

        if isinstance(outcome, Failure):
            return message

        logger.debug("Response headers after validation: status=%d headers=%s", response.status_code, response.headers)
        return {
            **message,
            "headers": [
                (key.encode(HEADERS_ENCODING), value.encode(HEADERS_ENCODING))
                for key, value in outcome.response.headers.raw()
            ],
        }

    def _asgi_to_internal_request(self, scope: _Scope) -> Request:
        """
        Convert an ASGI HTTP scope to an internal Request object.

        Args:
            scope: The ASGI scope dictionary.

        Returns:
            The internal Request object. The scope itself is exposed to
            validators as `request.metadata["scope"]`.
        """
        # Build URL
        scheme = scope.get("scheme", "http")
        server = scope.get("server")

        if server is None:
            server = ("localhost", 80)
            logger.debug("No server info in scope, using default: localhost:80")

        host = server[0]
        port = server[1] if server[1] is not None else (443 if scheme == "https" else 80)

        # Add port to host if non-standard
        if (scheme == "http" and port != 80) or (scheme == "https" and port != 443):
            host = f"{host}:{port}"

        path = scope.get("path", "/")
        query_string = scope.get("query_string", b"")
        if query_string:
            path = f"{path}?{query_string.decode(HEADERS_ENCODING)}"

        url = f"{scheme}://{host}{path}"
        method = scope.get("method", "GET")

        headers = Headers.from_raw(
            (key.decode(HEADERS_ENCODING), value.decode(HEADERS_ENCODING)) for key, value in scope.get("headers", [])
        )

        logger.debug(
            "Building internal request: method=%s url=%s headers_count=%d",
            method,
            url,
            len(headers),
        )

        return Request(
            method=method,
            url=url,
            headers=headers,
            metadata={"scope": scope},
        )

    async def _send_internal_response(self, response: Response, send: _Send) -> None:
        """Send a bodiless internal Response to the ASGI send callable."""
        headers: list[tuple[bytes, bytes]] = [
            (key.encode(HEADERS_ENCODING), value.encode(HEADERS_ENCODING)) for key, value in response.headers.raw()
        ]

        await send(
            {
                "type": "http.response.start",
                "status": response.status_code,
                "headers": headers,
            }
        )
        await send(
            {
                "type": "http.response.body",
                "body": b"",
                "more_body": False,
            }
        )
