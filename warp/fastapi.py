from __future__ import annotations

import logging
import typing as t

from warp._core._headers import Headers
from warp._core._states import VALIDATION_HEADERS, NotModified
from warp._core.models import Request, Response, RouteValidation, Success, ValidationContext
from warp._options import ValidationOptions
from warp._registry import ValidatorRegistry
from warp._validation import AsyncValidationProxy

try:
    import fastapi
except ImportError as e:
    raise ImportError(
        "fastapi is required to use warp.fastapi module. "
        "Please install warp with the 'fastapi' extra, "
        "e.g., 'pip install warp[fastapi]'."
    ) from e

logger = logging.getLogger(__name__)


class FastAPIValidation:
    """
    Conditional request validation for FastAPI routes, as dependencies.

    Args:
        options: Validation options shared by every route created from this
            instance. Defaults to ValidationOptions(), which is disabled.
        registry: Named validators that LastModified routes may refer to.

    Examples:
        >>> from fastapi import FastAPI
        >>> from warp import LastModified, ValidationContext, ValidationOptions
        >>> from warp.fastapi import FastAPIValidation
        >>>
        >>> app = FastAPI()
        >>> validation = FastAPIValidation(ValidationOptions(enabled=True), registry)
        >>>
        >>> @app.get("/posts")
        >>> async def list_posts(
        ...     context: ValidationContext = validation.depends(LastModified("posts.last_modified"))
        ... ):
        ...     return {"last_modified": context.last_modified}

    Notes:
        - A current client copy is answered by raising HTTPException(304),
          which FastAPI turns into an empty 304 response.
        - Headers are staged on the response FastAPI injects into dependencies.
          FastAPI ignores them when the handler returns a Response object of
          its own or raises, so neither is decorated nor stripped.
        - The dependency runs before the handler. A Last-Modified or ETag the
          handler itself sets, on the injected response or on one it returns,
          is therefore kept even when validation is disabled.
        - Wrap the application with `warp.asgi.ASGIValidationMiddleware`
          instead when those cases matter, notably with validation disabled.
          It sees the final response and strips stray headers from it.
    """

    def __init__(
        self,
        options: ValidationOptions | None = None,
        registry: ValidatorRegistry | None = None,
    ) -> None:
        self._proxy = AsyncValidationProxy(options=options, registry=registry)

    @property
    def options(self) -> ValidationOptions:
        return self._proxy.options

    def depends(self, route: t.Optional[RouteValidation]) -> t.Any:
        """
        Build the dependency validating one route.

        Raises:
            UnknownValidatorError: The route names a validator missing from the registry.
        """
        self._proxy.check_route(route)
        proxy = self._proxy

        async def validate(request: fastapi.Request, response: fastapi.Response) -> ValidationContext:
            internal_request = Request(
                method=request.method,
                url=str(request.url),
                headers=Headers.from_raw(request.headers.items()),
                metadata={"request": request, "path_params": request.path_params},
            )
            result = await proxy.pre_handler(internal_request, route)

            if isinstance(result, NotModified):
                logger.info("Request short-circuited: method=%s path=%s status=304", request.method, request.url.path)
                raise fastapi.HTTPException(status_code=304)

            request.state.warp = result.context

            staged = Response(
                status_code=response.status_code or 200,
                headers=Headers.from_raw(response.headers.items()),
            )
            result.next(Success(staged))

            for name in VALIDATION_HEADERS:
                if name in staged.headers:
                    response.headers[name] = staged.headers[name]
                elif name in response.headers:
                    del response.headers[name]

            return result.context

        return fastapi.Depends(validate)
