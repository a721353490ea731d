from __future__ import annotations

import logging
from typing import Iterable, Optional

from typing_extensions import assert_never

from warp._core._states import (
    AnyState,
    IdleRoute,
    NeedETag,
    NeedLastModified,
    NotModified,
    PassThrough,
    PreHandlerResult,
    decorate_response,
)
from warp._core.models import (
    ETag,
    HandlerOutcome,
    LastModified,
    Request,
    RouteValidation,
    ValidationContext,
)
from warp._exceptions import InvalidRouteError
from warp._options import ValidationOptions
from warp._registry import ValidatorRegistry, resolve_last_modified
from warp._utils import maybe_await

logger = logging.getLogger("warp.integrations")


class AsyncValidationProxy:
    """
    Conditional request validation for any web framework.

    This class is independent of any specific framework and works only with
    internal models. Integrations call `pre_handler` before the route handler
    runs and `post_handler` once the pipeline produced an outcome.

    Args:
        options: Validation options. Defaults to `ValidationOptions()`, which
            is disabled.
        registry: Named validators that `LastModified` routes may refer to.
    """

    def __init__(
        self,
        options: ValidationOptions | None = None,
        registry: ValidatorRegistry | None = None,
    ) -> None:
        self.options = options if options is not None else ValidationOptions()
        self.registry = registry

    def check_route(self, route: Optional[RouteValidation]) -> None:
        """
        Validate a route configuration before serving requests with it.

        Raises:
            InvalidRouteError: The configuration is neither LastModified, ETag nor None.
            UnknownValidatorError: The route names a validator missing from the registry.
        """
        if route is None or isinstance(route, ETag):
            return
        if not isinstance(route, LastModified):
            raise InvalidRouteError(f"Expected LastModified, ETag or None as route validation, got {route!r}.")
        resolve_last_modified(route, self.registry)

    def check_routes(self, routes: Iterable[Optional[RouteValidation]]) -> None:
        for route in routes:
            self.check_route(route)

    async def pre_handler(self, request: Request, route: Optional[RouteValidation]) -> PreHandlerResult:
        """
        Run the route validator and decide whether the handler has to run.

        Returns `NotModified` when the client copy is current and validation is
        enabled, `PassThrough` otherwise. Both carry the request context.
        Exceptions raised by a `LastModified` validator propagate.
        """
        state: AnyState = IdleRoute(options=self.options)

        while True:
            logger.debug(f"Handling state: {state.__class__.__name__}")
            if isinstance(state, IdleRoute):
                state = state.next(request, route)
            elif isinstance(state, NeedLastModified):
                state = await self._handle_last_modified(state)
            elif isinstance(state, NeedETag):
                state = await self._handle_etag(state)
            elif isinstance(state, (PassThrough, NotModified)):
                return state
            else:
                assert_never(state)

    def post_handler(self, outcome: HandlerOutcome, context: ValidationContext) -> HandlerOutcome:
        """Decorate, or strip, the validation headers of the outgoing response."""
        return decorate_response(outcome, context, self.options)

    async def _handle_last_modified(self, state: NeedLastModified) -> AnyState:
        validator = resolve_last_modified(state.route, self.registry)
        last_modified = await maybe_await(validator(state.request))
        return state.next(last_modified)

    async def _handle_etag(self, state: NeedETag) -> AnyState:
        try:
            etag = await state.route.validator(state.request)
        except Exception as exc:
            return state.fail(exc)
        return state.next(etag)
