from __future__ import annotations

import logging
import typing as t

from warp._core.models import LastModified, LastModifiedValidator
from warp._exceptions import ConfigurationError, UnknownValidatorError

logger = logging.getLogger(__name__)


class ValidatorRegistry:
    """
    Named timestamp validators that routes can refer to by a dotted identifier.

    Populate it at startup and treat it as read-only while serving requests.

    Example:
        ```python
        registry = ValidatorRegistry()

        @registry.register("posts.last_modified")
        async def posts_last_modified(request: Request) -> datetime | None:
            return await db.fetch_val("select max(updated_at) from posts")

        route = LastModified("posts.last_modified")
        ```
    """

    def __init__(self, validators: t.Mapping[str, LastModifiedValidator] | None = None) -> None:
        self._validators: dict[str, LastModifiedValidator] = {}
        for name, validator in (validators or {}).items():
            self.add(name, validator)

    def add(self, name: str, validator: LastModifiedValidator) -> None:
        if not name or any(not part for part in name.split(".")):
            raise ConfigurationError(f"Invalid validator name {name!r}.")
        if not callable(validator):
            raise ConfigurationError(f"Validator {name!r} is not callable.")
        if name in self._validators:
            raise ConfigurationError(f"Validator {name!r} is already registered.")
        self._validators[name] = validator
        logger.debug("Registered validator: name=%s", name)

    def register(self, name: str) -> t.Callable[[LastModifiedValidator], LastModifiedValidator]:
        def decorator(validator: LastModifiedValidator) -> LastModifiedValidator:
            self.add(name, validator)
            return validator

        return decorator

    def resolve(self, name: str) -> LastModifiedValidator:
        try:
            return self._validators[name]
        except KeyError:
            raise UnknownValidatorError(f"No validator is registered under {name!r}.") from None

    def __contains__(self, name: object) -> bool:
        return name in self._validators

    def __len__(self) -> int:
        return len(self._validators)

    def names(self) -> list[str]:
        return sorted(self._validators)


def resolve_last_modified(route: LastModified, registry: ValidatorRegistry | None) -> LastModifiedValidator:
    if not isinstance(route.validator, str):
        return route.validator
    if registry is None:
        raise UnknownValidatorError(
            f"Route refers to validator {route.validator!r} but no registry was configured."
        )
    return registry.resolve(route.validator)

