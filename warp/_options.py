from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ValidationOptions:
    """
    Configuration shared by every route served by one middleware instance.

    Attributes:
    ----------
    enabled : bool
        When True, conditional requests are answered with 304 Not Modified and
        responses carry Last-Modified / ETag headers.

        When False, validators still run and their results are still exposed to
        handlers, but nothing is short-circuited and any Last-Modified / ETag
        header found on an outgoing response is removed. This keeps development
        environments from caching anything by accident.

        Default: False

        Examples:
        --------
        >>> # Production
        >>> options = ValidationOptions(enabled=True)

        >>> # Development
        >>> options = ValidationOptions()
    """

    enabled: bool = False
    """When True, short-circuit conditional requests and emit validation headers."""
