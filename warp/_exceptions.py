__all__ = ("WarpError", "ConfigurationError", "UnknownValidatorError", "InvalidRouteError")


class WarpError(Exception): ...


class ConfigurationError(WarpError): ...


class UnknownValidatorError(ConfigurationError): ...


class InvalidRouteError(ConfigurationError): ...
