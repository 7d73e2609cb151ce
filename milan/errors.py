"""
Milan errors.

Every error that can reach a caller carries the HTTP status and the short
message that goes into the plain-text response body.
"""

from __future__ import annotations


class MilanError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigError(Exception):
    """Configuration is missing or invalid. Fatal at startup."""


class AccessDenied(MilanError):
    """Caller IP is not on the allow-list."""

    status_code = 403

    def __init__(self, ip: str):
        super().__init__("Access denied")
        self.ip = ip


class RouteError(MilanError):
    """The request path does not name a runnable script."""


class NoScriptSpecified(RouteError):
    status_code = 404

    def __init__(self):
        super().__init__("No script specified")


class InvalidScriptName(RouteError):
    status_code = 403

    def __init__(self, name: str):
        super().__init__("Invalid script name")
        self.name = name


class ScriptNotFound(RouteError):
    status_code = 404

    def __init__(self, name: str):
        super().__init__(f"Script '{name}' not found")
        self.name = name
