"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when an environment setting cannot be used.

    ``variable`` names the offending environment variable when there is one.
    """

    def __init__(self, message: str, *, variable: str | None = None) -> None:
        super().__init__(message if variable is None else f"{variable}: {message}")
        self.variable = variable
