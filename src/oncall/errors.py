"""
Error taxonomy for on-call resolution.

Core components raise these and never recover locally; the caller in
``oncall.board`` decides whether a failure aborts or is reported per team.
"""

from __future__ import annotations


class OnCallError(Exception):
    """Base class for all oncall errors."""


class ConfigError(OnCallError):
    """Configuration file is missing, unreadable, or has the wrong shape."""


class ConfigNotFoundError(ConfigError):
    """No configuration file at the expected path."""

    def __init__(self, path: object) -> None:
        self.path = path
        super().__init__(f"no config file found at {path}")


class NotFoundError(OnCallError):
    """A team has no routing rules, or an escalation has no tier rules."""


class UnsupportedUnitError(OnCallError):
    """Escalation delay expressed in a unit we cannot convert."""

    def __init__(self, unit: str) -> None:
        self.unit = unit
        super().__init__(f"unsupported delay unit: {unit!r}")


class RemoteCallError(OnCallError):
    """A remote capability call failed.

    ``step`` names the capability ("get timeline", "list alerts", ...) and
    ``argument`` the identifier it was called with.
    """

    def __init__(self, step: str, argument: str, cause: BaseException | str) -> None:
        self.step = step
        self.argument = argument
        self.cause = cause
        super().__init__(f"{step} {argument}: {cause}")
