# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

"""
Exceptions raised by the servicelog writers and their outer surface.
"""

__all__ = [
    "ServiceLogError",
    "InvalidPatternError",
    "SinkWriteError",
    "ShortWriteError",
    "ConfigurationError",
]


class ServiceLogError(Exception):
    """Base exception for all servicelog errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class InvalidPatternError(ServiceLogError):
    """Raised when a trim pattern is not a valid regular expression."""

    def __init__(self, pattern: str, reason: str):
        super().__init__("invalid trim pattern", {"pattern": pattern, "reason": reason})
        self.pattern = pattern
        self.reason = reason


class SinkWriteError(ServiceLogError):
    """
    Raised when the inner sink of a writer fails.

    `consumed` is the number of bytes of the caller's data that were consumed before the failure.
    The caller may retry with the remainder. The sink's original exception is the `__cause__`.
    """

    def __init__(self, consumed: int, cause: BaseException):
        super().__init__(f"inner sink write failed: {cause!r}", {"consumed": consumed})
        self.consumed = consumed
        self.cause = cause
        self.__cause__ = cause


class ShortWriteError(ServiceLogError):
    """Raised when a sink accepts no bytes of a non-empty chunk."""

    def __init__(self, offered: int):
        super().__init__("sink accepted zero bytes", {"offered": offered})
        self.offered = offered


class ConfigurationError(ServiceLogError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, config_key: str | None = None):
        details = {}
        if config_key is not None:
            details["config_key"] = config_key
        super().__init__(message, details)
        self.config_key = config_key
