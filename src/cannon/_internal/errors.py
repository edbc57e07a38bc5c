"""Custom exception hierarchy for cannon."""

from __future__ import annotations


class CannonError(Exception):
    """Base exception for all cannon errors.

    Every error raised by the tool inherits from this class, so the CLI
    can report any of them with a single except clause.
    """


class ConfigError(CannonError):
    """Raised when the run configuration is invalid.

    Examples:
        - The ``@path`` request body file cannot be read.
        - A numeric option is out of its accepted range.
        - A timeout string is not a valid duration.
    """


class RequestBuildError(CannonError):
    """Raised when a single request cannot be constructed.

    Examples:
        - The multipart upload file cannot be opened or read.
    """
