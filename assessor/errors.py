"""Error taxonomy for evidence gathering and assessment."""

from __future__ import annotations


class AssessorError(RuntimeError):
    """Base class for errors raised by assessor components."""


class InvalidReference(AssessorError):
    """Raised when a submission reference cannot be resolved to a resource."""


class InvalidURL(InvalidReference):
    """Raised when a website reference is not a usable URL."""


class NotFound(AssessorError):
    """Raised when a repository or resource is absent, private or empty."""


class RateLimited(AssessorError):
    """Raised when a quota is exhausted or access is forbidden."""


class FetchTimeout(AssessorError):
    """Raised when the hosting API does not answer in time."""


class NetworkUnavailable(AssessorError):
    """Raised internally when a website cannot be reached at all."""


class BackendFailure(AssessorError):
    """Raised when the reasoning backend errors or returns nothing usable."""


class BackendTimeout(BackendFailure):
    """Raised when the reasoning backend does not answer in time."""


class SchemaValidationFailure(AssessorError):
    """Raised when a backend response does not match the verdict schema."""


__all__ = [
    "AssessorError",
    "BackendFailure",
    "BackendTimeout",
    "FetchTimeout",
    "InvalidReference",
    "InvalidURL",
    "NetworkUnavailable",
    "NotFound",
    "RateLimited",
    "SchemaValidationFailure",
]
