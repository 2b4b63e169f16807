"""Exceptions raised by services and repositories and translated by the API layer.

Only errors that cross a layer boundary belong here.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for errors surfaced to API clients."""


class InvalidArgumentError(ServiceError, ValueError):
    """Malformed input: empty or invalid tag path, unsupported strategy, disallowed scope."""


class NotFoundError(ServiceError, LookupError):
    """The requested tag or memo does not exist for the current user."""


class PermissionDeniedError(ServiceError):
    """The store refused the operation for the current user."""


class InternalError(ServiceError):
    """Unexpected failure while parsing, serializing or persisting memos."""


class ContentParseError(InternalError):
    """Memo content could not be parsed."""


class PersistenceError(InternalError):
    """A repository read or write failed."""
