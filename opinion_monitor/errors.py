"""Exception taxonomy shared by the analytics core and its collaborators."""

from __future__ import annotations


class OpinionMonitorError(Exception):
    """Base class for all package errors."""


class InvalidTimeRange(OpinionMonitorError, ValueError):
    def __init__(self, token: object) -> None:
        super().__init__(f"unsupported time range: {token!r}")
        self.token = token


class CollaboratorError(OpinionMonitorError):
    """An external collaborator (data store, cache backend) failed."""


class DataProviderError(CollaboratorError):
    pass


class CacheBackendError(CollaboratorError):
    pass


__all__ = [
    "OpinionMonitorError",
    "InvalidTimeRange",
    "CollaboratorError",
    "DataProviderError",
    "CacheBackendError",
]
