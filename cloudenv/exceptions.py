"""Exception hierarchy.

Pure components (cost engine, resolvers, status helpers) never raise; these
are raised by the I/O layer and propagate to the reconciler.
"""

from __future__ import annotations


class CloudEnvError(Exception):
    """Base class for all library errors."""


class ControlPlaneError(CloudEnvError):
    """A Leonardo call failed."""

    def __init__(self, message: str, *, status: int = 0, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body

    @property
    def not_found(self) -> bool:
        return self.status == 404


class StorageError(CloudEnvError):
    """An object storage call failed."""

    def __init__(self, message: str, *, status: int = 0) -> None:
        super().__init__(message)
        self.status = status


class UnsupportedOperation(CloudEnvError):
    """The operation is not available for this cloud provider or resource."""


class OperationCancelled(CloudEnvError):
    """The call was superseded or its consumer went away."""
