"""Exception types shared by the engine, the adapter and the HTTP layer."""

from __future__ import annotations


class TaskMasterError(Exception):
    """Base class for every error raised by this package."""


class NetworkOrBackendError(TaskMasterError):
    """A remote read or write failed; local state was left unchanged."""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        message = f"{operation} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ValidationError(TaskMasterError):
    """The request was rejected before any remote call was issued."""


class NotFoundError(ValidationError):
    """The referenced category, task or note does not belong to the user."""


class StaleSessionError(TaskMasterError):
    """The owning session ended while a remote call was in flight."""


class ReconciliationWarning(UserWarning):
    """A loaded row could not be reconciled and was dropped from memory."""
