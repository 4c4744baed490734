from typing import Any, Dict, Optional


class CounterdeskError(Exception):
    """Base class for every failure the core surfaces to its callers."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": type(self).__name__, "message": self.message, "details": self.details}


class ValidationError(CounterdeskError):
    """Bad input. Raised before any store I/O."""

    def __init__(self, message: str, *, field: Optional[str] = None, **details: Any) -> None:
        if field is not None:
            details["field"] = field
        super().__init__(message, details=details)
        self.field = field


class NotFoundError(CounterdeskError):
    """A write targeted a record that does not exist."""

    def __init__(self, resource: str, identifier: Any) -> None:
        super().__init__(
            f"{resource} {identifier} not found",
            details={"resource": resource, "id": identifier},
        )
        self.resource = resource
        self.identifier = identifier


class ConflictError(CounterdeskError):
    """A write would break a record other records still depend on."""

    def __init__(self, resource: str, identifier: Any, *, reason: str) -> None:
        super().__init__(
            f"{resource} {identifier} cannot be changed: {reason}",
            details={"resource": resource, "id": identifier},
        )
        self.resource = resource
        self.identifier = identifier


class StoreError(CounterdeskError):
    """
    The store adapter failed (connectivity, constraint violation, timeout).

    `retryable` is True for timeouts and dropped connections; the core never
    retries on its own.
    """

    def __init__(
        self,
        operation: str,
        collection: str,
        *,
        retryable: bool = False,
        reason: Optional[str] = None,
    ) -> None:
        msg = f"Store operation '{operation}' on '{collection}' failed"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(
            msg,
            details={"operation": operation, "collection": collection, "retryable": retryable},
        )
        self.operation = operation
        self.collection = collection
        self.retryable = retryable


class CompositeWriteError(CounterdeskError):
    """
    A sale header was written but its items were not.

    `compensated` tells whether the header was rolled back; when False the
    store may hold a partial sale and needs manual attention.
    """

    def __init__(self, sale_id: Optional[int], *, compensated: bool, reason: Optional[str] = None) -> None:
        state = "rolled back" if compensated else "PARTIAL STATE, compensation failed"
        msg = f"Sale {sale_id} could not be created ({state})"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg, details={"sale_id": sale_id, "compensated": compensated})
        self.sale_id = sale_id
        self.compensated = compensated
