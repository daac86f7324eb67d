"""Exception hierarchy for arangopod.

Every component raises its own error kind. Errors coming from the driver are
normalised into a ``message``/``code`` pair before being re-raised, so callers
can always rely on both attributes being present.
"""

from typing import Any, Dict, Optional


class ArangoPodError(Exception):
    """Base class for all arangopod errors.

    Attributes:
        message: Human readable error message
        code: Numeric error code (driver/server code when normalised, else 0)
        details: Optional extra context
    """

    def __init__(
        self,
        message: str,
        code: int = 0,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, code={self.code})"


# Pods


class PodError(ArangoPodError):
    """Raised for invalid operations on a pod."""


class ReservedFieldError(PodError):
    """Raised when a reserved system field (_id, _key, _rev) is accessed generically."""


class InvalidIdError(PodError):
    """Raised when an id does not have the ``collection/key`` format."""


class ImmutableIdError(PodError):
    """Raised when trying to change the id of a pod that already has one."""


class DuplicateDistanceError(PodError):
    """Raised when distance info is set twice on the same pod."""


class ModelError(ArangoPodError):
    """Raised for invalid operations on a model."""


# Event bus


class ObservableError(ArangoPodError):
    """Raised for invalid event bus usage."""


class InvalidEventError(ObservableError):
    """Raised when an event is neither a string nor a collection of strings."""


# Managers


class PodManagerError(ArangoPodError):
    """Raised by the pod manager."""


class InvalidTypeError(PodManagerError):
    """Raised when a pod type is not valid for the current connection."""


class InvalidLabelUsageError(PodManagerError):
    """Raised when a label is supplied for a pod that is not an edge."""


class InvalidModelError(PodManagerError):
    """Raised when a resolved model class is not a Model."""


class MissingEndpointError(PodManagerError):
    """Raised when storing an edge without a usable from/to vertex."""


class StoreError(PodManagerError):
    """Raised when the driver fails to store a pod."""


class DeleteError(PodManagerError):
    """Raised when the driver fails to delete a pod."""


class FinderError(ArangoPodError):
    """Raised by the finder."""


class GraphError(ArangoPodError):
    """Raised by the graph manager."""


class QueryError(ArangoPodError):
    """Raised when a raw AQL query fails."""


class CollectionManagerError(ArangoPodError):
    """Raised by the collection manager."""


class TransactionError(ArangoPodError):
    """Raised for transaction state misuse and failed transactions."""


TransactionManagerError = TransactionError


class ToolboxError(ArangoPodError):
    """Raised for invalid toolbox usage."""


class ClientError(ArangoPodError):
    """Raised for unknown connections on the client."""


class InvalidConfigurationError(ArangoPodError):
    """Raised for invalid configuration or unknown driver types."""


__all__ = [
    "ArangoPodError",
    "PodError",
    "ReservedFieldError",
    "InvalidIdError",
    "ImmutableIdError",
    "DuplicateDistanceError",
    "ModelError",
    "ObservableError",
    "InvalidEventError",
    "PodManagerError",
    "InvalidTypeError",
    "InvalidLabelUsageError",
    "InvalidModelError",
    "MissingEndpointError",
    "StoreError",
    "DeleteError",
    "FinderError",
    "GraphError",
    "QueryError",
    "CollectionManagerError",
    "TransactionError",
    "TransactionManagerError",
    "ToolboxError",
    "ClientError",
    "InvalidConfigurationError",
]
