"""Driver contracts consumed by the arangopod managers.

The managers never talk to the wire protocol directly. They use the narrow
interfaces below, which a concrete driver (see :mod:`arangopod.db.arango`)
implements. All methods are synchronous and single-attempt; errors are raised
as-is and normalised by the calling manager through :class:`ErrorNormalizer`.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional

RESERVED_FIELDS = ("_id", "_key", "_rev")


def vertex_collection_name(graph: str) -> str:
    """Name of the vertex collection backing a graph."""
    return f"{graph}VertexCollection"


def edge_collection_name(graph: str) -> str:
    """Name of the edge collection backing a graph."""
    return f"{graph}EdgeCollection"


class DocumentKind(str, Enum):
    """Kind of a document returned by the driver."""

    DOCUMENT = "document"
    VERTEX = "vertex"
    EDGE = "edge"


class DriverDocument:
    """A document as returned by the driver, tagged with its kind.

    Plain query rows are dicts; documents fetched by id or through graph
    traversals are wrapped in this class so the pod manager can tell vertices
    and edges apart.
    """

    def __init__(
        self, data: Dict[str, Any], kind: DocumentKind = DocumentKind.DOCUMENT
    ) -> None:
        self._data = dict(data)
        self.kind = DocumentKind(kind)

    @property
    def id(self) -> Optional[str]:
        return self._data.get("_id")

    @property
    def key(self) -> Optional[str]:
        return self._data.get("_key")

    @property
    def revision(self) -> Optional[str]:
        return self._data.get("_rev")

    def get_all(self, include_internals: bool = True) -> Dict[str, Any]:
        """Return a copy of the document data.

        Args:
            include_internals: Whether to include _id, _key and _rev. Unset
                internals are never included.
        """
        if include_internals:
            return {
                k: v
                for k, v in self._data.items()
                if not (k in RESERVED_FIELDS and v is None)
            }
        return {k: v for k, v in self._data.items() if k not in RESERVED_FIELDS}

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def as_kind(self, kind: DocumentKind) -> "DriverDocument":
        """Return a copy of this document tagged with another kind."""
        return DriverDocument(self._data, kind)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DriverDocument):
            return NotImplemented
        return self.kind == other.kind and self._data == other._data

    def __repr__(self) -> str:
        return f"DriverDocument(kind={self.kind.value}, id={self.id})"


class ErrorNormalizer:
    """Turns driver exceptions into a uniform ``{"message", "code"}`` dict.

    Server errors raised by python-arango carry ``error_message`` and
    ``error_code``; anything else falls back to ``str(error)`` and a ``code``
    attribute when present.
    """

    def normalize(self, error: BaseException) -> Dict[str, Any]:
        message = getattr(error, "error_message", None) or str(error)
        code = getattr(error, "error_code", None)
        if code is None:
            code = getattr(error, "http_code", None)
        if code is None:
            code = getattr(error, "code", 0)
        if not isinstance(code, int):
            code = 0
        return {"message": message, "code": code}


class DocumentStore(ABC):
    """Document CRUD on plain collections."""

    @abstractmethod
    def save(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a document.

        Returns:
            Metadata with ``_id``, ``_key`` and ``_rev``
        """

    @abstractmethod
    def replace(
        self, collection: str, document_id: str, data: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Replace a document, returning its new metadata."""

    @abstractmethod
    def delete(self, collection: str, document_id: str) -> None:
        """Delete a document."""

    @abstractmethod
    def get_by_id(self, collection: str, document_id: str) -> Optional[DriverDocument]:
        """Fetch a document by id or key, or None when missing."""

    @abstractmethod
    def any(self, collection: str) -> Optional[Dict[str, Any]]:
        """Return a random document of a collection, or None when empty."""


class GraphStore(ABC):
    """Vertex and edge operations on a named graph."""

    @abstractmethod
    def save_vertex(self, graph: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a vertex, returning its metadata."""

    @abstractmethod
    def replace_vertex(
        self, graph: str, vertex_id: str, data: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Replace a vertex, returning its new metadata."""

    @abstractmethod
    def remove_vertex(self, graph: str, vertex_id: str) -> None:
        """Remove a vertex and its connected edges."""

    @abstractmethod
    def get_vertex(self, graph: str, vertex_id: str) -> Optional[DriverDocument]:
        """Fetch a vertex, or None when missing."""

    @abstractmethod
    def save_edge(
        self,
        graph: str,
        from_id: str,
        to_id: str,
        label: Optional[str],
        data: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Insert an edge between two vertices, returning its metadata."""

    @abstractmethod
    def remove_edge(self, graph: str, edge_id: str) -> None:
        """Remove an edge."""

    @abstractmethod
    def get_edge(self, graph: str, edge_id: str) -> Optional[DriverDocument]:
        """Fetch an edge, or None when missing."""

    @abstractmethod
    def get_connected_edges(
        self, graph: str, vertex_id: str, filter: Dict[str, Any]
    ) -> List[DriverDocument]:
        """Edges connected to a vertex, matching a filter from
        :meth:`GraphManager.generate_filter`. Rows come back as generic
        documents."""

    @abstractmethod
    def get_neighbor_vertices(
        self, graph: str, vertex_id: str, filter: Dict[str, Any]
    ) -> List[DriverDocument]:
        """Vertices adjacent to a vertex through edges matching a filter."""


class QueryExecutor(ABC):
    """AQL execution."""

    @abstractmethod
    def execute_all(
        self, query: str, bind_vars: Optional[Dict[str, Any]] = None
    ) -> List[Any]:
        """Run a query and return every row."""

    @abstractmethod
    def execute_one(
        self, query: str, bind_vars: Optional[Dict[str, Any]] = None
    ) -> Optional[Any]:
        """Run a query and return the first row, or None."""

    @abstractmethod
    def explain(
        self, query: str, bind_vars: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Return the execution plan of a query."""


class IndexStore(ABC):
    """Index metadata and creation."""

    @abstractmethod
    def indexes(self, collection: str) -> List[Dict[str, Any]]:
        """List index descriptions (``id``, ``type``, ``fields``, ...)."""

    @abstractmethod
    def add_index(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create an index, returning its description."""

    @abstractmethod
    def delete_index(self, collection: str, index_id: str) -> bool:
        """Delete an index."""


class ScriptedTransactionRunner(ABC):
    """Server-side JavaScript transactions."""

    @abstractmethod
    def run(
        self,
        script: str,
        read_collections: Optional[List[str]] = None,
        write_collections: Optional[List[str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Execute a transaction body atomically and return its result."""


class Driver(
    DocumentStore, GraphStore, QueryExecutor, IndexStore, ScriptedTransactionRunner
):
    """A complete driver implementing every collaborator contract."""

    error_normalizer: ErrorNormalizer = ErrorNormalizer()

    def close(self) -> None:
        """Release any connection held by the driver."""
