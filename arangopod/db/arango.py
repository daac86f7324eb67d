"""python-arango implementation of the driver contracts."""

import logging
from typing import Any, Dict, List, Optional

from arango import ArangoClient
from arango.database import StandardDatabase
from arango.exceptions import ArangoServerError
from typing_extensions import override

from . import aql
from .driver import (
    DocumentKind,
    Driver,
    DriverDocument,
    ErrorNormalizer,
    edge_collection_name,
    vertex_collection_name,
)

logger = logging.getLogger(__name__)


class ArangoErrorNormalizer(ErrorNormalizer):
    """Normalises python-arango errors.

    Server errors expose the ArangoDB error number through ``error_code``;
    client side errors fall back to the generic normalisation.
    """

    @override
    def normalize(self, error: BaseException) -> Dict[str, Any]:
        if isinstance(error, ArangoServerError):
            code = error.error_code if error.error_code is not None else error.http_code
            return {"message": error.error_message or str(error), "code": code or 0}
        return super().normalize(error)


class ArangoDriver(Driver):
    """Driver backed by a python-arango database handle.

    Args:
        endpoint: Server URL, e.g. ``http://localhost:8529``
        username: User for basic authentication
        password: Password for basic authentication
        database: Database name
        db: Existing database handle to use instead of connecting
    """

    error_normalizer = ArangoErrorNormalizer()

    def __init__(
        self,
        endpoint: str = "http://localhost:8529",
        username: str = "root",
        password: str = "",
        database: str = "_system",
        db: Optional[StandardDatabase] = None,
    ) -> None:
        self._client: Optional[ArangoClient] = None
        if db is None:
            self._client = ArangoClient(hosts=endpoint)
            db = self._client.db(database, username=username, password=password)
        self._db = db
        logger.debug(f"Arango driver ready for database '{database}' at {endpoint}")

    @property
    def db(self) -> StandardDatabase:
        return self._db

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    # Documents

    def save(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        logger.debug(f"Saving document in '{collection}'")
        return self._db.collection(collection).insert(data)

    def replace(
        self, collection: str, document_id: str, data: Dict[str, Any]
    ) -> Dict[str, Any]:
        logger.debug(f"Replacing document '{document_id}'")
        body = {k: v for k, v in data.items() if k != "_rev"}
        body["_id"] = document_id
        return self._db.collection(collection).replace(body, check_rev=False)

    def delete(self, collection: str, document_id: str) -> None:
        logger.debug(f"Deleting document '{document_id}'")
        self._db.collection(collection).delete(document_id, check_rev=False)

    def get_by_id(self, collection: str, document_id: str) -> Optional[DriverDocument]:
        document = self._db.collection(collection).get(document_id)
        if document is None:
            return None
        return DriverDocument(document, DocumentKind.DOCUMENT)

    def any(self, collection: str) -> Optional[Dict[str, Any]]:
        return self.execute_one(
            "FOR doc IN @@collection SORT RAND() LIMIT 1 RETURN doc",
            {"@collection": collection},
        )

    # Graphs

    def save_vertex(self, graph: str, data: Dict[str, Any]) -> Dict[str, Any]:
        logger.debug(f"Saving vertex in graph '{graph}'")
        vertices = self._db.graph(graph).vertex_collection(vertex_collection_name(graph))
        return vertices.insert(data)

    def replace_vertex(
        self, graph: str, vertex_id: str, data: Dict[str, Any]
    ) -> Dict[str, Any]:
        logger.debug(f"Replacing vertex '{vertex_id}'")
        vertices = self._db.graph(graph).vertex_collection(vertex_collection_name(graph))
        body = {k: v for k, v in data.items() if k != "_rev"}
        body["_id"] = vertex_id
        return vertices.replace(body, check_rev=False)

    def remove_vertex(self, graph: str, vertex_id: str) -> None:
        logger.debug(f"Removing vertex '{vertex_id}'")
        vertices = self._db.graph(graph).vertex_collection(vertex_collection_name(graph))
        vertices.delete(vertex_id, check_rev=False)

    def get_vertex(self, graph: str, vertex_id: str) -> Optional[DriverDocument]:
        vertex = self._db.graph(graph).vertex(vertex_id)
        if vertex is None:
            return None
        return DriverDocument(vertex, DocumentKind.VERTEX)

    def save_edge(
        self,
        graph: str,
        from_id: str,
        to_id: str,
        label: Optional[str],
        data: Dict[str, Any],
    ) -> Dict[str, Any]:
        logger.debug(f"Saving edge {from_id} -> {to_id} in graph '{graph}'")
        edges = self._db.graph(graph).edge_collection(edge_collection_name(graph))
        body = dict(data)
        body["_from"] = from_id
        body["_to"] = to_id
        if label is not None:
            body[aql.LABEL_ATTRIBUTE] = label
        return edges.insert(body)

    def remove_edge(self, graph: str, edge_id: str) -> None:
        logger.debug(f"Removing edge '{edge_id}'")
        edges = self._db.graph(graph).edge_collection(edge_collection_name(graph))
        edges.delete(edge_id, check_rev=False)

    def get_edge(self, graph: str, edge_id: str) -> Optional[DriverDocument]:
        edge = self._db.graph(graph).edge(edge_id)
        if edge is None:
            return None
        return DriverDocument(edge, DocumentKind.EDGE)

    def get_connected_edges(
        self, graph: str, vertex_id: str, filter: Dict[str, Any]
    ) -> List[DriverDocument]:
        query, bind_vars = aql.traversal_query(graph, vertex_id, filter, "edge")
        return [DriverDocument(row) for row in self.execute_all(query, bind_vars)]

    def get_neighbor_vertices(
        self, graph: str, vertex_id: str, filter: Dict[str, Any]
    ) -> List[DriverDocument]:
        query, bind_vars = aql.traversal_query(graph, vertex_id, filter, "vertex")
        return [DriverDocument(row) for row in self.execute_all(query, bind_vars)]

    # Queries

    def execute_all(
        self, query: str, bind_vars: Optional[Dict[str, Any]] = None
    ) -> List[Any]:
        logger.debug(f"Executing query: {query} with {bind_vars}")
        return list(self._db.aql.execute(query, bind_vars=bind_vars or {}))

    def execute_one(
        self, query: str, bind_vars: Optional[Dict[str, Any]] = None
    ) -> Optional[Any]:
        rows = self.execute_all(query, bind_vars)
        return rows[0] if rows else None

    def explain(
        self, query: str, bind_vars: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        return self._db.aql.explain(query, bind_vars=bind_vars or {})

    # Indexes

    def indexes(self, collection: str) -> List[Dict[str, Any]]:
        return self._db.collection(collection).indexes()

    def add_index(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        logger.debug(f"Adding {data.get('type')} index on '{collection}'")
        return self._db.collection(collection).add_index(data)

    def delete_index(self, collection: str, index_id: str) -> bool:
        logger.debug(f"Deleting index '{index_id}' on '{collection}'")
        return self._db.collection(collection).delete_index(index_id)

    # Transactions

    def run(
        self,
        script: str,
        read_collections: Optional[List[str]] = None,
        write_collections: Optional[List[str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        logger.debug(
            f"Executing transaction (read={read_collections}, "
            f"write={write_collections}): {script}"
        )
        return self._db.execute_transaction(
            command=script,
            params=params or None,
            read=read_collections or None,
            write=write_collections or None,
        )
