"""Shared fixtures: an in-memory driver and toolboxes wired to it."""

import itertools
from collections import deque
from typing import Any, Dict, List, Optional

import pytest

from arangopod.config import ConnectionConfig
from arangopod.db.aql import LABEL_ATTRIBUTE
from arangopod.db.driver import (
    DocumentKind,
    Driver,
    DriverDocument,
    edge_collection_name,
    vertex_collection_name,
)
from arangopod.toolbox import Toolbox


class FakeServerError(Exception):
    """Error shaped like a python-arango server error."""

    def __init__(self, message: str, error_code: int) -> None:
        super().__init__(message)
        self.error_message = message
        self.error_code = error_code


class FakeDriver(Driver):
    """In-memory driver recording the queries and transactions it receives.

    Query results are queued with ``queue_rows``; transaction results with
    ``transaction_result`` (a dict, or a callable receiving the script).
    """

    def __init__(self) -> None:
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.indexes_by_collection: Dict[str, List[Dict[str, Any]]] = {}
        self.queries: List[Dict[str, Any]] = []
        self.transactions: List[Dict[str, Any]] = []
        self.index_calls: List[str] = []
        self.transaction_result: Any = {}
        self._rows: deque = deque()
        self._keys = itertools.count(1)
        self._revs = itertools.count(100)

    # Helpers

    def queue_rows(self, rows: Any) -> None:
        self._rows.append(rows)

    def _next_rows(self) -> Any:
        return self._rows.popleft() if self._rows else []

    def _insert(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        key = str(data.get("_key") or next(self._keys))
        meta = {"_id": f"{collection}/{key}", "_key": key, "_rev": str(next(self._revs))}
        body = {k: v for k, v in data.items() if k not in ("_id", "_key", "_rev")}
        self.collections.setdefault(collection, {})[key] = {**body, **meta}
        return meta

    def _replace(self, collection: str, document_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        key = document_id.split("/")[-1]
        if key not in self.collections.get(collection, {}):
            raise FakeServerError("document not found", 1202)
        meta = {"_id": f"{collection}/{key}", "_key": key, "_rev": str(next(self._revs))}
        body = {k: v for k, v in data.items() if k not in ("_id", "_key", "_rev")}
        self.collections[collection][key] = {**body, **meta}
        return meta

    def _remove(self, collection: str, document_id: str) -> None:
        key = document_id.split("/")[-1]
        if self.collections.get(collection, {}).pop(key, None) is None:
            raise FakeServerError("document not found", 1202)

    def _fetch(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        return self.collections.get(collection, {}).get(document_id.split("/")[-1])

    # Documents

    def save(self, collection, data):
        return self._insert(collection, data)

    def replace(self, collection, document_id, data):
        return self._replace(collection, document_id, data)

    def delete(self, collection, document_id):
        self._remove(collection, document_id)

    def get_by_id(self, collection, document_id):
        document = self._fetch(collection, document_id)
        return DriverDocument(document) if document else None

    def any(self, collection):
        documents = list(self.collections.get(collection, {}).values())
        return dict(documents[0]) if documents else None

    # Graphs

    def save_vertex(self, graph, data):
        return self._insert(vertex_collection_name(graph), data)

    def replace_vertex(self, graph, vertex_id, data):
        return self._replace(vertex_collection_name(graph), vertex_id, data)

    def remove_vertex(self, graph, vertex_id):
        self._remove(vertex_collection_name(graph), vertex_id)

    def get_vertex(self, graph, vertex_id):
        document = self._fetch(vertex_collection_name(graph), vertex_id)
        return DriverDocument(document, DocumentKind.VERTEX) if document else None

    def save_edge(self, graph, from_id, to_id, label, data):
        body = dict(data)
        body["_from"] = from_id
        body["_to"] = to_id
        if label is not None:
            body[LABEL_ATTRIBUTE] = label
        return self._insert(edge_collection_name(graph), body)

    def remove_edge(self, graph, edge_id):
        self._remove(edge_collection_name(graph), edge_id)

    def get_edge(self, graph, edge_id):
        document = self._fetch(edge_collection_name(graph), edge_id)
        return DriverDocument(document, DocumentKind.EDGE) if document else None

    def _matching_edges(self, graph, vertex_id, filter):
        direction = filter.get("direction", "any")
        labels = filter.get("labels")
        for edge in self.collections.get(edge_collection_name(graph), {}).values():
            if labels and edge.get(LABEL_ATTRIBUTE) not in labels:
                continue
            if any(edge.get(p["key"]) != p.get("value") for p in filter.get("properties", [])):
                continue
            if direction in ("in", "any") and edge["_to"] == vertex_id:
                yield edge, edge["_from"]
            elif direction in ("out", "any") and edge["_from"] == vertex_id:
                yield edge, edge["_to"]

    def get_connected_edges(self, graph, vertex_id, filter):
        return [DriverDocument(edge) for edge, _ in self._matching_edges(graph, vertex_id, filter)]

    def get_neighbor_vertices(self, graph, vertex_id, filter):
        neighbours = {}
        for _, other in self._matching_edges(graph, vertex_id, filter):
            vertex = self._fetch(vertex_collection_name(graph), other)
            if vertex:
                neighbours[other] = DriverDocument(vertex)
        return list(neighbours.values())

    # Queries

    def execute_all(self, query, bind_vars=None):
        self.queries.append({"query": query, "bind_vars": dict(bind_vars or {})})
        return list(self._next_rows())

    def execute_one(self, query, bind_vars=None):
        rows = self.execute_all(query, bind_vars)
        return rows[0] if rows else None

    def explain(self, query, bind_vars=None):
        self.queries.append({"query": query, "bind_vars": dict(bind_vars or {})})
        return {"plan": {"nodes": []}, "query": query}

    # Indexes

    def indexes(self, collection):
        self.index_calls.append(collection)
        return [dict(index) for index in self.indexes_by_collection.get(collection, [])]

    def add_index(self, collection, data):
        indexes = self.indexes_by_collection.setdefault(collection, [])
        index = {"id": f"{collection}/{len(indexes) + 1}", **data}
        indexes.append(index)
        return dict(index)

    def delete_index(self, collection, index_id):
        indexes = self.indexes_by_collection.get(collection, [])
        full_id = f"{collection}/{index_id}"
        if not any(index["id"] == full_id for index in indexes):
            raise FakeServerError("index not found", 1212)
        self.indexes_by_collection[collection] = [i for i in indexes if i["id"] != full_id]
        return True

    # Transactions

    def run(self, script, read_collections=None, write_collections=None, params=None):
        self.transactions.append(
            {
                "script": script,
                "read": list(read_collections or []),
                "write": list(write_collections or []),
                "params": params,
            }
        )
        if callable(self.transaction_result):
            return self.transaction_result(script)
        return self.transaction_result


@pytest.fixture
def driver():
    """In-memory driver."""
    return FakeDriver()


@pytest.fixture
def toolbox(driver):
    """Toolbox for plain document collections."""
    return Toolbox(ConnectionConfig(), driver=driver)


@pytest.fixture
def graph_toolbox(driver):
    """Toolbox managing the graph ``social``."""
    return Toolbox(ConnectionConfig(graph="social"), driver=driver)

