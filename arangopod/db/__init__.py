"""Driver layer: collaborator contracts, statement builders and backends."""

from .arango import ArangoDriver, ArangoErrorNormalizer
from .driver import (
    DocumentKind,
    DocumentStore,
    Driver,
    DriverDocument,
    ErrorNormalizer,
    GraphStore,
    IndexStore,
    QueryExecutor,
    ScriptedTransactionRunner,
    edge_collection_name,
    vertex_collection_name,
)
from .factory import (
    get_default_driver_type,
    get_driver,
    list_available_drivers,
    register_driver,
    unregister_driver,
)

__all__ = [
    "ArangoDriver",
    "ArangoErrorNormalizer",
    "DocumentKind",
    "DocumentStore",
    "Driver",
    "DriverDocument",
    "ErrorNormalizer",
    "GraphStore",
    "IndexStore",
    "QueryExecutor",
    "ScriptedTransactionRunner",
    "edge_collection_name",
    "vertex_collection_name",
    "get_default_driver_type",
    "get_driver",
    "list_available_drivers",
    "register_driver",
    "unregister_driver",
]
