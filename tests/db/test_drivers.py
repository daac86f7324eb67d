"""Test suite for driver documents, error normalisation, the Arango driver
and the driver registry."""

from unittest.mock import MagicMock

import pytest
from arango.exceptions import ArangoServerError

from arangopod.config import ConnectionConfig
from arangopod.db import (
    ArangoDriver,
    ArangoErrorNormalizer,
    DocumentKind,
    DriverDocument,
    ErrorNormalizer,
    edge_collection_name,
    get_default_driver_type,
    get_driver,
    list_available_drivers,
    register_driver,
    unregister_driver,
    vertex_collection_name,
)
from arangopod.db.aql import LABEL_ATTRIBUTE
from arangopod.exceptions import InvalidConfigurationError


class TestDriverDocument:
    """Test DriverDocument accessors."""

    def test_identity(self):
        """Test id, key and revision accessors."""
        document = DriverDocument({"_id": "users/1", "_key": "1", "_rev": "3", "a": 1})

        assert document.id == "users/1"
        assert document.key == "1"
        assert document.revision == "3"
        assert document.kind is DocumentKind.DOCUMENT
        assert document.get("a") == 1

    def test_get_all(self):
        """Test internals are dropped when unset or not requested."""
        document = DriverDocument({"_id": None, "_key": None, "_rev": None, "a": 1})

        assert document.get_all() == {"a": 1}
        assert DriverDocument({"_id": "u/1", "a": 1}).get_all(include_internals=False) == {"a": 1}

    def test_as_kind(self):
        """Test retagging keeps the data."""
        document = DriverDocument({"_id": "g/1"})
        edge = document.as_kind(DocumentKind.EDGE)

        assert edge.kind is DocumentKind.EDGE
        assert edge.id == "g/1"
        assert edge != document
        assert edge == DriverDocument({"_id": "g/1"}, DocumentKind.EDGE)

    def test_graph_collection_names(self):
        """Test the collections backing a graph."""
        assert vertex_collection_name("social") == "socialVertexCollection"
        assert edge_collection_name("social") == "socialEdgeCollection"


class TestErrorNormalizer:
    """Test driver error normalisation."""

    def test_generic_error(self):
        """Test plain exceptions."""
        assert ErrorNormalizer().normalize(ValueError("boom")) == {"message": "boom", "code": 0}

    def test_error_with_code(self):
        """Test exceptions carrying an error code."""
        error = RuntimeError("conflict")
        error.error_code = 1200

        assert ErrorNormalizer().normalize(error) == {"message": "conflict", "code": 1200}

    def test_arango_server_error(self):
        """Test python-arango server errors."""
        error = MagicMock(spec=ArangoServerError)
        error.error_message = "document not found"
        error.error_code = 1202
        error.http_code = 404

        assert ArangoErrorNormalizer().normalize(error) == {
            "message": "document not found",
            "code": 1202,
        }

    def test_arango_server_error_without_error_code(self):
        """Test the HTTP status is used when the server sent no error number."""
        error = MagicMock(spec=ArangoServerError)
        error.error_message = "unauthorized"
        error.error_code = None
        error.http_code = 401

        assert ArangoErrorNormalizer().normalize(error)["code"] == 401


class TestArangoDriver:
    """Test ArangoDriver against a mocked python-arango database."""

    @pytest.fixture
    def db(self):
        return MagicMock()

    @pytest.fixture
    def arango(self, db):
        return ArangoDriver(db=db)

    def test_save(self, arango, db):
        """Test documents are inserted into their collection."""
        db.collection.return_value.insert.return_value = {"_id": "users/1"}

        assert arango.save("users", {"a": 1}) == {"_id": "users/1"}
        db.collection.assert_called_with("users")
        db.collection.return_value.insert.assert_called_once_with({"a": 1})

    def test_replace(self, arango, db):
        """Test replacement targets the id and ignores revisions."""
        arango.replace("users", "users/1", {"a": 2, "_rev": "5"})

        db.collection.return_value.replace.assert_called_once_with(
            {"a": 2, "_id": "users/1"}, check_rev=False
        )

    def test_get_by_id(self, arango, db):
        """Test missing documents yield None."""
        db.collection.return_value.get.return_value = None
        assert arango.get_by_id("users", "users/1") is None

        db.collection.return_value.get.return_value = {"_id": "users/1"}
        assert arango.get_by_id("users", "users/1").id == "users/1"

    def test_get_vertex_is_tagged(self, arango, db):
        """Test vertices come back tagged as vertices."""
        db.graph.return_value.vertex.return_value = {"_id": "socialVertexCollection/1"}

        document = arango.get_vertex("social", "socialVertexCollection/1")

        assert document.kind is DocumentKind.VERTEX
        db.graph.assert_called_with("social")

    def test_save_edge(self, arango, db):
        """Test edges are inserted with their endpoints and label."""
        edges = db.graph.return_value.edge_collection.return_value

        arango.save_edge("social", "v/1", "v/2", "knows", {"since": 2000})

        db.graph.return_value.edge_collection.assert_called_with("socialEdgeCollection")
        edges.insert.assert_called_once_with(
            {"since": 2000, "_from": "v/1", "_to": "v/2", LABEL_ATTRIBUTE: "knows"}
        )

    def test_execute_one(self, arango, db):
        """Test the first row is returned, or None."""
        db.aql.execute.return_value = iter([{"a": 1}, {"a": 2}])
        assert arango.execute_one("RETURN 1", {"x": 1}) == {"a": 1}
        db.aql.execute.assert_called_with("RETURN 1", bind_vars={"x": 1})

        db.aql.execute.return_value = iter([])
        assert arango.execute_one("RETURN 1") is None

    def test_connected_edges_use_traversal(self, arango, db):
        """Test edge lookups run a graph traversal."""
        db.aql.execute.return_value = iter([{"_id": "e/1"}])

        rows = arango.get_connected_edges("social", "v/1", {"direction": "out"})

        query = db.aql.execute.call_args[0][0]
        assert "OUTBOUND @start GRAPH @graph" in query
        assert rows == [DriverDocument({"_id": "e/1"})]

    def test_run(self, arango, db):
        """Test transactions are sent with their lock sets."""
        db.execute_transaction.return_value = {"abcdefg": True}

        result = arango.run("function () {}", ["a"], ["b"])

        assert result == {"abcdefg": True}
        db.execute_transaction.assert_called_once_with(
            command="function () {}", params=None, read=["a"], write=["b"]
        )

    def test_indexes(self, arango, db):
        """Test index calls are forwarded to the collection."""
        arango.add_index("places", {"type": "geo", "fields": ["loc"]})
        arango.delete_index("places", "12")

        db.collection.return_value.add_index.assert_called_once_with(
            {"type": "geo", "fields": ["loc"]}
        )
        db.collection.return_value.delete_index.assert_called_once_with("12")


class TestDriverFactory:
    """Test the driver registry."""

    def test_builtin_driver(self):
        """Test the python-arango driver is registered by default."""
        assert list_available_drivers()["arango"] is ArangoDriver
        assert get_default_driver_type() == "arango"

    def test_register_and_get(self, driver):
        """Test a registered driver is built through its configurator."""
        register_driver("fake", type(driver), configurator=lambda config: driver)
        try:
            assert get_driver(ConnectionConfig(driver="fake")) is driver
            assert get_driver(ConnectionConfig(), driver_type="fake") is driver
        finally:
            unregister_driver("fake")

        assert "fake" not in list_available_drivers()

    def test_register_as_default(self, driver):
        """Test unregistering the default restores the built-in default."""
        register_driver("fake", type(driver), set_as_default=True)
        try:
            assert get_default_driver_type() == "fake"
        finally:
            unregister_driver("fake")

        assert get_default_driver_type() == "arango"

    def test_register_duplicate(self):
        """Test names cannot be registered twice."""
        with pytest.raises(InvalidConfigurationError):
            register_driver("arango", ArangoDriver)

    def test_register_non_driver(self):
        """Test only Driver subclasses can be registered."""
        with pytest.raises(InvalidConfigurationError):
            register_driver("bogus", dict)

    def test_unknown_driver(self):
        """Test unknown driver types are reported."""
        with pytest.raises(InvalidConfigurationError) as exc_info:
            get_driver(ConnectionConfig(driver="nope"))

        assert "arango" in exc_info.value.details["available_types"]

    def test_configurator_failure(self, driver):
        """Test configurator errors are wrapped."""

        def broken(config):
            raise RuntimeError("cannot connect")

        register_driver("broken", type(driver), configurator=broken)
        try:
            with pytest.raises(InvalidConfigurationError) as exc_info:
                get_driver(ConnectionConfig(driver="broken"))
        finally:
            unregister_driver("broken")

        assert isinstance(exc_info.value.__cause__, RuntimeError)
