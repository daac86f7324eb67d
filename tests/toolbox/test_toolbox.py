"""Test suite for the toolbox."""

import logging

import pytest

from arangopod.config import ConnectionConfig
from arangopod.core.model import MappedModelFormatter, Model
from arangopod.db import register_driver, unregister_driver
from arangopod.exceptions import ToolboxError
from arangopod.log import is_debug, set_debug
from arangopod.toolbox import Toolbox

from conftest import FakeServerError


class Person(Model):
    """Model used by the formatter tests."""


class TestCollectionNames:
    """Test graph collection names."""

    def test_graph_names(self, graph_toolbox):
        """Test the names derived from the graph name."""
        assert graph_toolbox.is_graph()
        assert graph_toolbox.get_vertex_collection_name() == "socialVertexCollection"
        assert graph_toolbox.get_edge_collection_name() == "socialEdgeCollection"

    def test_names_need_graph(self, toolbox):
        """Test document connections have no graph collections."""
        assert not toolbox.is_graph()
        with pytest.raises(ToolboxError):
            toolbox.get_vertex_collection_name()
        with pytest.raises(ToolboxError):
            toolbox.get_edge_collection_name()


class TestHelpers:
    """Test id and parameter helpers."""

    def test_parse_id(self, toolbox):
        """Test splitting document ids."""
        assert Toolbox.parse_id("users/12") == {"collection": "users", "key": "12"}
        assert toolbox.parse_id_for_key("users/12") == "12"

    def test_generate_binding_parameter(self):
        """Test free names are kept and taken names are extended."""
        assert Toolbox.generate_binding_parameter("limit", {}) == "limit"

        parameter = Toolbox.generate_binding_parameter("limit", {"limit": 1, "limita": 2})

        assert parameter.startswith("limit")
        assert parameter not in ("limit", "limita")

    def test_normalise_driver_exceptions(self, toolbox):
        """Test driver errors are reduced to message and code."""
        error = FakeServerError("duplicate key", 1210)

        assert toolbox.normalise_driver_exceptions(error) == {
            "message": "duplicate key",
            "code": 1210,
        }


class TestPods:
    """Test pod ownership and model formatting."""

    def test_validate_pod(self, toolbox):
        """Test models and pods of this toolbox are accepted."""
        model = toolbox.pod_manager.dispense("users")

        assert toolbox.validate_pod(model)
        assert toolbox.validate_pod(model.get_pod())

    def test_validate_foreign_pod(self, toolbox, driver):
        """Test pods of another toolbox are refused."""
        other = Toolbox(ConnectionConfig(), driver=driver)

        with pytest.raises(ToolboxError):
            toolbox.validate_pod(other.pod_manager.dispense("users"))

    def test_model_formatter(self, graph_toolbox):
        """Test formatters decide the model class of dispensed pods."""
        graph_toolbox.set_model_formatter(MappedModelFormatter({"vertex": Person}))

        assert graph_toolbox.format_model("vertex") is Person
        assert isinstance(graph_toolbox.pod_manager.dispense("vertex"), Person)


class TestConstruction:
    """Test building toolboxes from configuration."""

    @pytest.fixture
    def debug_off(self):
        yield
        set_debug(False)

    def test_driver_from_registry(self, driver):
        """Test the driver is built from the configured driver type."""
        register_driver("memory", type(driver), configurator=lambda config: driver)
        try:
            toolbox = Toolbox(ConnectionConfig(driver="memory"))
        finally:
            unregister_driver("memory")

        assert toolbox.driver is driver

    def test_debug_config(self, driver, debug_off):
        """Test debug configurations switch on tracing."""
        Toolbox(ConnectionConfig(debug=True), driver=driver)

        assert is_debug()
        assert logging.getLogger("arango").level == logging.DEBUG
