"""Test suite for the graph manager."""

import pytest

from arangopod.core.entities import Edge, Vertex
from arangopod.exceptions import GraphError

from conftest import FakeServerError


@pytest.fixture
def network(graph_toolbox):
    """Three vertices: ada knows grace since 2000, linus follows ada."""
    manager = graph_toolbox.pod_manager
    people = {}
    for name in ("ada", "grace", "linus"):
        person = manager.dispense("vertex")
        person.set("name", name)
        manager.store(person)
        people[name] = person

    knows = manager.dispense("edge", "knows")
    knows.set("since", 2000)
    knows.set_from(people["ada"])
    knows.set_to(people["grace"])
    manager.store(knows)

    follows = manager.dispense("edge", "follows")
    follows.set_from(people["linus"])
    follows.set_to(people["ada"])
    manager.store(follows)

    people["knows"] = knows
    people["follows"] = follows
    return people


class TestEdges:
    """Test edge lookups."""

    def test_outbound_edges(self, graph_toolbox, network):
        """Test edges starting from a vertex."""
        edges = graph_toolbox.graph_manager.get_outbound_edges(network["ada"])

        assert list(edges) == [network["knows"].get_id()]
        edge = edges[network["knows"].get_id()]
        assert isinstance(edge.get_pod(), Edge)
        assert edge.get_label() == "knows"
        assert not edge.get_pod().is_new()

    def test_inbound_edges(self, graph_toolbox, network):
        """Test edges pointing to a vertex, given by id."""
        edges = graph_toolbox.graph_manager.get_inbound_edges(network["ada"].get_id())

        assert list(edges) == [network["follows"].get_id()]

    def test_all_edges(self, graph_toolbox, network):
        """Test edges in either direction, given as a pod."""
        edges = graph_toolbox.graph_manager.get_edges(network["ada"].get_pod())

        assert set(edges) == {network["knows"].get_id(), network["follows"].get_id()}

    def test_label_filter(self, graph_toolbox, network):
        """Test a single label or several labels."""
        manager = graph_toolbox.graph_manager

        assert list(manager.get_edges(network["ada"], "knows")) == [network["knows"].get_id()]
        assert len(manager.get_edges(network["ada"], ["knows", "follows"])) == 2
        assert manager.get_edges(network["ada"], "likes") == {}

    def test_property_filter(self, graph_toolbox, network):
        """Test filtering on edge properties."""
        manager = graph_toolbox.graph_manager

        matching = manager.get_edges(network["ada"], properties=[{"key": "since", "value": 2000}])
        missing = manager.get_edges(network["ada"], properties=[{"key": "since", "value": 1999}])

        assert list(matching) == [network["knows"].get_id()]
        assert missing == {}


class TestNeighbours:
    """Test neighbour lookups."""

    def test_any_direction(self, graph_toolbox, network):
        """Test neighbours in both directions."""
        neighbours = graph_toolbox.graph_manager.get_neighbours(network["ada"])

        assert set(neighbours) == {network["grace"].get_id(), network["linus"].get_id()}
        grace = neighbours[network["grace"].get_id()]
        assert isinstance(grace.get_pod(), Vertex)
        assert grace.get("name") == "grace"

    def test_direction_and_label(self, graph_toolbox, network):
        """Test restricting the direction and the label."""
        manager = graph_toolbox.graph_manager

        assert list(manager.get_neighbours(network["ada"], "out")) == [network["grace"].get_id()]
        assert list(manager.get_neighbours(network["ada"], "any", "follows")) == [
            network["linus"].get_id()
        ]
        assert manager.get_neighbours(network["grace"], "out") == {}


class TestErrors:
    """Test invalid graph navigation."""

    def test_requires_graph(self, toolbox):
        """Test document connections cannot navigate graphs."""
        with pytest.raises(GraphError):
            toolbox.graph_manager.get_edges("users/1")

    def test_invalid_vertex(self, graph_toolbox):
        """Test the vertex must be a model, pod or id."""
        with pytest.raises(GraphError):
            graph_toolbox.graph_manager.get_neighbours(42)

    def test_unsaved_vertex(self, graph_toolbox, driver, monkeypatch):
        """Test a vertex that was never stored has no edges."""

        def unexpected(*args):
            raise AssertionError("the driver must not be called")

        monkeypatch.setattr(driver, "get_connected_edges", unexpected)
        vertex = graph_toolbox.pod_manager.dispense("vertex")

        assert graph_toolbox.graph_manager.get_edges(vertex) == {}

    def test_driver_error(self, graph_toolbox, driver, monkeypatch):
        """Test driver errors are normalised into GraphError."""

        def broken(graph, vertex_id, filter):
            raise FakeServerError("graph not found", 1924)

        monkeypatch.setattr(driver, "get_neighbor_vertices", broken)

        with pytest.raises(GraphError) as exc_info:
            graph_toolbox.graph_manager.get_neighbours("socialVertexCollection/1")

        assert exc_info.value.code == 1924


class TestBufferedNavigation:
    """Test graph navigation inside a transaction."""

    def test_traversal_command(self, graph_toolbox, driver):
        """Test a traversal statement is recorded with read locks."""
        transaction = graph_toolbox.transaction_manager
        transaction.begin()

        result = graph_toolbox.graph_manager.get_edges("socialVertexCollection/1", "knows")

        assert result is None
        (command,) = transaction.get_commands().values()
        assert command.is_graph
        assert command.script.startswith(
            'db._query("FOR v, e IN 1..1 ANY @start GRAPH @graph '
            'FILTER e.`$label` IN @labels RETURN e", '
        )
        assert transaction.get_read_collections() == [
            "socialVertexCollection",
            "socialEdgeCollection",
        ]
        assert driver.queries == []


class TestGenerateFilter:
    """Test traversal filters."""

    def test_empty(self, graph_toolbox):
        """Test nothing given yields an empty filter."""
        assert graph_toolbox.graph_manager.generate_filter() == {}

    def test_full(self, graph_toolbox):
        """Test a single label becomes a list."""
        properties = [{"key": "since", "value": 2000, "compare": ">"}]

        assert graph_toolbox.graph_manager.generate_filter("in", "knows", properties) == {
            "direction": "in",
            "labels": ["knows"],
            "properties": properties,
        }
