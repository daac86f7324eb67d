"""Graph manager: edges and neighbours of a vertex."""

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Union

from arangopod.core.entities.document import Document
from arangopod.core.model import Model
from arangopod.db import aql
from arangopod.db.driver import DocumentKind, DriverDocument
from arangopod.exceptions import GraphError

from .transaction import Action

if TYPE_CHECKING:
    from .toolbox import Toolbox

Labels = Optional[Union[str, Iterable[str]]]
Properties = Optional[List[Dict[str, Any]]]


class GraphManager:
    """Navigates the graph of a connection.

    A vertex can be given as a model, a pod or an id string. A vertex that
    was never stored has no edges and yields an empty dict without a server
    round trip.
    """

    def __init__(self, toolbox: "Toolbox") -> None:
        self._toolbox = toolbox

    def get_inbound_edges(self, vertex: Any, label: Labels = None, properties: Properties = None):
        """Edges pointing to a vertex."""
        return self._traverse(Action.GET_INBOUND_EDGES, vertex, "in", label, properties, "edge")

    def get_outbound_edges(self, vertex: Any, label: Labels = None, properties: Properties = None):
        """Edges starting from a vertex."""
        return self._traverse(Action.GET_OUTBOUND_EDGES, vertex, "out", label, properties, "edge")

    def get_edges(self, vertex: Any, label: Labels = None, properties: Properties = None):
        """Edges in either direction."""
        return self._traverse(Action.GET_EDGES, vertex, "any", label, properties, "edge")

    def get_neighbours(
        self,
        vertex: Any,
        direction: str = "any",
        label: Labels = None,
        properties: Properties = None,
    ):
        """Vertices connected to a vertex through matching edges."""
        return self._traverse(
            Action.GET_NEIGHBOURS, vertex, direction, label, properties, "vertex"
        )

    def generate_filter(
        self,
        direction: Optional[str] = None,
        labels: Labels = None,
        properties: Properties = None,
    ) -> Dict[str, Any]:
        """Build the traversal filter.

        Args:
            direction: "in", "out" or "any"
            labels: One label or a collection of labels
            properties: Filters of the form
                ``{"key": ..., "value": ..., "compare": "=="}``

        Returns:
            Dict with the ``direction``, ``labels`` and ``properties`` given
        """
        filter: Dict[str, Any] = {}

        if direction:
            filter["direction"] = direction

        if labels:
            filter["labels"] = [labels] if isinstance(labels, str) else list(labels)

        if properties:
            filter["properties"] = list(properties)

        return filter

    def _traverse(
        self,
        action: Action,
        vertex: Any,
        direction: str,
        label: Labels,
        properties: Properties,
        target: str,
    ):
        if not self._toolbox.is_graph():
            raise GraphError("Graph navigation requires a connection that manages a graph.")

        vertex_id = self._get_vertex_id(vertex)
        if not vertex_id:
            return {}

        filter = self.generate_filter(direction, label, properties)
        mode = self._toolbox.transaction_manager.mode()
        graph = self._toolbox.graph

        if mode.is_buffered:
            query, bind_vars = aql.traversal_query(graph, vertex_id, filter, target)
            manager = mode.transaction_manager
            manager.add_read_collection(self._toolbox.get_vertex_collection_name())
            manager.add_read_collection(self._toolbox.get_edge_collection_name())
            manager.add_command(aql.query_all_statement(query, bind_vars), action, None, True)
            return None

        driver = self._toolbox.driver
        try:
            if target == "vertex":
                rows = driver.get_neighbor_vertices(graph, vertex_id, filter)
            else:
                rows = driver.get_connected_edges(graph, vertex_id, filter)
        except GraphError:
            raise
        except Exception as e:
            normalised = self._toolbox.normalise_driver_exceptions(e)
            raise GraphError(normalised["message"], normalised["code"]) from e

        if not rows:
            return {}
        return self.convert_to_pods(target, rows)

    def _get_vertex_id(self, vertex: Any) -> Optional[str]:
        if isinstance(vertex, Model):
            return vertex.get_pod().get_id()
        if isinstance(vertex, Document):
            return vertex.get_id()
        if isinstance(vertex, str):
            return vertex
        raise GraphError("The vertex can be either a model, a vertex pod or the id of the vertex.")

    def convert_to_pods(self, pod_type: str, rows: Iterable[Any]) -> Dict[Any, Model]:
        """Convert traversal rows to saved edge or vertex models.

        Rows come back from the driver as generic documents, so they are
        tagged with the requested kind first.
        """
        kind = DocumentKind.EDGE if pod_type == "edge" else DocumentKind.VERTEX
        documents = [
            row.as_kind(kind) if isinstance(row, DriverDocument) else DriverDocument(row, kind)
            for row in rows
        ]

        converted = self._toolbox.pod_manager.convert_to_pods(pod_type, documents)
        for model in converted.values():
            model.get_pod().set_saved()
        return converted
