"""Vertex pod."""

from typing import TYPE_CHECKING, Any, ClassVar, Dict, List, Optional, Union

from typing_extensions import override

from .document import Document, PodKind

if TYPE_CHECKING:
    from arangopod.core.model import Model
    from arangopod.toolbox.toolbox import Toolbox


class Vertex(Document):
    """A vertex pod with shortcuts for navigating its graph."""

    kind: ClassVar[PodKind] = PodKind.VERTEX

    def __init__(
        self,
        toolbox: Optional["Toolbox"],
        data: Optional[Dict[str, Any]] = None,
        new: bool = True,
    ) -> None:
        super().__init__(toolbox, "vertex", data, new)

    @override
    def get_collection_name(self) -> str:
        return self._toolbox.get_vertex_collection_name()

    def relate_to(self, to: "Model", label: Optional[str] = None) -> "Model":
        """Dispense an edge from this vertex to another one.

        The edge is not stored.
        """
        edge = self._toolbox.pod_manager.dispense("edge", label)
        edge.get_pod().set_to(to)
        edge.get_pod().set_from(self.get_model())
        return edge

    def get_inbound_edges(
        self,
        label: Optional[Union[str, List[str]]] = None,
        properties: Optional[List[Dict[str, Any]]] = None,
    ):
        return self._toolbox.graph_manager.get_inbound_edges(self.get_id(), label, properties)

    def get_outbound_edges(
        self,
        label: Optional[Union[str, List[str]]] = None,
        properties: Optional[List[Dict[str, Any]]] = None,
    ):
        return self._toolbox.graph_manager.get_outbound_edges(self.get_id(), label, properties)

    def get_edges(
        self,
        label: Optional[Union[str, List[str]]] = None,
        properties: Optional[List[Dict[str, Any]]] = None,
    ):
        return self._toolbox.graph_manager.get_edges(self.get_id(), label, properties)

    def get_neighbours(
        self,
        direction: str = "any",
        label: Optional[Union[str, List[str]]] = None,
        properties: Optional[List[Dict[str, Any]]] = None,
    ):
        return self._toolbox.graph_manager.get_neighbours(
            self.get_id(), direction, label, properties
        )
