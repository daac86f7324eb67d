"""Edge pod and its endpoint references."""

import copy
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Dict, Optional

from pydantic import PrivateAttr
from typing_extensions import override

from arangopod.db.aql import LABEL_ATTRIBUTE

from .document import Document, PodKind

if TYPE_CHECKING:
    from arangopod.core.model import Model
    from arangopod.toolbox.toolbox import Toolbox


class EndpointRef:
    """Reference to an edge endpoint.

    Either unresolved, holding only the vertex id, or resolved, holding the
    vertex model itself. An unresolved reference is resolved on demand.
    """

    def __init__(self, handle: Optional[str] = None, model: Optional["Model"] = None) -> None:
        self._handle = handle
        self._model = model

    @classmethod
    def unresolved(cls, handle: str) -> "EndpointRef":
        return cls(handle=handle)

    @classmethod
    def resolved(cls, model: "Model") -> "EndpointRef":
        return cls(model=model)

    @property
    def is_resolved(self) -> bool:
        return self._model is not None

    @property
    def model(self) -> Optional["Model"]:
        return self._model

    @property
    def handle(self) -> Optional[str]:
        """Id of the endpoint vertex, if known."""
        if self._model is not None:
            return self._model.get_pod().get_id()
        return self._handle

    @property
    def key(self) -> Optional[str]:
        if self._model is not None:
            return self._model.get_pod().get_key()
        if self._handle:
            return self._handle.split("/", 1)[-1]
        return None

    def resolve(self, loader: Callable[[str], Optional["Model"]]) -> Optional["Model"]:
        """Return the endpoint model, loading it through ``loader`` if needed."""
        if self._model is None and self._handle:
            self._model = loader(self._handle)
        return self._model

    def __repr__(self) -> str:
        state = "resolved" if self.is_resolved else "unresolved"
        return f"EndpointRef({state}, handle={self.handle!r})"


class Edge(Document):
    """An edge pod connecting two vertices of a graph.

    The raw vertex ids live in the ``_from`` and ``_to`` data fields. The
    endpoint models are kept in :class:`EndpointRef` cells.
    """

    kind: ClassVar[PodKind] = PodKind.EDGE

    _from_ref: Optional[EndpointRef] = PrivateAttr(default=None)
    _to_ref: Optional[EndpointRef] = PrivateAttr(default=None)

    def __init__(
        self,
        toolbox: Optional["Toolbox"],
        data: Optional[Dict[str, Any]] = None,
        new: bool = True,
        internal_from: Optional[str] = None,
        internal_to: Optional[str] = None,
    ) -> None:
        super().__init__(toolbox, "edge", data, new)
        if internal_from is not None or "_from" not in self._data:
            self._data["_from"] = internal_from
        if internal_to is not None or "_to" not in self._data:
            self._data["_to"] = internal_to

    @override
    def get_collection_name(self) -> str:
        return self._toolbox.get_edge_collection_name()

    def set_label(self, label: Optional[str]) -> None:
        self.set(LABEL_ATTRIBUTE, label)

    def get_label(self) -> Optional[str]:
        return self.get(LABEL_ATTRIBUTE)

    def set_from(self, model: "Model") -> None:
        self._from_ref = EndpointRef.resolved(model)
        self._data["_from"] = model.get_pod().get_id()

    def set_to(self, model: "Model") -> None:
        self._to_ref = EndpointRef.resolved(model)
        self._data["_to"] = model.get_pod().get_id()

    def get_from_key(self) -> Optional[str]:
        return self._endpoint("_from_ref", "_from").key

    def get_to_key(self) -> Optional[str]:
        return self._endpoint("_to_ref", "_to").key

    def get_from_id(self) -> Optional[str]:
        return self._endpoint("_from_ref", "_from").handle

    def get_to_id(self) -> Optional[str]:
        return self._endpoint("_to_ref", "_to").handle

    def get_from(self) -> Optional["Model"]:
        """The vertex the edge starts from, fetched from the server if needed."""
        return self._endpoint("_from_ref", "_from").resolve(self._load_vertex)

    def get_to(self) -> Optional["Model"]:
        """The vertex the edge points to, fetched from the server if needed."""
        return self._endpoint("_to_ref", "_to").resolve(self._load_vertex)

    def sync_endpoints(self) -> None:
        """Copy the ids of resolved endpoints into ``_from`` and ``_to``."""
        for attribute, field in (("_from_ref", "_from"), ("_to_ref", "_to")):
            ref = getattr(self, attribute)
            if ref is not None and ref.is_resolved and ref.handle:
                self._data[field] = ref.handle

    def _endpoint(self, attribute: str, field: str) -> EndpointRef:
        ref = getattr(self, attribute)
        if ref is not None and ref.is_resolved:
            return ref
        handle = self._data.get(field)
        if ref is None or ref.handle != handle:
            ref = EndpointRef(handle=handle)
            setattr(self, attribute, ref)
        return ref

    def _load_vertex(self, vertex_id: str) -> Optional["Model"]:
        toolbox = self._toolbox
        document = toolbox.driver.get_vertex(toolbox.graph, vertex_id)
        if document is None:
            return None
        return toolbox.pod_manager.convert_driver_document_to_pod(document)

    @override
    def clone(self) -> "Edge":
        clone = super().clone()
        clone._from_ref = copy.copy(self._from_ref)
        clone._to_ref = copy.copy(self._to_ref)
        return clone
