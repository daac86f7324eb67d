"""Pod manager: creates, stores, deletes and loads pods."""

import json
import logging
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional, Tuple

from arangopod.core.entities.document import LIFECYCLE_EVENTS, Document, PodKind
from arangopod.core.entities.edge import Edge
from arangopod.core.entities.vertex import Vertex
from arangopod.core.events import Observable
from arangopod.core.model import Model
from arangopod.db import aql
from arangopod.db.driver import DocumentKind, DriverDocument
from arangopod.exceptions import (
    ArangoPodError,
    DeleteError,
    InvalidLabelUsageError,
    InvalidModelError,
    InvalidTypeError,
    MissingEndpointError,
    StoreError,
)

from .execution import ExecutionMode
from .transaction import Action, TransactionManager

if TYPE_CHECKING:
    from .toolbox import Toolbox

logger = logging.getLogger(__name__)

GRAPH_TYPES = ("vertex", "edge")


class PodManager(Observable):
    """Entry point for the lifecycle of pods.

    Every pod created here is attached to the manager's event bus for the
    events about itself, so the lifecycle events reach its model hooks.
    """

    def __init__(self, toolbox: "Toolbox") -> None:
        super().__init__()
        self._toolbox = toolbox

    # Creation

    def dispense(self, pod_type: str, label: Optional[str] = None) -> Model:
        """Create a new pod wrapped in its model.

        Args:
            pod_type: Collection name, or "vertex"/"edge" for graphs
            label: Label of a new edge

        Raises:
            InvalidLabelUsageError: If a label is given for anything but an edge
            InvalidTypeError: If the type is not valid for a graph
            InvalidModelError: If the model formatter returns a non-Model class
        """
        if label is not None and (
            not self._toolbox.is_graph() or pod_type.lower() != "edge"
        ):
            raise InvalidLabelUsageError(
                "Only Edge pods can have a label passed into dispense()."
            )

        model = self._create(pod_type)
        if label:
            model.get_pod().set_label(label)

        self.notify("after_dispense", model.get_pod())
        return model

    def _create(self, pod_type: str, data: Optional[Dict[str, Any]] = None) -> Model:
        if self._toolbox.is_graph():
            kind = pod_type.lower()
            if kind == "vertex":
                pod: Document = Vertex(self._toolbox, data)
            elif kind == "edge":
                pod = Edge(self._toolbox, data)
            else:
                raise InvalidTypeError(
                    "When dispensing pods for graphs, only the types 'vertex' and "
                    f"'edge' are allowed. You provided '{pod_type}'.",
                    details={"type": pod_type},
                )
        else:
            pod = Document(self._toolbox, pod_type, data)

        self.attach_events_to_pod(pod)
        return self._setup_model(pod.get_type(), pod)

    def attach_events_to_pod(self, pod: Document) -> None:
        self.attach_subject(LIFECYCLE_EVENTS, pod)

    def _setup_model(self, pod_type: str, pod: Document) -> Model:
        model_class = self._toolbox.format_model(pod_type)
        if not (isinstance(model_class, type) and issubclass(model_class, Model)):
            raise InvalidModelError(
                "Custom models must inherit from the arangopod Model class.",
                details={"model": repr(model_class)},
            )

        model = model_class()
        model.load_pod(pod)
        pod.load_model(model)
        return model

    # Store

    def store(self, model: Model) -> Optional[str]:
        """Create or replace the pod of a model.

        Returns:
            The pod key, or None when the store is buffered in a transaction

        Raises:
            MissingEndpointError: If an edge has no usable from/to vertex
            StoreError: With the normalised driver error
        """
        self._toolbox.validate_pod(model)
        mode = self._toolbox.transaction_manager.mode()
        result = self._store(model, mode)
        return None if mode.is_buffered else result

    def _store(self, model: Model, mode: ExecutionMode) -> Optional[str]:
        """Store a model, returning its key, or the command id when buffered."""
        pod = model.get_pod()
        self.notify("before_store", pod)

        handlers = {
            PodKind.VERTEX: self._store_vertex,
            PodKind.EDGE: self._store_edge,
            PodKind.DOCUMENT: self._store_document,
        }

        try:
            result = handlers[pod.kind](model, pod, mode)
        except ArangoPodError:
            raise
        except Exception as e:
            normalised = self._toolbox.normalise_driver_exceptions(e)
            raise StoreError(normalised["message"], normalised["code"]) from e

        if mode.is_buffered:
            return result
        return self.process_store_result(pod, result.get("_rev"), result.get("_id"))

    def _store_document(self, model: Model, pod: Document, mode: ExecutionMode) -> Any:
        collection = pod.get_type()

        if mode.is_buffered:
            manager = mode.transaction_manager
            manager.add_write_collection(collection)
            target = aql.collection_expr(collection)
            handle = self._transaction_handle(model, pod, manager)
            if handle is None:
                script = f"{target}.save({self._payload(pod)});"
            else:
                script = f"{target}.replace({handle}, {pod.to_transaction_json()}, {{overwrite: true}});"
            return manager.add_command(script, Action.POD_STORE, model)

        data = pod.to_driver_document().get_all(include_internals=False)
        if pod.is_new():
            return self._toolbox.driver.save(collection, data)
        return self._toolbox.driver.replace(collection, pod.get_id(), data)

    def _store_vertex(self, model: Model, pod: Document, mode: ExecutionMode) -> Any:
        collection = self._toolbox.get_vertex_collection_name()

        if mode.is_buffered:
            manager = mode.transaction_manager
            manager.add_write_collection(collection)
            target = aql.graph_collection_expr(collection)
            handle = self._transaction_handle(model, pod, manager)
            if handle is None:
                script = f"{target}.save({self._payload(pod)});"
            else:
                script = f"{target}.replace({handle}, {pod.to_transaction_json()});"
            return manager.add_command(script, Action.POD_STORE, model, True)

        driver = self._toolbox.driver
        data = pod.to_driver_document().get_all(include_internals=False)
        if pod.is_new():
            return driver.save_vertex(self._toolbox.graph, data)
        return driver.replace_vertex(self._toolbox.graph, pod.get_id(), data)

    def _store_edge(self, model: Model, pod: Edge, mode: ExecutionMode) -> Any:
        from_handle, from_is_ref = self._resolve_endpoint(pod, "from", mode)
        to_handle, to_is_ref = self._resolve_endpoint(pod, "to", mode)
        collection = self._toolbox.get_edge_collection_name()
        payload = {
            k: v
            for k, v in pod.to_transaction_dict().items()
            if k not in ("_from", "_to", "_rev")
        }

        if mode.is_buffered:
            manager = mode.transaction_manager
            manager.add_write_collection(collection)
            target = aql.graph_collection_expr(collection)
            from_js = aql.result_ref(from_handle) if from_is_ref else aql.js_literal(from_handle)
            to_js = aql.result_ref(to_handle) if to_is_ref else aql.js_literal(to_handle)
            data_js = json.dumps(payload)

            # Endpoints cannot be updated in place: remove, then save again
            # under the same key.
            if pod.is_new():
                previous = self._determine_previously_stored(model, manager)
                if previous is not None:
                    manager.add_command(
                        aql.remove_statement(target, aql.result_ref(previous)),
                        Action.POD_STORE,
                        model,
                        True,
                        {"intermediate": True},
                    )
                    data_js = (
                        f"Object.assign({data_js}, "
                        f"{{_key: {aql.result_ref(previous, '_key')}}})"
                    )
            else:
                manager.add_command(
                    aql.remove_statement(target, aql.js_literal(pod.get_id())),
                    Action.POD_STORE,
                    model,
                    True,
                    {"intermediate": True},
                )
                data_js = json.dumps({**payload, "_key": pod.get_key()})

            return manager.add_command(
                f"{target}.save({from_js}, {to_js}, {data_js});",
                Action.POD_STORE,
                model,
                True,
            )

        driver = self._toolbox.driver
        graph = self._toolbox.graph
        if not pod.is_new():
            driver.remove_edge(graph, pod.get_id())
            payload["_key"] = pod.get_key()
        return driver.save_edge(graph, from_handle, to_handle, None, payload)

    def _resolve_endpoint(
        self, pod: Edge, side: str, mode: ExecutionMode
    ) -> Tuple[str, bool]:
        """Resolve one endpoint of an edge, storing the vertex if it changed.

        Returns:
            The vertex id, or the id of the command storing it when buffered,
            and whether it is a command id
        """
        if side == "from":
            key, vertex_id, get_vertex = pod.get_from_key(), pod.get_from_id, pod.get_from
        else:
            key, vertex_id, get_vertex = pod.get_to_key(), pod.get_to_id, pod.get_to

        if key:
            return vertex_id(), False

        vertex = get_vertex()
        if vertex is None:
            raise MissingEndpointError(f"An edge must have a valid '{side}' vertex.")

        if vertex.get_pod().has_changed():
            stored = self._store(vertex, mode)
            if mode.is_buffered:
                return stored, True
            return vertex.get_pod().get_id(), False

        if not vertex.get_pod().get_id():
            raise MissingEndpointError(f"An edge must have a valid '{side}' vertex.")
        return vertex.get_pod().get_id(), False

    def _transaction_handle(
        self, model: Model, pod: Document, manager: TransactionManager
    ) -> Optional[str]:
        """JavaScript expression of the id to replace, or None for a save."""
        if not pod.is_new():
            return aql.js_literal(pod.get_id())
        previous = self._determine_previously_stored(model, manager)
        if previous is not None:
            return aql.result_ref(previous)
        return None

    def _payload(self, pod: Document) -> str:
        return json.dumps({k: v for k, v in pod.to_transaction_dict().items() if k != "_rev"})

    def _determine_previously_stored(
        self, model: Model, manager: TransactionManager
    ) -> Optional[str]:
        """Id of an earlier store of this model in the open transaction.

        A store that was followed by a delete of the same model does not count.
        """
        store = manager.search_commands_by_action_and_object(Action.POD_STORE, model)
        delete = manager.search_commands_by_action_and_object(Action.POD_DELETE, model)
        store_position = store["position"] if store else -1
        delete_position = delete["position"] if delete else -1

        if delete_position >= store_position:
            return None
        return store["id"]

    def process_store_result(
        self, pod: Document, revision: Optional[str], pod_id: Optional[str] = None
    ) -> Optional[str]:
        """Mark a pod saved after a successful store and fire after_store."""
        pod.set_saved()
        pod.set_revision(revision)
        if pod_id and pod.get_id() is None:
            pod.set_id(pod_id)
        if pod.kind is PodKind.EDGE:
            pod.sync_endpoints()

        self.notify("after_store", pod)
        return pod.get_key()

    # Delete

    def delete(self, model: Model) -> Optional[bool]:
        """Delete the pod of a model.

        Returns:
            True, or None when the delete is buffered in a transaction

        Raises:
            DeleteError: With the normalised driver error
        """
        self._toolbox.validate_pod(model)
        mode = self._toolbox.transaction_manager.mode()
        pod = model.get_pod()
        self.notify("before_delete", pod)

        try:
            if pod.kind is PodKind.VERTEX:
                self._delete_graph_pod(
                    model, pod, mode, self._toolbox.get_vertex_collection_name()
                )
            elif pod.kind is PodKind.EDGE:
                self._delete_graph_pod(
                    model, pod, mode, self._toolbox.get_edge_collection_name()
                )
            else:
                self._delete_document(model, pod, mode)
        except ArangoPodError:
            raise
        except Exception as e:
            normalised = self._toolbox.normalise_driver_exceptions(e)
            raise DeleteError(normalised["message"], normalised["code"]) from e

        if mode.is_buffered:
            return None
        return self.process_delete_result(pod)

    def _delete_graph_pod(
        self, model: Model, pod: Document, mode: ExecutionMode, collection: str
    ) -> None:
        if mode.is_buffered:
            manager = mode.transaction_manager
            manager.add_write_collection(collection)
            handle = self._delete_handle(model, pod, manager)
            manager.add_command(
                aql.remove_statement(aql.graph_collection_expr(collection), handle),
                Action.POD_DELETE,
                model,
                True,
            )
            return

        if pod.kind is PodKind.VERTEX:
            self._toolbox.driver.remove_vertex(self._toolbox.graph, pod.get_id())
        else:
            self._toolbox.driver.remove_edge(self._toolbox.graph, pod.get_id())

    def _delete_document(self, model: Model, pod: Document, mode: ExecutionMode) -> None:
        collection = pod.get_type()
        if mode.is_buffered:
            manager = mode.transaction_manager
            manager.add_write_collection(collection)
            handle = self._delete_handle(model, pod, manager)
            manager.add_command(
                aql.remove_statement(aql.collection_expr(collection), handle),
                Action.POD_DELETE,
                model,
            )
            return

        self._toolbox.driver.delete(collection, pod.get_id())

    def _delete_handle(
        self, model: Model, pod: Document, manager: TransactionManager
    ) -> str:
        previous = self._determine_previously_stored(model, manager)
        if previous is not None:
            return aql.result_ref(previous)
        return aql.js_literal(pod.get_id())

    def process_delete_result(self, pod: Document) -> bool:
        """Reset a deleted pod and fire after_delete."""
        pod.reset_meta()
        self.notify("after_delete", pod)
        return True

    # Load

    def load(self, pod_type: str, pod_id: str) -> Optional[Model]:
        """Load a pod by id.

        Returns:
            The model, or None when the pod does not exist or the driver fails.
            None as well when the load is buffered in a transaction.

        Raises:
            InvalidTypeError: If the type is not valid for a graph
        """
        mode = self._toolbox.transaction_manager.mode()
        driver = self._toolbox.driver

        if self._toolbox.is_graph():
            kind = pod_type.lower()
            if kind == "vertex":
                collection = self._toolbox.get_vertex_collection_name()
            elif kind == "edge":
                collection = self._toolbox.get_edge_collection_name()
            else:
                raise InvalidTypeError(
                    "For graphs, only the types 'vertex' and 'edge' can be loaded.",
                    details={"type": pod_type},
                )

            if mode.is_buffered:
                self._buffer_load(mode, collection, kind, pod_id, True)
                return None

            fetch = driver.get_vertex if kind == "vertex" else driver.get_edge
            args: Tuple[str, str] = (self._toolbox.graph, pod_id)
        else:
            if mode.is_buffered:
                self._buffer_load(mode, pod_type, pod_type, pod_id, False)
                return None

            fetch = driver.get_by_id
            args = (pod_type, pod_id)

        try:
            document = fetch(*args)
        except Exception as e:
            logger.debug(f"Loading '{pod_id}' failed, treating it as missing: {e}")
            return None

        if document is None:
            return None
        return self.convert_driver_document_to_pod(document)

    def _buffer_load(
        self,
        mode: ExecutionMode,
        collection: str,
        pod_type: str,
        pod_id: str,
        is_graph: bool,
    ) -> None:
        manager = mode.transaction_manager
        manager.add_read_collection(collection)
        manager.add_command(
            aql.load_statement(aql.collection_expr(collection), pod_id),
            Action.POD_LOAD,
            None,
            is_graph,
            {"type": pod_type},
        )

    # Conversion

    def convert_to_pods(self, pod_type: str, rows: Iterable[Any]) -> Dict[Any, Model]:
        """Convert driver documents and plain rows to models.

        Models are keyed by their id. Rows without an id get a running
        integer index.
        """
        result: Dict[Any, Model] = {}
        index = 0

        for row in rows:
            if isinstance(row, DriverDocument):
                model = self.convert_driver_document_to_pod(row)
                row_id = row.id
            else:
                model = self.convert_dict_to_pod(pod_type, row)
                row_id = row.get("_id")

            if row_id:
                result[row_id] = model
            else:
                result[index] = model
                index += 1

        return result

    def convert_dict_to_pod(self, pod_type: str, row: Dict[str, Any]) -> Model:
        """Hydrate a model from a plain row and fire after_open."""
        model = self._create(pod_type)
        pod = model.get_pod()
        pod.load_from_dict(row)
        pod.set_saved()

        self.notify("after_open", pod)
        return model

    def convert_driver_document_to_pod(self, document: DriverDocument) -> Model:
        """Hydrate a model from a driver document and fire after_open."""
        if document.kind is DocumentKind.VERTEX:
            pod_type = "vertex"
        elif document.kind is DocumentKind.EDGE:
            pod_type = "edge"
        else:
            pod_type = self._type_from_id(document.id)

        model = self._create(pod_type)
        pod = model.get_pod()
        pod.load_from_driver(document)

        self.notify("after_open", pod)
        return model

    def _type_from_id(self, document_id: Optional[str]) -> str:
        collection = self._toolbox.parse_id(document_id or "")["collection"]
        if self._toolbox.is_graph():
            if collection == self._toolbox.get_vertex_collection_name():
                return "vertex"
            if collection == self._toolbox.get_edge_collection_name():
                return "edge"
        return collection

    def validate_type(self, pod_type: str) -> bool:
        """Whether a pod type is valid for this connection."""
        if self._toolbox.is_graph():
            return pod_type.lower() in GRAPH_TYPES
        return True
