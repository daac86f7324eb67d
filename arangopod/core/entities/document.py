"""Document pod: the state holder behind every model."""

import copy
import json
import re
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Optional

from pydantic import BaseModel, ConfigDict, PrivateAttr

from arangopod.core.events import Event
from arangopod.db.aql import DISTANCE_ATTRIBUTE
from arangopod.db.driver import RESERVED_FIELDS, DocumentKind, DriverDocument
from arangopod.exceptions import (
    DuplicateDistanceError,
    ImmutableIdError,
    InvalidIdError,
    ModelError,
    ReservedFieldError,
)

if TYPE_CHECKING:
    from arangopod.core.model import Model
    from arangopod.toolbox.toolbox import Toolbox

ID_PATTERN = re.compile(r"\w+/\w+")

LIFECYCLE_EVENTS = (
    "after_dispense",
    "after_open",
    "before_store",
    "after_store",
    "before_delete",
    "after_delete",
)


class PodKind(str, Enum):
    """Kind of pod. Drives how the pod manager stores and deletes it."""

    DOCUMENT = "document"
    VERTEX = "vertex"
    EDGE = "edge"


class Document(BaseModel):
    """A document pod.

    Holds the identity (id, key, revision), the user data and the lifecycle
    flags of one document. A pod is always wrapped by exactly one model.

    Attributes:
        pod_type: Collection name, or "vertex"/"edge" for graph pods
        _data: User data, never containing _id, _key or _rev
        _new: Whether the pod has never been stored
        _changed: Whether the pod has unsaved changes
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: ClassVar[PodKind] = PodKind.DOCUMENT

    pod_type: str

    _data: Dict[str, Any] = PrivateAttr(default_factory=dict)
    _new: bool = PrivateAttr(default=True)
    _changed: bool = PrivateAttr(default=False)
    _id: Optional[str] = PrivateAttr(default=None)
    _key: Optional[str] = PrivateAttr(default=None)
    _rev: Optional[str] = PrivateAttr(default=None)
    _distance: Optional[float] = PrivateAttr(default=None)
    _reference_coordinates: Optional[Dict[str, float]] = PrivateAttr(default=None)
    _reference_pod_id: Optional[str] = PrivateAttr(default=None)
    _toolbox: Any = PrivateAttr(default=None)
    _model: Any = PrivateAttr(default=None)

    def __init__(
        self,
        toolbox: Optional["Toolbox"],
        pod_type: str,
        data: Optional[Dict[str, Any]] = None,
        new: bool = True,
    ) -> None:
        super().__init__(pod_type=pod_type)
        self._toolbox = toolbox
        self._data = dict(data or {})
        self._new = new
        self._changed = new

    # Data access

    def set(self, key: str, value: Any) -> None:
        """Set a data field and mark the pod as changed.

        Raises:
            ReservedFieldError: For _id, _key and _rev
        """
        self._guard(key, f"You cannot set the property {key}. This is reserved for system use.")
        self._changed = True
        self._data[key] = value

    def remove(self, key: str) -> None:
        """Remove a data field and mark the pod as changed."""
        self._guard(key, f"You cannot remove the property {key}. This is reserved for system use.")
        self._changed = True
        self._data.pop(key, None)

    def get(self, key: str) -> Any:
        """Get a data field, or None when it is not set."""
        self._guard(
            key,
            f"You cannot get the system property '{key}'. Use the appropriate getter for it.",
        )
        return self._data.get(key)

    def _guard(self, key: str, message: str) -> None:
        if key in RESERVED_FIELDS:
            raise ReservedFieldError(message, details={"field": key})

    @property
    def data(self) -> Dict[str, Any]:
        return dict(self._data)

    # Identity

    def set_key(self, key: str) -> None:
        raise ReservedFieldError(
            "You cannot set the _key for a pod. This value is maintained and "
            "generated automatically."
        )

    def set_id(self, pod_id: str) -> None:
        """Set the id and derive the key from it.

        Raises:
            ImmutableIdError: If another id is already set
            InvalidIdError: If the id is not of the form collection/key
        """
        if self._id is not None and self._id != pod_id:
            raise ImmutableIdError(
                "Cannot update the id of an existing document",
                details={"id": self._id, "new_id": pod_id},
            )
        if not isinstance(pod_id, str) or not ID_PATTERN.fullmatch(pod_id):
            raise InvalidIdError("Invalid format for document id", details={"id": pod_id})

        self._key = pod_id.split("/", 1)[1]
        self._id = pod_id

    def set_revision(self, revision: Optional[Any]) -> None:
        self._rev = None if revision is None else str(revision)

    def get_id(self) -> Optional[str]:
        return self._id

    def get_key(self) -> Optional[str]:
        return self._key

    def get_revision(self) -> Optional[str]:
        return self._rev

    def get_type(self) -> str:
        return self.pod_type

    def get_collection_name(self) -> str:
        """Collection the pod is stored in."""
        return self.pod_type

    def is_graph(self) -> bool:
        return self.kind is not PodKind.DOCUMENT

    def is_new(self) -> bool:
        return self._new

    def has_changed(self) -> bool:
        return self._changed

    def set_saved(self) -> None:
        self._new = False
        self._changed = False

    def reset_meta(self) -> None:
        """Forget the server identity, as after a delete."""
        self._new = True
        self._changed = True
        self._id = None
        self._key = None
        self._rev = None

    def clone(self) -> "Document":
        """Copy the pod without its identity.

        The clone is new and changed and is not attached to any model.
        """
        clone = self.model_copy()
        clone._data = copy.deepcopy(self._data)
        clone._id = None
        clone._key = None
        clone._rev = None
        clone._new = True
        clone._changed = True
        clone._distance = None
        clone._reference_coordinates = None
        clone._reference_pod_id = None
        clone._model = None
        return clone

    # Geo

    def set_distance_info(
        self, latitude: float, longitude: float, pod_id: Optional[str] = None
    ) -> None:
        """Move the distance computed by a geo query out of the data.

        Raises:
            DuplicateDistanceError: If distance info was already set
        """
        if (
            self._distance is not None
            or self._reference_coordinates is not None
            or self._reference_pod_id is not None
        ):
            raise DuplicateDistanceError(
                "Cannot update the distance info from an existing query."
            )

        self._distance = self._data.pop(DISTANCE_ATTRIBUTE, None)
        self._reference_coordinates = {"latitude": latitude, "longitude": longitude}
        self._reference_pod_id = pod_id

    def get_distance(self) -> Optional[float]:
        return self._distance

    def get_reference_coordinates(self) -> Optional[Dict[str, float]]:
        return self._reference_coordinates

    def get_reference_pod(self) -> Optional["Model"]:
        """Load the pod used as the reference point of the geo query."""
        if not self._reference_pod_id:
            return None
        return self._toolbox.pod_manager.load(self.pod_type, self._reference_pod_id)

    def get_coordinates(self) -> Optional[Dict[str, Any]]:
        """Coordinates of the pod according to the geo index of its collection.

        Returns:
            ``{"latitude", "longitude"}``, or None when the collection has no
            geo index or the pod has no coordinates
        """
        fields = self._toolbox.collection_manager.get_geo_fields_for_aql(
            self.get_collection_name()
        )
        if not fields:
            return None

        if len(fields) == 1:
            # Single field holding [latitude, longitude]
            value = self._data.get(fields[0])
            if not value or len(value) < 2:
                return None
            latitude, longitude = value[0], value[1]
        else:
            latitude = self._data.get(fields[0])
            longitude = self._data.get(fields[1])

        if latitude is None or longitude is None:
            return None
        return {"latitude": latitude, "longitude": longitude}

    def near(
        self,
        aql: str = "",
        params: Optional[Dict[str, Any]] = None,
        limit: int = 100,
        placeholder: str = "doc",
    ):
        """Find the pods nearest to this one."""
        return self._toolbox.finder.find_all_near(
            self.pod_type, self.get_model(), aql, params, limit, placeholder
        )

    def within(
        self,
        radius: float,
        aql: str = "",
        params: Optional[Dict[str, Any]] = None,
        placeholder: str = "doc",
    ):
        """Find the pods within a radius (in meters) of this one."""
        return self._toolbox.finder.find_all_within(
            self.pod_type, self.get_model(), radius, aql, params, placeholder
        )

    # Serialisation

    def _identity(self) -> Dict[str, Any]:
        return {"_id": self._id, "_key": self._key, "_rev": self._rev}

    def to_dict(self) -> Dict[str, Any]:
        """Data plus identity fields."""
        return {**self._identity(), **self._data}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def to_transaction_dict(self) -> Dict[str, Any]:
        """Data plus revision, as written inside a scripted transaction."""
        result: Dict[str, Any] = {}
        if self._rev is not None:
            result["_rev"] = self._rev
        result.update(self._data)
        return result

    def to_transaction_json(self) -> str:
        return json.dumps(self.to_transaction_dict())

    def to_driver_document(self) -> DriverDocument:
        return DriverDocument(self.to_dict(), DocumentKind(self.kind.value))

    def load_from_driver(self, document: DriverDocument) -> None:
        """Hydrate from a driver document and mark the pod saved."""
        for key, value in document.get_all().items():
            if key not in RESERVED_FIELDS:
                self._data[key] = value
        if document.id:
            self.set_id(document.id)
        self.set_revision(document.revision)
        self.set_saved()

    def load_from_dict(self, row: Dict[str, Any]) -> None:
        """Hydrate from a plain query row. Unset identity fields are skipped."""
        for key, value in row.items():
            if key in RESERVED_FIELDS:
                if key == "_id" and value is not None:
                    self.set_id(value)
                elif key == "_rev" and value is not None:
                    self.set_revision(value)
            else:
                self._data[key] = value

    # Model link

    def load_model(self, model: "Model") -> None:
        if self._model is not None:
            raise ModelError(
                "You cannot change the model for this pod as things can break "
                "and lead to unexpected results."
            )
        self._model = model

    def get_model(self) -> Optional["Model"]:
        return self._model

    def get_toolbox(self) -> Optional["Toolbox"]:
        return self._toolbox

    def on_event(self, event: Event) -> None:
        """Forward lifecycle events addressed to this pod to its model."""
        if event.subject is not self or self._model is None:
            return
        if event.name in LIFECYCLE_EVENTS:
            getattr(self._model, event.name)()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(type={self.pod_type!r}, id={self._id!r})"
