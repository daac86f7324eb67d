"""Finder: filtered, geo and fulltext queries returning models."""

from typing import TYPE_CHECKING, Any, Dict, Iterable, Mapping, Optional

from arangopod.core.model import Model
from arangopod.db import aql
from arangopod.exceptions import FinderError

from .transaction import Action

if TYPE_CHECKING:
    from .toolbox import Toolbox


class Finder:
    """Builds queries against one collection and converts the rows to models.

    The caller supplies an AQL fragment using ``placeholder`` as the loop
    variable. Multi-row finders return a dict of models keyed by id (empty
    when nothing matches); single-row finders return a model or None. Inside
    a transaction every finder returns None and the result is delivered by
    ``commit``.
    """

    def __init__(self, toolbox: "Toolbox") -> None:
        self._toolbox = toolbox

    # Filtered queries

    def find(
        self,
        pod_type: str,
        aql_filter: str,
        params: Optional[Dict[str, Any]] = None,
        placeholder: str = "doc",
    ):
        """Find the pods matching a FILTER condition."""
        params = dict(params or {})
        collection_parameter = self._parameter("@collection", params)
        query = aql.finder_query(placeholder, f"@{collection_parameter}", aql_filter)
        params[collection_parameter] = self.get_collection_name(pod_type)
        return self._run(Action.FIND, pod_type, query, params)

    def find_all(
        self,
        pod_type: str,
        aql_fragment: str = "",
        params: Optional[Dict[str, Any]] = None,
        placeholder: str = "doc",
    ):
        """Find all pods, with an optional fragment such as SORT or LIMIT."""
        params = dict(params or {})
        collection_parameter = self._parameter("@collection", params)
        query = aql.finder_query(
            placeholder, f"@{collection_parameter}", aql_fragment, filtered=False
        )
        params[collection_parameter] = self.get_collection_name(pod_type)
        return self._run(Action.FIND_ALL, pod_type, query, params)

    def find_one(
        self,
        pod_type: str,
        aql_filter: str,
        params: Optional[Dict[str, Any]] = None,
        placeholder: str = "doc",
    ):
        """Find the first pod matching a FILTER condition."""
        params = dict(params or {})
        collection_parameter = self._parameter("@collection", params)
        query = aql.finder_query(
            placeholder, f"@{collection_parameter}", aql_filter, limit_one=True
        )
        params[collection_parameter] = self.get_collection_name(pod_type)
        return self._run(Action.FIND_ONE, pod_type, query, params, single=True)

    def any(self, pod_type: str) -> Optional[Model]:
        """Return a random pod of a collection, or None when it is empty."""
        collection = self.get_collection_name(pod_type)
        mode = self._toolbox.transaction_manager.mode()

        if mode.is_buffered:
            manager = mode.transaction_manager
            manager.add_read_collection(collection)
            manager.add_command(
                f"{aql.collection_expr(collection)}.any();",
                Action.ANY,
                None,
                False,
                {"type": pod_type},
            )
            return None

        try:
            row = self._toolbox.driver.any(collection)
        except Exception as e:
            normalised = self._toolbox.normalise_driver_exceptions(e)
            raise FinderError(normalised["message"], normalised["code"]) from e

        if not row:
            return None
        return self._first(self.convert_to_pods(pod_type, [row]))

    # Geo queries

    def find_near(
        self,
        pod_type: str,
        reference: Any,
        aql_filter: str,
        params: Optional[Dict[str, Any]] = None,
        limit: int = 100,
        placeholder: str = "doc",
    ):
        """Find the pods nearest to a reference point matching a condition.

        Args:
            reference: A model with coordinates, or a mapping with exactly
                ``latitude`` and ``longitude``. A model is excluded from its
                own results.
        """
        return self._near(
            Action.FIND_NEAR, pod_type, reference, aql_filter, params, limit, placeholder
        )

    def find_all_near(
        self,
        pod_type: str,
        reference: Any,
        aql_fragment: str = "",
        params: Optional[Dict[str, Any]] = None,
        limit: int = 100,
        placeholder: str = "doc",
    ):
        """Find the pods nearest to a reference point."""
        return self._near(
            Action.FIND_ALL_NEAR,
            pod_type,
            reference,
            aql_fragment,
            params,
            limit,
            placeholder,
            filtered=False,
        )

    def find_one_near(
        self,
        pod_type: str,
        reference: Any,
        aql_filter: str,
        params: Optional[Dict[str, Any]] = None,
        placeholder: str = "doc",
    ):
        """Find the single pod nearest to a reference point."""
        return self._near(
            Action.FIND_ONE_NEAR,
            pod_type,
            reference,
            aql_filter,
            params,
            1,
            placeholder,
            single=True,
        )

    def _near(
        self,
        action: Action,
        pod_type: str,
        reference: Any,
        aql_fragment: str,
        params: Optional[Dict[str, Any]],
        limit: int,
        placeholder: str,
        filtered: bool = True,
        single: bool = False,
    ):
        coordinates = self._generate_reference_data(reference)
        params = dict(params or {})

        collection_parameter = self._parameter("@collection", params)
        latitude_parameter = self._parameter("latitude", params)
        longitude_parameter = self._parameter("longitude", params)
        limit_parameter = self._parameter("limit", params)

        exclude_parameter = None
        result_limit_parameter = None
        if isinstance(reference, Model):
            # NEAR() applies its limit before any FILTER, so ask for one more
            # row to make up for the reference pod being filtered out, then
            # cut back to the requested limit.
            exclude_parameter = self._parameter("filter_id", params)
            params[exclude_parameter] = coordinates["pod_id"]
            if not single:
                result_limit_parameter = self._parameter("result_limit", params)
                params[result_limit_parameter] = limit
            limit = 2 if single else limit + 1

        query = aql.finder_query(
            placeholder,
            aql.near_source(
                collection_parameter, latitude_parameter, longitude_parameter, limit_parameter
            ),
            aql_fragment,
            filtered=filtered,
            exclude_parameter=exclude_parameter,
            limit_one=single,
            limit_parameter=result_limit_parameter,
        )

        params[collection_parameter] = self.get_collection_name(pod_type)
        params[latitude_parameter] = coordinates["latitude"]
        params[longitude_parameter] = coordinates["longitude"]
        params[limit_parameter] = limit

        return self._run(action, pod_type, query, params, single, coordinates)

    def find_within(
        self,
        pod_type: str,
        reference: Any,
        radius: float,
        aql_filter: str,
        params: Optional[Dict[str, Any]] = None,
        placeholder: str = "doc",
    ):
        """Find the pods within ``radius`` meters of a reference point
        matching a condition."""
        return self._within(
            Action.FIND_WITHIN, pod_type, reference, radius, aql_filter, params, placeholder
        )

    def find_all_within(
        self,
        pod_type: str,
        reference: Any,
        radius: float,
        aql_fragment: str = "",
        params: Optional[Dict[str, Any]] = None,
        placeholder: str = "doc",
    ):
        """Find the pods within ``radius`` meters of a reference point."""
        return self._within(
            Action.FIND_ALL_WITHIN,
            pod_type,
            reference,
            radius,
            aql_fragment,
            params,
            placeholder,
            filtered=False,
        )

    def find_one_within(
        self,
        pod_type: str,
        reference: Any,
        radius: float,
        aql_filter: str,
        params: Optional[Dict[str, Any]] = None,
        placeholder: str = "doc",
    ):
        """Find one pod within ``radius`` meters of a reference point."""
        return self._within(
            Action.FIND_ONE_WITHIN,
            pod_type,
            reference,
            radius,
            aql_filter,
            params,
            placeholder,
            single=True,
        )

    def _within(
        self,
        action: Action,
        pod_type: str,
        reference: Any,
        radius: float,
        aql_fragment: str,
        params: Optional[Dict[str, Any]],
        placeholder: str,
        filtered: bool = True,
        single: bool = False,
    ):
        coordinates = self._generate_reference_data(reference)
        params = dict(params or {})

        collection_parameter = self._parameter("@collection", params)
        latitude_parameter = self._parameter("latitude", params)
        longitude_parameter = self._parameter("longitude", params)
        radius_parameter = self._parameter("radius", params)

        exclude_parameter = None
        if isinstance(reference, Model):
            exclude_parameter = self._parameter("filter_id", params)
            params[exclude_parameter] = coordinates["pod_id"]

        query = aql.finder_query(
            placeholder,
            aql.within_source(
                collection_parameter, latitude_parameter, longitude_parameter, radius_parameter
            ),
            aql_fragment,
            filtered=filtered,
            exclude_parameter=exclude_parameter,
            limit_one=single,
        )

        params[collection_parameter] = self.get_collection_name(pod_type)
        params[latitude_parameter] = coordinates["latitude"]
        params[longitude_parameter] = coordinates["longitude"]
        params[radius_parameter] = radius

        return self._run(action, pod_type, query, params, single, coordinates)

    def _generate_reference_data(self, reference: Any) -> Dict[str, Any]:
        """Reference coordinates plus the id of the reference pod, if any."""
        if isinstance(reference, Model):
            coordinates = reference.get_pod().get_coordinates()
            if not coordinates:
                raise FinderError(
                    "To use a pod as a reference point, it must have a geo index on "
                    "its collection and have coordinates assigned."
                )
            return {**coordinates, "pod_id": reference.get_pod().get_id()}

        if isinstance(reference, Mapping):
            if set(reference) != {"latitude", "longitude"}:
                raise FinderError(
                    "Reference coordinates must contain exactly 2 keys: "
                    "latitude and longitude.",
                    details={"keys": sorted(reference)},
                )
            return {
                "latitude": reference["latitude"],
                "longitude": reference["longitude"],
                "pod_id": None,
            }

        raise FinderError(
            "The reference must be either a model or a mapping containing the "
            "latitude and longitude."
        )

    # Fulltext queries

    def search(
        self,
        pod_type: str,
        attribute: str,
        query: str,
        aql_filter: str,
        params: Optional[Dict[str, Any]] = None,
        placeholder: str = "doc",
    ):
        """Fulltext search on an attribute, restricted by a condition."""
        return self._search(
            Action.SEARCH, pod_type, attribute, query, aql_filter, params, placeholder
        )

    def search_all(
        self,
        pod_type: str,
        attribute: str,
        query: str,
        aql_fragment: str = "",
        params: Optional[Dict[str, Any]] = None,
        placeholder: str = "doc",
    ):
        """Fulltext search on an attribute."""
        return self._search(
            Action.SEARCH_ALL,
            pod_type,
            attribute,
            query,
            aql_fragment,
            params,
            placeholder,
            filtered=False,
        )

    def search_for_one(
        self,
        pod_type: str,
        attribute: str,
        query: str,
        aql_filter: str,
        params: Optional[Dict[str, Any]] = None,
        placeholder: str = "doc",
    ):
        """Fulltext search returning the first match."""
        return self._search(
            Action.SEARCH_FOR_ONE,
            pod_type,
            attribute,
            query,
            aql_filter,
            params,
            placeholder,
            single=True,
        )

    def _search(
        self,
        action: Action,
        pod_type: str,
        attribute: str,
        search_query: str,
        aql_fragment: str,
        params: Optional[Dict[str, Any]],
        placeholder: str,
        filtered: bool = True,
        single: bool = False,
    ):
        params = dict(params or {})
        collection_parameter = self._parameter("@collection", params)
        attribute_parameter = self._parameter("attribute", params)
        query_parameter = self._parameter("query", params)

        query = aql.finder_query(
            placeholder,
            aql.fulltext_source(collection_parameter, attribute_parameter, query_parameter),
            aql_fragment,
            filtered=filtered,
            limit_one=single,
        )

        params[collection_parameter] = self.get_collection_name(pod_type)
        params[attribute_parameter] = attribute
        params[query_parameter] = search_query

        return self._run(action, pod_type, query, params, single)

    # Execution

    def _parameter(self, name: str, params: Dict[str, Any]) -> str:
        return self._toolbox.generate_binding_parameter(name, params)

    def _run(
        self,
        action: Action,
        pod_type: str,
        query: str,
        params: Dict[str, Any],
        single: bool = False,
        coordinates: Optional[Dict[str, Any]] = None,
    ):
        mode = self._toolbox.transaction_manager.mode()

        if mode.is_buffered:
            manager = mode.transaction_manager
            manager.add_read_collection(self.get_collection_name(pod_type))
            aux_data: Dict[str, Any] = {"type": pod_type}
            if coordinates:
                aux_data["coordinates"] = coordinates
            statement = aql.query_one_statement if single else aql.query_all_statement
            manager.add_command(statement(query, params), action, None, False, aux_data)
            return None

        driver = self._toolbox.driver
        try:
            if single:
                result = driver.execute_one(query, params)
            else:
                result = driver.execute_all(query, params)
        except Exception as e:
            normalised = self._toolbox.normalise_driver_exceptions(e)
            raise FinderError(normalised["message"], normalised["code"]) from e

        if single:
            if not result:
                return None
            return self._first(self.convert_to_pods(pod_type, [result], coordinates))

        if not result:
            return {}
        return self.convert_to_pods(pod_type, result, coordinates)

    @staticmethod
    def _first(converted: Dict[Any, Model]) -> Optional[Model]:
        return next(iter(converted.values()), None)

    def convert_to_pods(
        self,
        pod_type: str,
        rows: Iterable[Any],
        geo_info: Optional[Dict[str, Any]] = None,
    ) -> Dict[Any, Model]:
        """Convert rows to saved models, attaching distance info for geo queries."""
        converted = self._toolbox.pod_manager.convert_to_pods(pod_type, rows)

        for model in converted.values():
            pod = model.get_pod()
            if geo_info:
                pod.set_distance_info(
                    geo_info["latitude"], geo_info["longitude"], geo_info.get("pod_id")
                )
            pod.set_saved()

        return converted

    def get_collection_name(self, pod_type: str) -> str:
        """Collection queried for a pod type.

        Raises:
            FinderError: If the type is not "vertex" or "edge" on a graph
        """
        if not self._toolbox.is_graph():
            return pod_type

        if not self._toolbox.pod_manager.validate_type(pod_type):
            raise FinderError(
                "When finding documents in graphs, only the types 'vertex' and "
                "'edge' are allowed.",
                details={"type": pod_type},
            )

        if pod_type.lower() == "vertex":
            return self._toolbox.get_vertex_collection_name()
        return self._toolbox.get_edge_collection_name()
