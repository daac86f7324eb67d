"""Index metadata for the collections of a connection."""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Union

from arangopod.exceptions import CollectionManagerError

if TYPE_CHECKING:
    from .toolbox import Toolbox

logger = logging.getLogger(__name__)

GEO_INDEX_TYPES = ("geo", "geo1", "geo2")


class CollectionManager:
    """Lists and manages indexes, caching index metadata per collection.

    Creating or deleting an index through this manager evicts the cached
    metadata of the collection.
    """

    def __init__(self, toolbox: "Toolbox") -> None:
        self._toolbox = toolbox
        self._index_cache: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def list_indices(
        self, collection: str, include_info: bool = False
    ) -> Union[List[str], Dict[str, Dict[str, Any]]]:
        """List the indexes of a collection.

        Args:
            collection: Collection name
            include_info: Return the index descriptions keyed by id instead
                of the ids only

        Raises:
            CollectionManagerError: With the normalised driver error
        """
        if collection not in self._index_cache:
            try:
                indexes = self._toolbox.driver.indexes(collection)
            except Exception as e:
                raise self._error(e) from e
            self._index_cache[collection] = {index["id"]: index for index in indexes}

        cached = self._index_cache[collection]
        if include_info:
            return dict(cached)
        return list(cached)

    def get_index_info(self, collection: str, index_id: str) -> Optional[Dict[str, Any]]:
        """Description of one index, by full id or by its number."""
        return self.list_indices(collection, True).get(self._full_index_id(collection, index_id))

    def get_geo_fields_for_aql(self, collection: str) -> Optional[List[str]]:
        """Fields of the first geo index of a collection, or None."""
        for info in self.list_indices(collection, True).values():
            if info.get("type") in GEO_INDEX_TYPES:
                return list(info["fields"])
        return None

    def create_geo_index(
        self, collection: str, fields: Union[str, Sequence[str]], geo_json: bool = False
    ) -> str:
        """Create a geo index.

        Args:
            collection: Collection name
            fields: One field holding ``[latitude, longitude]``, or a latitude
                field and a longitude field
            geo_json: Whether a single field holds GeoJSON

        Returns:
            The index id
        """
        if isinstance(fields, str):
            fields = [fields]
        return self._add_index(
            collection, {"type": "geo", "fields": list(fields), "geoJson": geo_json}
        )

    def create_fulltext_index(
        self, collection: str, field: str, min_length: Optional[int] = None
    ) -> str:
        """Create a fulltext index on one field, returning its id."""
        if not isinstance(field, str):
            raise CollectionManagerError("Fulltext indices can currently only index one field.")

        data: Dict[str, Any] = {"type": "fulltext", "fields": [field]}
        if min_length is not None:
            data["minLength"] = min_length
        return self._add_index(collection, data)

    def delete_index(self, collection: str, index_id: str) -> bool:
        """Delete an index, by full id or by its number."""
        try:
            self._toolbox.driver.delete_index(collection, index_id.split("/")[-1])
        except Exception as e:
            raise self._error(e) from e
        finally:
            self._index_cache.pop(collection, None)
        return True

    def _add_index(self, collection: str, data: Dict[str, Any]) -> str:
        try:
            result = self._toolbox.driver.add_index(collection, data)
        except Exception as e:
            raise self._error(e) from e
        finally:
            self._index_cache.pop(collection, None)

        logger.debug(f"Created {data['type']} index {result['id']} on '{collection}'")
        return result["id"]

    @staticmethod
    def _full_index_id(collection: str, index_id: str) -> str:
        if "/" in index_id:
            return index_id
        return f"{collection}/{index_id}"

    def _error(self, error: Exception) -> CollectionManagerError:
        normalised = self._toolbox.normalise_driver_exceptions(error)
        return CollectionManagerError(normalised["message"], normalised["code"])
