"""Client facade over named connections.

Every operation goes to the toolbox of the current connection::

    client = Client("http://localhost:8529", "root", "", graph="social")
    ada = client.dispense("vertex")
    ada.set("name", "Ada")
    client.store(ada)

    client.add_connection("archive", "http://archive:8529", "root", "")
    client.use_connection("archive")
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from .config import ConnectionConfig
from .core.model import DefaultModelFormatter, Model, ModelFormatter
from .db.driver import Driver
from .exceptions import ClientError
from .log import set_debug
from .toolbox import Toolbox

logger = logging.getLogger(__name__)

DEFAULT_CONNECTION = "default"


class Client:
    """Entry point holding one toolbox per named connection.

    The connection given to the constructor is registered as ``default``
    and selected.
    """

    def __init__(
        self,
        endpoint: str,
        username: str,
        password: str,
        graph: Optional[str] = None,
        database: str = "_system",
        driver: Optional[Driver] = None,
    ) -> None:
        self._toolboxes: Dict[str, Toolbox] = {}
        self._current_connection: Optional[str] = None
        self._model_formatter: ModelFormatter = DefaultModelFormatter()
        self._debug = False

        self.add_connection(
            DEFAULT_CONNECTION, endpoint, username, password, graph, database, driver
        )
        self.use_connection(DEFAULT_CONNECTION)

    @classmethod
    def from_config(cls, config: ConnectionConfig, driver: Optional[Driver] = None) -> "Client":
        """Build a client whose default connection uses ``config``."""
        client = cls(
            config.endpoint,
            config.username,
            config.password,
            config.graph,
            config.database,
            driver,
        )
        if config.debug:
            client.debug(True)
        return client

    # Connections

    def add_connection(
        self,
        name: str,
        endpoint: str,
        username: str,
        password: str,
        graph: Optional[str] = None,
        database: str = "_system",
        driver: Optional[Driver] = None,
    ) -> None:
        """Register a connection. An existing connection of that name is replaced."""
        config = ConnectionConfig(
            endpoint=endpoint,
            username=username,
            password=password,
            database=database,
            graph=graph,
            debug=self._debug,
        )
        self._toolboxes[name] = Toolbox(config, driver, self._model_formatter)
        logger.debug(f"Registered connection '{name}'")

    def use_connection(self, name: str) -> None:
        """Select the connection used by every following call.

        Raises:
            ClientError: If no connection has that name
        """
        if name not in self._toolboxes:
            raise ClientError(
                f"The connection ({name}) you are trying to use is not registered "
                "with the client.",
                details={"connection": name},
            )
        self._current_connection = name

    def get_current_connection(self) -> Optional[str]:
        return self._current_connection

    def get_toolbox(self, name: str = DEFAULT_CONNECTION) -> Toolbox:
        """Toolbox of a connection.

        Raises:
            ClientError: If no connection has that name
        """
        if name not in self._toolboxes:
            raise ClientError(
                f"The toolbox for connection ({name}) does not exist! "
                "Is the connection added to the client?",
                details={"connection": name},
            )
        return self._toolboxes[name]

    def set_model_formatter(self, formatter: ModelFormatter) -> None:
        """Use ``formatter`` for every current and future connection."""
        self._model_formatter = formatter
        for toolbox in self._toolboxes.values():
            toolbox.set_model_formatter(formatter)

    def _toolbox(self) -> Toolbox:
        return self.get_toolbox(self._current_connection)

    # Pods

    def dispense(self, pod_type: str, label: Optional[str] = None) -> Model:
        return self._toolbox().pod_manager.dispense(pod_type, label)

    def store(self, model: Model) -> Optional[str]:
        return self._toolbox().pod_manager.store(model)

    def delete(self, model: Model) -> Optional[bool]:
        return self._toolbox().pod_manager.delete(model)

    def load(self, pod_type: str, pod_id: str) -> Optional[Model]:
        return self._toolbox().pod_manager.load(pod_type, pod_id)

    # Raw queries

    def get_all(self, query: str, params: Optional[Dict[str, Any]] = None):
        return self._toolbox().query.get_all(query, params)

    def get_one(self, query: str, params: Optional[Dict[str, Any]] = None):
        return self._toolbox().query.get_one(query, params)

    def explain(self, query: str, params: Optional[Dict[str, Any]] = None):
        return self._toolbox().query.explain(query, params)

    # Finder

    def find(self, pod_type: str, aql: str, params: Optional[Dict[str, Any]] = None, placeholder: str = "doc"):
        return self._toolbox().finder.find(pod_type, aql, params, placeholder)

    def find_all(self, pod_type: str, aql: str = "", params: Optional[Dict[str, Any]] = None, placeholder: str = "doc"):
        return self._toolbox().finder.find_all(pod_type, aql, params, placeholder)

    def find_one(self, pod_type: str, aql: str, params: Optional[Dict[str, Any]] = None, placeholder: str = "doc"):
        return self._toolbox().finder.find_one(pod_type, aql, params, placeholder)

    def any(self, pod_type: str) -> Optional[Model]:
        return self._toolbox().finder.any(pod_type)

    def find_near(
        self,
        pod_type: str,
        reference: Any,
        aql: str,
        params: Optional[Dict[str, Any]] = None,
        limit: int = 100,
        placeholder: str = "doc",
    ):
        return self._toolbox().finder.find_near(pod_type, reference, aql, params, limit, placeholder)

    def find_all_near(
        self,
        pod_type: str,
        reference: Any,
        aql: str = "",
        params: Optional[Dict[str, Any]] = None,
        limit: int = 100,
        placeholder: str = "doc",
    ):
        return self._toolbox().finder.find_all_near(
            pod_type, reference, aql, params, limit, placeholder
        )

    def find_one_near(
        self,
        pod_type: str,
        reference: Any,
        aql: str,
        params: Optional[Dict[str, Any]] = None,
        placeholder: str = "doc",
    ):
        return self._toolbox().finder.find_one_near(pod_type, reference, aql, params, placeholder)

    def find_within(
        self,
        pod_type: str,
        reference: Any,
        radius: float,
        aql: str,
        params: Optional[Dict[str, Any]] = None,
        placeholder: str = "doc",
    ):
        return self._toolbox().finder.find_within(
            pod_type, reference, radius, aql, params, placeholder
        )

    def find_all_within(
        self,
        pod_type: str,
        reference: Any,
        radius: float,
        aql: str = "",
        params: Optional[Dict[str, Any]] = None,
        placeholder: str = "doc",
    ):
        return self._toolbox().finder.find_all_within(
            pod_type, reference, radius, aql, params, placeholder
        )

    def find_one_within(
        self,
        pod_type: str,
        reference: Any,
        radius: float,
        aql: str,
        params: Optional[Dict[str, Any]] = None,
        placeholder: str = "doc",
    ):
        return self._toolbox().finder.find_one_within(
            pod_type, reference, radius, aql, params, placeholder
        )

    def search(
        self,
        pod_type: str,
        attribute: str,
        query: str,
        aql: str,
        params: Optional[Dict[str, Any]] = None,
        placeholder: str = "doc",
    ):
        return self._toolbox().finder.search(pod_type, attribute, query, aql, params, placeholder)

    def search_all(
        self,
        pod_type: str,
        attribute: str,
        query: str,
        aql: str = "",
        params: Optional[Dict[str, Any]] = None,
        placeholder: str = "doc",
    ):
        return self._toolbox().finder.search_all(
            pod_type, attribute, query, aql, params, placeholder
        )

    def search_for_one(
        self,
        pod_type: str,
        attribute: str,
        query: str,
        aql: str,
        params: Optional[Dict[str, Any]] = None,
        placeholder: str = "doc",
    ):
        return self._toolbox().finder.search_for_one(
            pod_type, attribute, query, aql, params, placeholder
        )

    # Transactions

    def begin(self) -> bool:
        return self._toolbox().transaction_manager.begin()

    def commit(self) -> Dict[str, Any]:
        return self._toolbox().transaction_manager.commit()

    def cancel(self) -> bool:
        return self._toolbox().transaction_manager.cancel()

    def pause(self) -> None:
        self._toolbox().transaction_manager.pause()

    def resume(self) -> None:
        self._toolbox().transaction_manager.resume()

    def register_result(self, name: str) -> bool:
        return self._toolbox().transaction_manager.register_result(name)

    def add_read_collection(self, collection: str) -> None:
        self._toolbox().transaction_manager.add_read_collection(collection)

    def add_write_collection(self, collection: str) -> None:
        self._toolbox().transaction_manager.add_write_collection(collection)

    def execute_transaction(
        self,
        script: str,
        read_collections: Optional[List[str]] = None,
        write_collections: Optional[List[str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        return self._toolbox().transaction_manager.execute_transaction(
            script, read_collections, write_collections, params
        )

    # Indexes

    def list_indices(self, collection: str, include_info: bool = False):
        return self._toolbox().collection_manager.list_indices(collection, include_info)

    def create_geo_index(
        self, collection: str, fields: Union[str, Sequence[str]], geo_json: bool = False
    ) -> str:
        return self._toolbox().collection_manager.create_geo_index(collection, fields, geo_json)

    def create_fulltext_index(
        self, collection: str, field: str, min_length: Optional[int] = None
    ) -> str:
        return self._toolbox().collection_manager.create_fulltext_index(
            collection, field, min_length
        )

    def delete_index(self, collection: str, index_id: str) -> bool:
        return self._toolbox().collection_manager.delete_index(collection, index_id)

    def get_index_info(self, collection: str, index_id: str) -> Optional[Dict[str, Any]]:
        return self._toolbox().collection_manager.get_index_info(collection, index_id)

    # Debugging

    def debug(self, value: bool) -> None:
        """Switch debug tracing of driver traffic on or off."""
        self._debug = bool(value)
        set_debug(self._debug)
