"""Toolbox: the driver, managers and settings of one connection."""

import logging
import random
import string
from typing import Any, Dict, Optional, Type

from arangopod.config import ConnectionConfig
from arangopod.core.model import DefaultModelFormatter, Model, ModelFormatter
from arangopod.db.driver import Driver, edge_collection_name, vertex_collection_name
from arangopod.db.factory import get_driver
from arangopod.exceptions import ToolboxError
from arangopod.log import set_debug

from .collection_manager import CollectionManager
from .finder import Finder
from .graph_manager import GraphManager
from .pod_manager import PodManager
from .query import Query
from .transaction import TransactionManager

logger = logging.getLogger(__name__)


class Toolbox:
    """Wires the driver and the managers of one connection.

    Usage:
        toolbox = Toolbox(ConnectionConfig(graph="social"))
        person = toolbox.pod_manager.dispense("vertex")
        person.set("name", "Ada")
        toolbox.pod_manager.store(person)

    Args:
        config: Connection settings
        driver: Driver to use. Built from the config through the driver
            registry when omitted.
        formatter: Maps pod types to model classes
    """

    def __init__(
        self,
        config: ConnectionConfig,
        driver: Optional[Driver] = None,
        formatter: Optional[ModelFormatter] = None,
    ) -> None:
        self.config = config
        self.graph: Optional[str] = config.graph
        self.driver: Driver = driver if driver is not None else get_driver(config)
        self._formatter: ModelFormatter = formatter or DefaultModelFormatter()

        if config.debug:
            set_debug(True)

        self.pod_manager = PodManager(self)
        self.finder = Finder(self)
        self.graph_manager = GraphManager(self)
        self.query = Query(self)
        self.collection_manager = CollectionManager(self)
        self.transaction_manager = TransactionManager(self)

        logger.debug(
            f"Toolbox ready for {config.endpoint}/{config.database}"
            + (f" on graph '{self.graph}'" if self.graph else "")
        )

    def is_graph(self) -> bool:
        return bool(self.graph)

    def get_vertex_collection_name(self) -> str:
        """Name of the vertex collection of the graph.

        Raises:
            ToolboxError: If the connection does not manage a graph
        """
        if not self.is_graph():
            raise ToolboxError(
                "get_vertex_collection_name() can only be used for connections that manage graphs."
            )
        return vertex_collection_name(self.graph)

    def get_edge_collection_name(self) -> str:
        """Name of the edge collection of the graph.

        Raises:
            ToolboxError: If the connection does not manage a graph
        """
        if not self.is_graph():
            raise ToolboxError(
                "get_edge_collection_name() can only be used for connections that manage graphs."
            )
        return edge_collection_name(self.graph)

    # Models

    def set_model_formatter(self, formatter: ModelFormatter) -> None:
        self._formatter = formatter

    def format_model(self, pod_type: str) -> Type[Any]:
        return self._formatter.format_model(pod_type, self.is_graph())

    def validate_pod(self, pod: Any) -> bool:
        """Check that a model or pod was created by this toolbox.

        Raises:
            ToolboxError: If it belongs to another toolbox
        """
        if isinstance(pod, Model):
            pod = pod.get_pod()

        if pod.get_toolbox() is not self:
            raise ToolboxError("The pod/model does not belong to this toolbox.")
        return True

    # Ids

    @staticmethod
    def parse_id(document_id: str) -> Dict[str, str]:
        """Split ``collection/key`` into its parts."""
        collection, _, key = document_id.partition("/")
        return {"collection": collection, "key": key}

    def parse_id_for_key(self, document_id: str) -> str:
        return self.parse_id(document_id)["key"]

    # Helpers

    def normalise_driver_exceptions(self, error: BaseException) -> Dict[str, Any]:
        """Message and code of a driver error."""
        return self.driver.error_normalizer.normalize(error)

    @staticmethod
    def generate_binding_parameter(name: str, params: Dict[str, Any]) -> str:
        """Return ``name``, extended with random letters until it is not a key
        of ``params``."""
        parameter = name
        while parameter in params:
            parameter += random.choice(string.ascii_lowercase)
        return parameter
