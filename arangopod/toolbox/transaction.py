"""Transaction manager.

Manager operations issued while a transaction is open (and not paused) are
recorded as JavaScript statements. ``commit`` wraps them in one function,
runs it as a single server-side transaction, then converts every statement's
raw result the same way the manager would have converted it immediately.
"""

import logging
import random
import string
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from arangopod.db.aql import js_literal
from arangopod.exceptions import ArangoPodError, TransactionError

from .execution import IMMEDIATE, Buffered, ExecutionMode

if TYPE_CHECKING:
    from .toolbox import Toolbox

logger = logging.getLogger(__name__)

ID_ALPHABET = string.ascii_lowercase
ID_LENGTH = 7


class Action(str, Enum):
    """Kind of a buffered command. Selects how its result is converted."""

    POD_STORE = "PodManager:store"
    POD_DELETE = "PodManager:delete"
    POD_LOAD = "PodManager:load"
    QUERY_GET_ONE = "Query:getOne"
    QUERY_GET_ALL = "Query:getAll"
    FIND = "Finder:find"
    FIND_ALL = "Finder:findAll"
    FIND_NEAR = "Finder:findNear"
    FIND_ALL_NEAR = "Finder:findAllNear"
    FIND_WITHIN = "Finder:findWithin"
    FIND_ALL_WITHIN = "Finder:findAllWithin"
    SEARCH = "Finder:search"
    SEARCH_ALL = "Finder:searchAll"
    FIND_ONE = "Finder:findOne"
    ANY = "Finder:any"
    FIND_ONE_NEAR = "Finder:findOneNear"
    FIND_ONE_WITHIN = "Finder:findOneWithin"
    SEARCH_FOR_ONE = "Finder:searchForOne"
    GET_INBOUND_EDGES = "GraphManager:getInboundEdges"
    GET_OUTBOUND_EDGES = "GraphManager:getOutboundEdges"
    GET_EDGES = "GraphManager:getEdges"
    GET_NEIGHBOURS = "GraphManager:getNeighbours"

    @classmethod
    def coerce(cls, tag: Any) -> Any:
        """Return the Action for a tag, or the tag itself when unknown."""
        if isinstance(tag, cls):
            return tag
        try:
            return cls(tag)
        except ValueError:
            return tag


class Command(BaseModel):
    """A statement recorded in an open transaction.

    Attributes:
        id: Name of the result slot in the transaction script
        script: JavaScript statement
        action: Action used to convert the statement result
        associated_object: Model the statement operates on, if any
        is_graph: Whether the statement needs the graph handle
        aux_data: Extra data needed to convert the result
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    script: str
    action: Any
    associated_object: Any = None
    is_graph: bool = False
    aux_data: Dict[str, Any] = Field(default_factory=dict)


class TransactionManager:
    """Buffers manager operations into one scripted transaction."""

    def __init__(self, toolbox: "Toolbox") -> None:
        self._toolbox = toolbox
        self._active = False
        self._paused = True
        self._read_collections: List[str] = []
        self._write_collections: List[str] = []
        self._commands: Dict[str, Command] = {}
        self._registered_results: Dict[str, str] = {}
        self._replayers: Dict[Action, Callable[[Command, Any], Any]] = {
            Action.POD_STORE: self._replay_store,
            Action.POD_DELETE: self._replay_delete,
            Action.POD_LOAD: self._replay_load,
            Action.QUERY_GET_ONE: self._replay_passthrough,
            Action.QUERY_GET_ALL: self._replay_passthrough,
            Action.FIND: self._replay_find_many,
            Action.FIND_ALL: self._replay_find_many,
            Action.FIND_NEAR: self._replay_find_many,
            Action.FIND_ALL_NEAR: self._replay_find_many,
            Action.FIND_WITHIN: self._replay_find_many,
            Action.FIND_ALL_WITHIN: self._replay_find_many,
            Action.SEARCH: self._replay_find_many,
            Action.SEARCH_ALL: self._replay_find_many,
            Action.FIND_ONE: self._replay_find_one,
            Action.ANY: self._replay_find_one,
            Action.FIND_ONE_NEAR: self._replay_find_one,
            Action.FIND_ONE_WITHIN: self._replay_find_one,
            Action.SEARCH_FOR_ONE: self._replay_find_one,
            Action.GET_INBOUND_EDGES: self._replay_edges,
            Action.GET_OUTBOUND_EDGES: self._replay_edges,
            Action.GET_EDGES: self._replay_edges,
            Action.GET_NEIGHBOURS: self._replay_neighbours,
        }

    # State

    def begin(self) -> bool:
        """Open a transaction.

        Raises:
            TransactionError: If a transaction is already open
        """
        if self._active:
            raise TransactionError("An active transaction already exists.")

        self._active = True
        self._paused = False
        logger.debug("Transaction started")
        return True

    def cancel(self) -> bool:
        """Discard the open transaction without executing anything."""
        if not self._active:
            raise TransactionError("There is no active transaction to cancel.")

        logger.debug(f"Transaction cancelled, discarding {len(self._commands)} commands")
        self._clear()
        return True

    def pause(self) -> None:
        """Run subsequent operations immediately instead of buffering them."""
        self._require_active()
        if self._paused:
            raise TransactionError("The transaction is already paused.")
        self._paused = True

    def resume(self) -> None:
        """Buffer subsequent operations again."""
        self._require_active()
        if not self._paused:
            raise TransactionError("The transaction is not paused.")
        self._paused = False

    def transaction_started(self) -> bool:
        return self._active

    def has_transaction(self) -> bool:
        """Whether operations are currently buffered."""
        return self._active and not self._paused

    def mode(self) -> ExecutionMode:
        """Execution mode for an operation issued now."""
        return Buffered(self) if self.has_transaction() else IMMEDIATE

    def _require_active(self) -> None:
        if not self._active:
            raise TransactionError("There is no active transaction.")

    def _clear(self) -> None:
        self._active = False
        self._paused = True
        self._read_collections = []
        self._write_collections = []
        self._commands = {}
        self._registered_results = {}

    # Buffer

    def add_read_collection(self, collection: str) -> None:
        """Lock a collection for reading when the transaction runs."""
        self._require_active()
        if collection not in self._read_collections:
            self._read_collections.append(collection)

    def add_write_collection(self, collection: str) -> None:
        """Lock a collection for writing when the transaction runs."""
        self._require_active()
        if collection not in self._write_collections:
            self._write_collections.append(collection)

    def get_read_collections(self) -> List[str]:
        return list(self._read_collections)

    def get_write_collections(self) -> List[str]:
        return list(self._write_collections)

    def get_commands(self) -> Dict[str, Command]:
        return dict(self._commands)

    def get_registered_results(self) -> Dict[str, str]:
        return dict(self._registered_results)

    def add_command(
        self,
        script: str,
        action: Any,
        associated_object: Any = None,
        is_graph: bool = False,
        aux_data: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Record a statement.

        Args:
            script: JavaScript statement
            action: Action (or its tag) used to convert the result
            associated_object: Model the statement operates on
            is_graph: Whether the statement needs the graph handle
            aux_data: Extra data for result conversion

        Returns:
            The command id
        """
        self._require_active()

        command_id = self._random_id()
        self._commands[command_id] = Command(
            id=command_id,
            script=script,
            action=Action.coerce(action),
            associated_object=associated_object,
            is_graph=is_graph,
            aux_data=aux_data or {},
        )
        return command_id

    def register_result(self, name: str) -> bool:
        """Return the result of the last recorded command under ``name``."""
        self._require_active()
        if not self._commands:
            raise TransactionError("There are no commands for this transaction.")

        last_id = next(reversed(self._commands))
        self._registered_results[last_id] = name
        return True

    def search_commands_by_action_and_object(
        self, action: Any, obj: Any
    ) -> Optional[Dict[str, Any]]:
        """Find the most recent command with this action and object.

        Returns:
            ``{"position": index from the start, "id": command id}`` or None
        """
        action = Action.coerce(action)
        commands = list(self._commands.values())
        for position in range(len(commands) - 1, -1, -1):
            command = commands[position]
            if command.action == action and command.associated_object is obj:
                return {"position": position, "id": command.id}
        return None

    def _random_id(self) -> str:
        command_id = ""
        while len(command_id) < ID_LENGTH or command_id in self._commands:
            command_id += random.choice(ID_ALPHABET)
        return command_id

    # Execution

    def build_script(self) -> str:
        """Wrap the recorded statements into one transaction function."""
        parts = ['function (params) { var db = require("@arangodb").db; ']

        if any(command.is_graph for command in self._commands.values()):
            graph = js_literal(self._toolbox.graph)
            parts.append(f'var graph = require("@arangodb/general-graph")._graph({graph}); ')

        parts.append("var result = {}; ")
        for command_id, command in self._commands.items():
            parts.append(f"result.{command_id} = {command.script} ")
        parts.append("return result; }")
        return "".join(parts)

    def commit(self) -> Dict[str, Any]:
        """Execute the transaction and convert the results.

        Returns:
            Converted results keyed by their registered names

        Raises:
            TransactionError: If no transaction is open, nothing was recorded,
                the server rejects the transaction, or a command has an
                unknown action
        """
        if not self._active:
            raise TransactionError("There is no active transaction to commit.")
        if not self._commands:
            raise TransactionError("There is no transaction operations to commit.")

        script = self.build_script()
        logger.debug(f"Committing transaction with {len(self._commands)} commands")

        try:
            results = self.execute_transaction(
                script, self._read_collections, self._write_collections
            )
            return self._process_results(results or {})
        finally:
            self._clear()

    def execute_transaction(
        self,
        script: str,
        read_collections: Optional[List[str]] = None,
        write_collections: Optional[List[str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Run a raw transaction function on the server.

        Raises:
            TransactionError: With the normalised driver error
        """
        try:
            return self._toolbox.driver.run(
                script, list(read_collections or []), list(write_collections or []), params
            )
        except ArangoPodError:
            raise
        except Exception as e:
            normalised = self._toolbox.normalise_driver_exceptions(e)
            raise TransactionError(normalised["message"], normalised["code"]) from e

    def _process_results(self, results: Dict[str, Any]) -> Dict[str, Any]:
        processed_results: Dict[str, Any] = {}

        for command_id, command in self._commands.items():
            replay = self._replayers.get(command.action)
            if replay is None:
                raise TransactionError(
                    f"Invalid or unimplemented action ({command.action}) while "
                    "processing the transaction results.",
                    details={"command": command_id},
                )

            processed = replay(command, results.get(command_id))

            if command_id in self._registered_results:
                processed_results[self._registered_results[command_id]] = processed

        return processed_results

    # Result conversion

    def _replay_store(self, command: Command, result: Any) -> Any:
        if command.aux_data.get("intermediate"):
            return result
        pod = command.associated_object.get_pod()
        return self._toolbox.pod_manager.process_store_result(
            pod, result["_rev"], result["_id"]
        )

    def _replay_delete(self, command: Command, result: Any) -> bool:
        return self._toolbox.pod_manager.process_delete_result(
            command.associated_object.get_pod()
        )

    def _replay_load(self, command: Command, result: Any) -> Any:
        if not result:
            return None
        return self._toolbox.pod_manager.convert_dict_to_pod(
            command.aux_data["type"], result
        )

    def _replay_passthrough(self, command: Command, result: Any) -> Any:
        return result

    def _replay_find_many(self, command: Command, result: Any) -> Dict[Any, Any]:
        if not result:
            return {}
        return self._toolbox.finder.convert_to_pods(
            command.aux_data["type"], result, command.aux_data.get("coordinates")
        )

    def _replay_find_one(self, command: Command, result: Any) -> Any:
        if not result:
            return None
        converted = self._toolbox.finder.convert_to_pods(
            command.aux_data["type"], [result], command.aux_data.get("coordinates")
        )
        return next(iter(converted.values()), None)

    def _replay_edges(self, command: Command, result: Any) -> Dict[Any, Any]:
        if not result:
            return {}
        return self._toolbox.graph_manager.convert_to_pods("edge", result)

    def _replay_neighbours(self, command: Command, result: Any) -> Dict[Any, Any]:
        if not result:
            return {}
        return self._toolbox.graph_manager.convert_to_pods("vertex", result)
