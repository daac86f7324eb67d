"""Raw AQL queries."""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from arangopod.db import aql
from arangopod.exceptions import QueryError

from .transaction import Action

if TYPE_CHECKING:
    from .toolbox import Toolbox


class Query:
    """Runs caller written AQL and returns the raw rows.

    Inside a transaction ``get_all`` and ``get_one`` are buffered. Declare
    the collections they read with ``add_read_collection``.
    """

    def __init__(self, toolbox: "Toolbox") -> None:
        self._toolbox = toolbox

    def get_all(self, query: str, params: Optional[Dict[str, Any]] = None) -> Optional[List[Any]]:
        """Return every row of a query."""
        params = dict(params or {})
        mode = self._toolbox.transaction_manager.mode()

        if mode.is_buffered:
            mode.transaction_manager.add_command(
                aql.query_all_statement(query, params), Action.QUERY_GET_ALL
            )
            return None

        return self._execute(self._toolbox.driver.execute_all, query, params)

    def get_one(self, query: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Return the first row of a query, or None."""
        params = dict(params or {})
        mode = self._toolbox.transaction_manager.mode()

        if mode.is_buffered:
            mode.transaction_manager.add_command(
                aql.query_one_statement(query, params), Action.QUERY_GET_ONE
            )
            return None

        return self._execute(self._toolbox.driver.execute_one, query, params)

    def explain(self, query: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Return the execution plan of a query. Never buffered."""
        return self._execute(self._toolbox.driver.explain, query, dict(params or {}))

    def _execute(self, method, query: str, params: Dict[str, Any]) -> Any:
        try:
            return method(query, params)
        except Exception as e:
            normalised = self._toolbox.normalise_driver_exceptions(e)
            raise QueryError(normalised["message"], normalised["code"]) from e
