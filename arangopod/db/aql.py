"""AQL and server-side JavaScript statement builders.

Everything that ends up as text sent to the server is built here, so the
finder, the graph manager and the transaction buffer agree on one format.
Caller supplied AQL fragments are inserted as-is; values always travel as
bind parameters.
"""

import json
from typing import Any, Dict, List, Optional, Tuple

from arangopod.exceptions import GraphError

DISTANCE_ATTRIBUTE = "_paradox_distance_parameter"
LABEL_ATTRIBUTE = "$label"

TRAVERSAL_DIRECTIONS = {
    "in": "INBOUND",
    "inbound": "INBOUND",
    "out": "OUTBOUND",
    "outbound": "OUTBOUND",
    "any": "ANY",
}

COMPARE_OPERATORS = ("==", "!=", "<", "<=", ">", ">=", "IN", "NOT IN", "LIKE", "=~", "!~")


def js_literal(value: Any) -> str:
    """Encode a value as a JavaScript literal."""
    return json.dumps(value)


def query_all_statement(query: str, bind_vars: Dict[str, Any]) -> str:
    """Statement returning every row of a query."""
    return f"db._query({js_literal(query)}, {js_literal(bind_vars)}).toArray();"


def query_one_statement(query: str, bind_vars: Dict[str, Any]) -> str:
    """Statement returning the first row of a query, or null."""
    return (
        "(function () { var rows = "
        f"db._query({js_literal(query)}, {js_literal(bind_vars)}).toArray(); "
        "return rows.length ? rows[0] : null; })();"
    )


def collection_expr(collection: str) -> str:
    return f"db._collection({js_literal(collection)})"


def graph_collection_expr(collection: str) -> str:
    return f"graph[{js_literal(collection)}]"


def result_ref(command_id: str, attribute: str = "_id") -> str:
    """Reference to an attribute of an earlier command's result."""
    return f"result.{command_id}.{attribute}"


def load_statement(collection_js: str, document_id: str) -> str:
    """Statement loading a document by id, or null when it does not exist."""
    handle = js_literal(document_id)
    return (
        f"(function () {{ var c = {collection_js}; "
        f"return c.exists({handle}) ? c.document({handle}) : null; }})();"
    )


def remove_statement(collection_js: str, handle_js: str) -> str:
    """Statement removing a document and evaluating to true."""
    return (
        f"(function () {{ {collection_js}.remove({handle_js}, {{overwrite: true}}); "
        "return true; })();"
    )


def query_prefix(
    placeholder: str, source: str, exclude_parameter: Optional[str] = None
) -> str:
    """Start of a finder query: the loop plus the optional self-exclusion filter."""
    prefix = f"FOR {placeholder} IN {source}"
    if exclude_parameter:
        prefix += f" FILTER {placeholder}._id != @{exclude_parameter}"
    return prefix


def finder_query(
    placeholder: str,
    source: str,
    aql: str = "",
    filtered: bool = True,
    exclude_parameter: Optional[str] = None,
    limit_one: bool = False,
    limit_parameter: Optional[str] = None,
) -> str:
    """Assemble a finder query.

    Args:
        placeholder: Loop variable name
        source: Collection bind parameter or geo/fulltext function call
        aql: Caller supplied fragment
        filtered: Whether the fragment is a FILTER condition. Otherwise it is
            appended verbatim (SORT, LIMIT, ...). An empty fragment is
            omitted either way.
        exclude_parameter: Bind parameter holding an id to exclude
        limit_one: Append ``LIMIT 1``
        limit_parameter: Bind parameter holding a row limit to append
    """
    parts = [query_prefix(placeholder, source, exclude_parameter)]
    if aql:
        parts.append(f"FILTER {aql}" if filtered else aql)
    if limit_one:
        parts.append("LIMIT 1")
    elif limit_parameter:
        parts.append(f"LIMIT @{limit_parameter}")
    parts.append(f"RETURN {placeholder}")
    return " ".join(parts)


def near_source(
    collection_param: str, latitude_param: str, longitude_param: str, limit_param: str
) -> str:
    return (
        f"NEAR(@{collection_param}, @{latitude_param}, @{longitude_param}, "
        f"@{limit_param}, '{DISTANCE_ATTRIBUTE}')"
    )


def within_source(
    collection_param: str, latitude_param: str, longitude_param: str, radius_param: str
) -> str:
    return (
        f"WITHIN(@{collection_param}, @{latitude_param}, @{longitude_param}, "
        f"@{radius_param}, '{DISTANCE_ATTRIBUTE}')"
    )


def fulltext_source(collection_param: str, attribute_param: str, query_param: str) -> str:
    return f"FULLTEXT(@{collection_param}, @{attribute_param}, @{query_param})"


def traversal_query(
    graph: str, vertex_id: str, filter: Dict[str, Any], target: str = "edge"
) -> Tuple[str, Dict[str, Any]]:
    """Build a one-step graph traversal.

    Args:
        graph: Graph name
        vertex_id: Start vertex id
        filter: Filter structure with optional ``direction``, ``labels`` and
            ``properties`` entries
        target: ``"edge"`` to return edges, ``"vertex"`` for neighbours

    Returns:
        Tuple of query string and bind variables

    Raises:
        GraphError: For an unknown direction or comparison operator
    """
    direction = (filter.get("direction") or "any").lower()
    if direction not in TRAVERSAL_DIRECTIONS:
        raise GraphError(f"Unknown traversal direction '{direction}'.")

    lines: List[str] = [
        f"FOR v, e IN 1..1 {TRAVERSAL_DIRECTIONS[direction]} @start GRAPH @graph"
    ]
    bind_vars: Dict[str, Any] = {"start": vertex_id, "graph": graph}

    labels = filter.get("labels")
    if labels:
        lines.append(f"FILTER e.`{LABEL_ATTRIBUTE}` IN @labels")
        bind_vars["labels"] = list(labels)

    for index, prop in enumerate(filter.get("properties") or []):
        operator = str(prop.get("compare", prop.get("compareOperator", "=="))).upper()
        if operator not in COMPARE_OPERATORS:
            raise GraphError(f"Unsupported comparison operator '{operator}'.")
        lines.append(f"FILTER e[@p{index}key] {operator} @p{index}value")
        bind_vars[f"p{index}key"] = prop["key"]
        bind_vars[f"p{index}value"] = prop.get("value")

    lines.append("RETURN DISTINCT v" if target == "vertex" else "RETURN e")
    return " ".join(lines), bind_vars
