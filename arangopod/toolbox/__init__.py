"""Managers operating on the pods of one connection."""

from .collection_manager import CollectionManager
from .execution import IMMEDIATE, Buffered, ExecutionMode, Immediate
from .finder import Finder
from .graph_manager import GraphManager
from .pod_manager import PodManager
from .query import Query
from .toolbox import Toolbox
from .transaction import Action, Command, TransactionManager

__all__ = [
    "Action",
    "Buffered",
    "CollectionManager",
    "Command",
    "ExecutionMode",
    "Finder",
    "GraphManager",
    "IMMEDIATE",
    "Immediate",
    "PodManager",
    "Query",
    "Toolbox",
    "TransactionManager",
]
