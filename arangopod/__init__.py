"""
arangopod - Object-document mapping for ArangoDB.

arangopod wraps documents, vertices and edges of an ArangoDB database in
models with lifecycle hooks. Stores, deletes, loads and queries run either
immediately or, inside a transaction, as statements of one server-side
scripted transaction whose results are converted back to models on commit.

Main Exports (Import from top level):
    Entry points:
        - Client: Facade over named connections
        - Toolbox: Driver and managers of one connection
        - ConnectionConfig: Connection settings

    Models and pods:
        - Model: Base class for user models
        - GenericModel: Model used when no custom model is mapped
        - MappedModelFormatter: Maps pod types to model classes
        - Document, Vertex, Edge: Pods

    Drivers:
        - Driver: Collaborator contracts of a driver backend
        - ArangoDriver: python-arango backend
        - register_driver / get_driver: Driver registry

    Debugging:
        - set_debug: Trace driver traffic through logging

Example:
    >>> from arangopod import Client
    >>>
    >>> client = Client("http://localhost:8529", "root", "", graph="social")
    >>> ada = client.dispense("vertex")
    >>> ada.set("name", "Ada")
    >>> client.store(ada)
"""

__version__ = "0.1.0"

# Modules
from . import exceptions

# Entry points
from .client import Client
from .config import ConnectionConfig

# Models and pods
from .core import (
    DefaultModelFormatter,
    Document,
    Edge,
    GenericModel,
    MappedModelFormatter,
    Model,
    ModelFormatter,
    Vertex,
)

# Drivers
from .db import ArangoDriver, Driver, get_driver, register_driver
from .log import set_debug
from .toolbox import Toolbox

__all__ = [
    # Version
    "__version__",
    # Entry points
    "Client",
    "Toolbox",
    "ConnectionConfig",
    # Models and pods
    "Model",
    "GenericModel",
    "ModelFormatter",
    "DefaultModelFormatter",
    "MappedModelFormatter",
    "Document",
    "Vertex",
    "Edge",
    # Drivers
    "Driver",
    "ArangoDriver",
    "get_driver",
    "register_driver",
    # Debugging
    "set_debug",
    # Modules
    "exceptions",
]
