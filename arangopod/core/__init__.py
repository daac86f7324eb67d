"""Core pods, models and the event bus."""

from .entities import Document, Edge, EndpointRef, PodKind, Vertex
from .events import Event, Observable, Observer
from .model import (
    DefaultModelFormatter,
    GenericModel,
    MappedModelFormatter,
    Model,
    ModelFormatter,
)

__all__ = [
    "DefaultModelFormatter",
    "Document",
    "Edge",
    "EndpointRef",
    "Event",
    "GenericModel",
    "MappedModelFormatter",
    "Model",
    "ModelFormatter",
    "Observable",
    "Observer",
    "PodKind",
    "Vertex",
]
