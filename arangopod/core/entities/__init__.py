"""Pod entities."""

from .document import Document, PodKind
from .edge import Edge, EndpointRef
from .vertex import Vertex

__all__ = ["Document", "Edge", "EndpointRef", "PodKind", "Vertex"]
