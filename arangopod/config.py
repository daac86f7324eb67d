"""Connection configuration for arangopod.

Settings can be given explicitly or read from ``ARANGOPOD_*`` environment
variables.
"""

import os
from typing import Optional

from pydantic import BaseModel, Field


class ConnectionConfig(BaseModel):
    """Configuration for one connection to an ArangoDB server.

    Attributes:
        endpoint: Server URL
        username: User for basic authentication
        password: Password for basic authentication
        database: Database name
        graph: Graph name. When set, the connection manages a graph and only
            the pod types ``vertex`` and ``edge`` are allowed.
        debug: Enable request/response tracing through logging
        driver: Registered driver type used to build the collaborators
    """

    endpoint: str = "http://localhost:8529"
    username: str = "root"
    password: str = ""
    database: str = "_system"
    graph: Optional[str] = None
    debug: bool = False
    driver: str = Field(default="arango")

    @property
    def is_graph(self) -> bool:
        return bool(self.graph)

    @classmethod
    def from_env(cls, **overrides) -> "ConnectionConfig":
        """Build a configuration from environment variables.

        Explicit keyword arguments take precedence over the environment.

        Environment Variables:
            ARANGOPOD_ENDPOINT: Server URL (default: "http://localhost:8529")
            ARANGOPOD_USERNAME: Username (default: "root")
            ARANGOPOD_PASSWORD: Password (default: "")
            ARANGOPOD_DATABASE: Database name (default: "_system")
            ARANGOPOD_GRAPH: Graph name (default: unset)
            ARANGOPOD_DEBUG: "true" to enable tracing (default: "false")
            ARANGOPOD_DRIVER: Driver type (default: "arango")
        """
        values = {
            "endpoint": os.getenv("ARANGOPOD_ENDPOINT", "http://localhost:8529"),
            "username": os.getenv("ARANGOPOD_USERNAME", "root"),
            "password": os.getenv("ARANGOPOD_PASSWORD", ""),
            "database": os.getenv("ARANGOPOD_DATABASE", "_system"),
            "graph": os.getenv("ARANGOPOD_GRAPH") or None,
            "debug": os.getenv("ARANGOPOD_DEBUG", "false").lower() == "true",
            "driver": os.getenv("ARANGOPOD_DRIVER", "arango"),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
