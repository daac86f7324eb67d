"""Test suite for connection configuration."""

from arangopod.config import ConnectionConfig


class TestConnectionConfig:
    """Test ConnectionConfig defaults and environment loading."""

    def test_defaults(self):
        """Test a local server without a graph."""
        config = ConnectionConfig()

        assert config.endpoint == "http://localhost:8529"
        assert config.username == "root"
        assert config.database == "_system"
        assert config.driver == "arango"
        assert not config.is_graph

    def test_from_env(self, monkeypatch):
        """Test values are read from ARANGOPOD_* variables."""
        monkeypatch.setenv("ARANGOPOD_ENDPOINT", "http://db:8529")
        monkeypatch.setenv("ARANGOPOD_PASSWORD", "secret")
        monkeypatch.setenv("ARANGOPOD_GRAPH", "social")
        monkeypatch.setenv("ARANGOPOD_DEBUG", "TRUE")

        config = ConnectionConfig.from_env()

        assert config.endpoint == "http://db:8529"
        assert config.password == "secret"
        assert config.graph == "social"
        assert config.is_graph
        assert config.debug is True

    def test_from_env_defaults(self, monkeypatch):
        """Test unset variables fall back to the defaults."""
        for name in ("ENDPOINT", "USERNAME", "PASSWORD", "DATABASE", "GRAPH", "DEBUG", "DRIVER"):
            monkeypatch.delenv(f"ARANGOPOD_{name}", raising=False)

        assert ConnectionConfig.from_env() == ConnectionConfig()

    def test_overrides(self, monkeypatch):
        """Test explicit values win and None overrides are ignored."""
        monkeypatch.setenv("ARANGOPOD_DATABASE", "from_env")
        monkeypatch.setenv("ARANGOPOD_USERNAME", "env_user")

        config = ConnectionConfig.from_env(database="explicit", username=None)

        assert config.database == "explicit"
        assert config.username == "env_user"
