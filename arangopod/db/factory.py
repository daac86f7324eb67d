"""Driver factory with a registry of driver implementations."""

import os
from typing import Callable, Dict, Optional, Type

from arangopod.config import ConnectionConfig
from arangopod.exceptions import InvalidConfigurationError

from .driver import Driver

# Registry for driver implementations
_DRIVER_REGISTRY: Dict[str, Type[Driver]] = {}
# Registry for driver configuration functions
_DRIVER_CONFIGURATORS: Dict[str, Callable[[ConnectionConfig], Driver]] = {}
# Default driver name
_DEFAULT_DRIVER: str = "arango"


def register_driver(
    name: str,
    driver_class: Type[Driver],
    configurator: Optional[Callable[[ConnectionConfig], Driver]] = None,
    set_as_default: bool = False,
) -> None:
    """Register a driver implementation.

    Args:
        name: Driver type name to register
        driver_class: Class implementing the Driver contracts
        configurator: Optional function building the driver from a config
        set_as_default: Whether to use this driver by default

    Raises:
        InvalidConfigurationError: If the class is not a Driver or the name is
            already registered
    """
    if not (isinstance(driver_class, type) and issubclass(driver_class, Driver)):
        raise InvalidConfigurationError(
            f"Driver class {getattr(driver_class, '__name__', driver_class)} "
            "must inherit from Driver",
            details={"driver_class": repr(driver_class)},
        )

    if name in _DRIVER_REGISTRY:
        raise InvalidConfigurationError(
            f"Driver type '{name}' is already registered", details={"name": name}
        )

    _DRIVER_REGISTRY[name] = driver_class

    if configurator:
        _DRIVER_CONFIGURATORS[name] = configurator
    else:
        _DRIVER_CONFIGURATORS[name] = lambda config: driver_class(
            endpoint=config.endpoint,
            username=config.username,
            password=config.password,
            database=config.database,
        )

    if set_as_default:
        global _DEFAULT_DRIVER
        _DEFAULT_DRIVER = name


def unregister_driver(name: str) -> None:
    """Unregister a driver implementation."""
    _DRIVER_REGISTRY.pop(name, None)
    _DRIVER_CONFIGURATORS.pop(name, None)

    global _DEFAULT_DRIVER
    if _DEFAULT_DRIVER == name:
        _DEFAULT_DRIVER = "arango"


def get_default_driver_type() -> str:
    return _DEFAULT_DRIVER


def list_available_drivers() -> Dict[str, Type[Driver]]:
    """Get all registered driver types."""
    return _DRIVER_REGISTRY.copy()


def get_driver(
    config: ConnectionConfig, driver_type: Optional[str] = None
) -> Driver:
    """Build a driver for a connection.

    Args:
        config: Connection configuration
        driver_type: Registered driver name. Defaults to ``config.driver``,
            then the ARANGOPOD_DRIVER environment variable, then the default.

    Returns:
        Driver instance

    Raises:
        InvalidConfigurationError: If the type is unknown or the driver cannot
            be configured
    """
    if driver_type is None:
        driver_type = config.driver or os.getenv("ARANGOPOD_DRIVER", _DEFAULT_DRIVER)

    if driver_type not in _DRIVER_REGISTRY:
        available_types = ", ".join(sorted(_DRIVER_REGISTRY))
        raise InvalidConfigurationError(
            f"Unsupported driver type: '{driver_type}'. "
            f"Available types: {available_types}",
            details={"driver_type": driver_type, "available_types": available_types},
        )

    configurator = _DRIVER_CONFIGURATORS[driver_type]

    try:
        return configurator(config)
    except Exception as e:
        raise InvalidConfigurationError(
            f"Failed to configure driver '{driver_type}': {e}",
            details={"endpoint": config.endpoint, "database": config.database},
        ) from e


def _register_builtin_drivers() -> None:
    """Register built-in driver implementations."""
    from .arango import ArangoDriver

    register_driver("arango", ArangoDriver, set_as_default=True)


_register_builtin_drivers()
