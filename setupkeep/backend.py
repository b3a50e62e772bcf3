"""
Pluggable config store factory.

Creates the key-value store a manager persists into, based on configuration.
``sqlite`` (the default) is built in. A store opened from a config file must
outlive the process, so there is no built-in in-memory backend here.
External backends register via the ``setupkeep.backends`` entry point group.

External backend packages provide a factory function::

    def create_store(config: StoreConfig) -> KeyValueStoreProtocol:
        ...

and register it in their pyproject.toml::

    [project.entry-points."setupkeep.backends"]
    my-backend = "my_package.backend:create_store"
"""

from .config import StoreConfig
from .config_store import SqliteConfigStore
from .protocol import KeyValueStoreProtocol


def create_store(config: StoreConfig) -> KeyValueStoreProtocol:
    """Create the config store named by ``config.backend``."""
    if config.backend == "sqlite":
        return SqliteConfigStore(config.db_path)
    return _load_backend(config.backend, config)


def _load_backend(name: str, config: StoreConfig) -> KeyValueStoreProtocol:
    """Load a backend by entry point name."""
    from importlib.metadata import entry_points

    eps = entry_points(group="setupkeep.backends")
    for ep in eps:
        if ep.name == name:
            factory = ep.load()
            return factory(config)

    available = [ep.name for ep in eps]
    if available:
        raise ValueError(
            f"Unknown backend: {name!r}. Available: {available}"
        )
    raise ValueError(
        f"Unknown backend: {name!r}. No backends registered."
    )
