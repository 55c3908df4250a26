"""
Migration runners apply pending schema migrations to a target database.
"""
import importlib
from typing import Callable, Protocol

from ..errors import ConfigurationError


class MigrationRunner(Protocol):
    """
    Applies all unapplied migrations, in version order, to a database.
    Raises on failure; partial progress is not reported.
    """

    def update(self, connection_string: str) -> None:
        ...


class CallableMigrationRunner:
    """
    Adapts a plain function taking a connection string into a MigrationRunner.
    """

    def __init__(self, func: Callable[[str], None]):
        self.func = func

    def update(self, connection_string: str) -> None:
        self.func(connection_string)


def load_runner(path: str) -> MigrationRunner:
    """
    Imports a migration runner from a 'module:attribute' path.

    The attribute may be an object with an update() method, a class whose
    instances have one, or a function taking the connection string.

    :param path: Import path such as 'myapp.migrations:upgrade'.
    :return: The runner.
    :raises ConfigurationError: If the path cannot be resolved.
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigurationError(f"Migration runner '{path}' must look like 'module:attribute'")

    try:
        module = importlib.import_module(module_name)
        target = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot load migration runner '{path}': {e}") from e

    if isinstance(target, type):
        target = target()
    if hasattr(target, "update"):
        return target
    if callable(target):
        return CallableMigrationRunner(target)
    raise ConfigurationError(f"Migration runner '{path}' is not callable")
