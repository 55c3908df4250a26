"""
Explicit state shared by the lifecycle hooks of one test session.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from ..ENGINE.cleanup import LeakTracker
from ..MANAGERS.test_database_container import TestDatabaseContainer


class LifecycleState(str, Enum):
    """Which kind of container, if any, is currently running."""

    NO_CONTAINER = "no_container"
    SHARED_CONTAINER_READY = "shared_container_ready"
    ISOLATED_CONTAINER_READY = "isolated_container_ready"


@dataclass
class TestSessionContext:
    """
    Holds the single active test database of a session.

    The context is passed to every lifecycle call instead of living in a
    global, and it is not locked: tests sharing one context must run serially.
    """

    __test__ = False

    container_factory: Callable[[], TestDatabaseContainer]
    leaks: LeakTracker = field(default_factory=LeakTracker)
    container: Optional[TestDatabaseContainer] = None
    state: LifecycleState = LifecycleState.NO_CONTAINER
    current_class: Optional[str] = None
    current_test: Optional[str] = None
    current_test_isolated: bool = False

    @property
    def connection_string(self) -> Optional[str]:
        """Connection string of the active database, if one is running."""
        if self.container is None or not self.container.is_running:
            return None
        return self.container.connection_string
