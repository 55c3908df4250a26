"""
Registry of setup and teardown callbacks that any test harness can drive.
"""
from enum import Enum
from typing import Any, Callable, Dict, List

from .context import TestSessionContext

Hook = Callable[[TestSessionContext, str], Any]


class HookPhase(str, Enum):
    """Test runner boundaries callbacks can be attached to."""

    CLASS_SETUP = "class_setup"
    TEST_SETUP = "test_setup"
    TEST_TEARDOWN = "test_teardown"
    CLASS_TEARDOWN = "class_teardown"

    @property
    def is_teardown(self) -> bool:
        return self in (HookPhase.TEST_TEARDOWN, HookPhase.CLASS_TEARDOWN)


class LifecycleHooks:
    """
    Callbacks per phase. Setup callbacks run in registration order and
    teardown callbacks in reverse, so later registrations are nested inside
    earlier ones.
    """

    def __init__(self):
        self._hooks: Dict[HookPhase, List[Hook]] = {phase: [] for phase in HookPhase}

    def register(self, phase: HookPhase, callback: Hook) -> Hook:
        """
        Attach a callback to a phase.

        Args:
            phase: When the callback runs.
            callback: Called with the session context and the test or class id.

        Returns:
            The callback, so this can be used as a decorator body.
        """
        self._hooks[HookPhase(phase)].append(callback)
        return callback

    def on(self, phase: HookPhase) -> Callable[[Hook], Hook]:
        """Decorator form of register()."""
        return lambda callback: self.register(phase, callback)

    def run(self, phase: HookPhase, context: TestSessionContext, scope_id: str) -> List[Any]:
        """
        Run every callback of a phase and collect their results.
        """
        phase = HookPhase(phase)
        callbacks = self._hooks[phase]
        if phase.is_teardown:
            callbacks = list(reversed(callbacks))
        return [callback(context, scope_id) for callback in callbacks]

    def callbacks(self, phase: HookPhase) -> List[Hook]:
        return list(self._hooks[HookPhase(phase)])
