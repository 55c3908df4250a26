# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Decides per test whether to reuse the shared database or provision a private one.

States move between NO_CONTAINER, SHARED_CONTAINER_READY and
ISOLATED_CONTAINER_READY:

- class setup: nothing, the container is created by the first test.
- test setup: an isolated test, or any test while no container exists,
  disposes whatever is running and provisions a new container. Other tests
  reuse the shared one.
- test teardown: an isolated test's container is disposed.
- class teardown: any container is disposed.

Every data-driven row is its own test, so N isolated rows cost N containers.
"""
import logging
from typing import Optional

from .context import LifecycleState, TestSessionContext
from .hooks import HookPhase, LifecycleHooks
from .isolation_policy import IsolationPolicy
from ..ENGINE.cleanup import remove_quietly

logger = logging.getLogger(__name__)


class DatabaseTestLifecycle:
    """
    Lifecycle hooks that give each test a ready database.
    """

    def __init__(self, policy: Optional[IsolationPolicy] = None):
        """
        Initializes the lifecycle.

        :param policy: Which tests and classes need an isolated database.
        """
        self.policy = policy or IsolationPolicy()

    def attach(self, hooks: LifecycleHooks) -> LifecycleHooks:
        """
        Registers the four lifecycle callbacks on a hook registry.
        """
        hooks.register(HookPhase.CLASS_SETUP, self.class_setup)
        hooks.register(HookPhase.TEST_SETUP, self.test_setup)
        hooks.register(HookPhase.TEST_TEARDOWN, self.test_teardown)
        hooks.register(HookPhase.CLASS_TEARDOWN, self.class_teardown)
        return hooks

    def class_setup(self, context: TestSessionContext, class_id: str):
        """
        Called before the first test of a class. Records the class so its
        isolation flag applies to the tests that follow; container creation
        waits for the first of them.
        """
        logger.debug("[lifecycle] Class setup %s", class_id)
        context.current_class = class_id

    def test_setup(self, context: TestSessionContext, test_id: str, class_id: Optional[str] = None) -> str:
        """
        Makes sure a suitable database is running for the test.

        :param context: Session state.
        :param test_id: Id of the test about to run.
        :param class_id: Id of its class, defaults to the class of the last class setup.
        :return: Connection string of the database the test should use.
        """
        if class_id is None:
            class_id = context.current_class
        isolated = self.policy.is_isolated(test_id, class_id)
        context.current_test = test_id
        context.current_test_isolated = isolated

        if isolated or context.container is None:
            self._dispose(context)
            self._provision(context, isolated)
        else:
            logger.debug("[lifecycle] Reusing shared database for %s", test_id)

        return context.connection_string

    def test_teardown(self, context: TestSessionContext, test_id: str):
        """
        Disposes the database of an isolated test so the next test gets a fresh one.
        """
        if context.current_test_isolated:
            logger.debug("[lifecycle] Disposing isolated database of %s", test_id)
            self._dispose(context)

        context.current_test = None
        context.current_test_isolated = False

    def class_teardown(self, context: TestSessionContext, class_id: str):
        """
        Disposes any database still running after the last test of a class.
        """
        logger.debug("[lifecycle] Class teardown %s", class_id)
        self._dispose(context)
        context.current_class = None

    def _provision(self, context: TestSessionContext, isolated: bool):
        container = context.container_factory()
        context.container = container
        try:
            container.start()
        except Exception:
            self._dispose(context)
            raise

        context.state = (
            LifecycleState.ISOLATED_CONTAINER_READY if isolated else LifecycleState.SHARED_CONTAINER_READY
        )
        logger.info("[lifecycle] Provisioned %s database for %s",
                    "isolated" if isolated else "shared", context.current_test)

    def _dispose(self, context: TestSessionContext):
        container = context.container
        context.container = None
        context.state = LifecycleState.NO_CONTAINER

        if container is None or not container.is_running:
            return
        remove_quietly(container.dispose, container.handle.container_id, context.leaks)
