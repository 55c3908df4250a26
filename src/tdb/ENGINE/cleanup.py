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
Best-effort container cleanup.

Removal failures are logged and counted but never raised, so a broken
teardown cannot hide the failure that caused it or fail the tests that follow.
"""
import logging
from typing import Callable, List

logger = logging.getLogger(__name__)


class LeakTracker:
    """
    Counts consecutive container removal failures.

    Every failure is logged as a warning; once the streak reaches the
    threshold each further failure is logged as an error listing the
    leaked containers. A successful removal resets the streak.
    """

    def __init__(self, threshold: int = 3):
        self.threshold = threshold
        self.failing_streak = 0
        self.leaked: List[str] = []

    def record_success(self) -> None:
        self.failing_streak = 0

    def record_failure(self, container_id: str, error: Exception) -> None:
        self.failing_streak += 1
        self.leaked.append(container_id)

        if self.failing_streak >= self.threshold:
            logger.error(
                "[cleanup] %d consecutive container removals failed, leaked containers: %s",
                self.failing_streak,
                ", ".join(c[:12] for c in self.leaked),
            )
        else:
            logger.warning("[cleanup] Failed to remove container %s: %s", container_id[:12], error)


def remove_quietly(remove: Callable[[], None], container_id: str, tracker: LeakTracker) -> bool:
    """
    Runs a removal callable, logging instead of raising on failure.

    :param remove: Performs the removal.
    :param container_id: Container being removed, for the log.
    :param tracker: Records the outcome.
    :return: True if the removal succeeded.
    """
    try:
        remove()
    except Exception as e:
        tracker.record_failure(container_id, e)
        return False
    tracker.record_success()
    return True
