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
Memoized knowledge of whether a usable test database image exists.
"""

from enum import Enum
from typing import Callable


class ImageCacheState(str, Enum):
    """Whether an image for the current migration set is known to exist."""

    UNKNOWN = "unknown"
    VALID = "valid"
    INVALID = "invalid"


class ImageCache:
    """
    Holds the answer to "does the image exist?" for the lifetime of this object.

    The image store is asked at most once. Later changes to the store are not
    seen; a new cache (in practice, a new process) is the only way to refresh.
    """

    def __init__(self):
        self.state = ImageCacheState.UNKNOWN

    def resolve(self, query: Callable[[], bool]) -> bool:
        """
        Get the cached answer, running the query only while the state is unknown.

        Args:
            query: Asks the image store whether the image exists.

        Returns:
            True if the image is known to exist.
        """
        if self.state == ImageCacheState.UNKNOWN:
            self.state = ImageCacheState.VALID if query() else ImageCacheState.INVALID
        return self.state == ImageCacheState.VALID

    def mark_valid(self) -> None:
        """Record that this process committed the image itself."""
        self.state = ImageCacheState.VALID
