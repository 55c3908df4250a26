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
Lookup of pre-migrated test database images in the local image store.
"""

import logging
from typing import List, Optional

from ..ENGINE.docker_engine import ContainerEngine
from ..MODELS.image_tag import ImageTag
from .image_cache import ImageCache

logger = logging.getLogger(__name__)


class ImageRegistry:
    """
    Answers whether an image tagged for the current migration set exists.
    """

    def __init__(self, engine: ContainerEngine, cache: Optional[ImageCache] = None):
        """
        Initialize the registry.

        Args:
            engine: Container engine used to list images.
            cache: Memoized answer, shared by everything in one test session.
        """
        self.engine = engine
        self.cache = cache or ImageCache()

    def has_valid_image(self, tag: ImageTag) -> bool:
        """
        Check whether an image carries exactly the given repository:tag.

        The image store is queried once; engine errors propagate.

        Args:
            tag: Tag of the image for the current migration set.

        Returns:
            True if the image exists.
        """
        return self.cache.resolve(lambda: self._query(tag))

    def mark_built(self, tag: ImageTag) -> None:
        """
        Record that the image was committed by this process.
        """
        logger.debug("[registry] Image %s recorded as built", tag)
        self.cache.mark_valid()

    def list_tags(self, repository: str) -> List[ImageTag]:
        """
        List every image of a repository, bypassing the cache.
        """
        tags = []
        for reference in self.engine.list_image_tags():
            try:
                tag = ImageTag.parse(reference)
            except ValueError:
                continue
            if tag.repository == repository:
                tags.append(tag)
        return tags

    def _query(self, tag: ImageTag) -> bool:
        found = tag.reference in self.engine.list_image_tags()
        logger.info("[registry] Image %s %s", tag, "found" if found else "not found")
        return found
