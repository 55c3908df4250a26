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
Unit tests for the registry module.
"""
import pytest

from tdb.errors import ContainerEngineError
from tdb.MODELS.image_tag import ImageTag
from tdb.REGISTRY.image_cache import ImageCache, ImageCacheState
from tdb.REGISTRY.image_registry import ImageRegistry


class TestImageCache:
    """Tests for ImageCache."""

    def test_starts_unknown(self):
        assert ImageCache().state == ImageCacheState.UNKNOWN

    def test_resolves_once(self):
        """Test that the query runs only while the state is unknown."""
        cache = ImageCache()
        answers = [True, False]
        assert cache.resolve(lambda: answers.pop(0)) is True
        assert cache.resolve(lambda: answers.pop(0)) is True
        assert answers == [False]
        assert cache.state == ImageCacheState.VALID

    def test_invalid_is_cached(self):
        cache = ImageCache()
        assert cache.resolve(lambda: False) is False
        assert cache.state == ImageCacheState.INVALID

    def test_mark_valid(self):
        cache = ImageCache()
        cache.resolve(lambda: False)
        cache.mark_valid()
        assert cache.resolve(lambda: False) is True


class TestImageRegistry:
    """Tests for ImageRegistry."""

    def test_finds_exact_tag(self, engine, target_tag):
        """Test that an image with the exact tag is found."""
        engine.tags.extend(["mcr.microsoft.com/mssql/server:2022-latest", target_tag.reference])
        assert ImageRegistry(engine).has_valid_image(target_tag) is True

    def test_other_tag_is_not_valid(self, engine, target_tag):
        """Test that an image for another migration set does not count."""
        engine.tags.append("tdb/tests-integration:202301010000000")
        assert ImageRegistry(engine).has_valid_image(target_tag) is False

    def test_queried_once(self, engine, target_tag):
        """Test that the image store is queried at most once."""
        registry = ImageRegistry(engine)
        registry.has_valid_image(target_tag)
        registry.has_valid_image(target_tag)
        registry.has_valid_image(target_tag)
        assert engine.list_calls == 1

    def test_stale_after_image_appears(self, engine, target_tag):
        """Test that a later change to the image store is not seen."""
        registry = ImageRegistry(engine)
        assert registry.has_valid_image(target_tag) is False
        engine.tags.append(target_tag.reference)
        assert registry.has_valid_image(target_tag) is False

    def test_shared_cache(self, engine, target_tag):
        """Test that registries sharing a cache share the answer."""
        cache = ImageCache()
        ImageRegistry(engine, cache).has_valid_image(target_tag)
        ImageRegistry(engine, cache).has_valid_image(target_tag)
        assert engine.list_calls == 1

    def test_mark_built(self, engine, target_tag):
        """Test that an image built by this process is recorded as valid."""
        registry = ImageRegistry(engine)
        assert registry.has_valid_image(target_tag) is False
        registry.mark_built(target_tag)
        assert registry.has_valid_image(target_tag) is True
        assert engine.list_calls == 1

    def test_engine_error_propagates(self, engine, target_tag):
        """Test that an unreachable engine is fatal and leaves the cache unknown."""
        def unreachable():
            raise ContainerEngineError("Cannot connect to the Docker daemon")

        engine.list_image_tags = unreachable
        registry = ImageRegistry(engine)
        with pytest.raises(ContainerEngineError):
            registry.has_valid_image(target_tag)
        assert registry.cache.state == ImageCacheState.UNKNOWN

    def test_list_tags(self, engine):
        """Test listing the images of one repository."""
        engine.tags.extend([
            "tdb/tests-integration:202301010000000",
            "tdb/tests-integration:202402021200000",
            "other/repo:latest",
            "<none>",
        ])
        tags = ImageRegistry(engine).list_tags("tdb/tests-integration")
        assert tags == [
            ImageTag("tdb/tests-integration", "202301010000000"),
            ImageTag("tdb/tests-integration", "202402021200000"),
        ]
