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
Builds the image holding a fully migrated test database.
"""
import logging
from typing import Optional

from ..ENGINE.cleanup import LeakTracker, remove_quietly
from ..ENGINE.docker_engine import ContainerEngine
from ..errors import MigrationError
from ..MIGRATIONS.migration_runner import MigrationRunner
from ..MIGRATIONS.migration_set import MigrationSet
from ..MODELS.container_handle import ContainerHandle
from ..MODELS.image_tag import ImageTag
from ..MODELS.settings import TestDatabaseSettings
from ..UTILS.connection_string import with_database
from ..UTILS.port_finder import get_free_port
from .database_admin import DatabaseAdmin

logger = logging.getLogger(__name__)


class ImageBuilder:
    """
    Starts a throwaway server, creates and migrates the schema database,
    then commits the container as an image tagged with the newest migration.
    """
    def __init__(self,
                 engine: ContainerEngine,
                 migrations: MigrationSet,
                 runner: MigrationRunner,
                 settings: TestDatabaseSettings,
                 admin: Optional[DatabaseAdmin] = None,
                 leaks: Optional[LeakTracker] = None):
        """
        Initializes the ImageBuilder.

        :param engine: Container engine the build container runs on.
        :param migrations: Migration set the database is built from.
        :param runner: Applies the migrations.
        :param settings: Base image, repository and database name.
        :param admin: Creates the schema database.
        :param leaks: Tracks build containers that could not be removed.
        """
        self.engine = engine
        self.migrations = migrations
        self.runner = runner
        self.settings = settings
        self.admin = admin or DatabaseAdmin(settings.connect_timeout)
        self.leaks = leaks or LeakTracker(settings.leak_threshold)

    def target_tag(self) -> ImageTag:
        """
        Gets the tag the image for the current migration set carries.
        """
        return self.migrations.image_tag(self.settings.repository)

    def build(self) -> ImageTag:
        """
        Builds and commits the image. The build container is always removed,
        even when a step fails.

        :return: Tag of the committed image.
        :raises MigrationError: If the migrations fail.
        """
        tag = self.target_tag()
        logger.info("[build] Building image %s from %s", tag, self.settings.base_image)

        handle = None
        try:
            handle = self.engine.start_database(self.settings.base_image, get_free_port())
            self._prepare_database(handle)

            self.engine.stop_container(handle)
            self.engine.commit_container(handle, tag)
        finally:
            if handle is not None:
                remove_quietly(lambda: self.engine.remove_container(handle), handle.container_id, self.leaks)

        logger.info("[build] Image %s is ready", tag)
        return tag

    def _prepare_database(self, handle: ContainerHandle):
        """
        Creates the schema database and runs every migration against it.
        """
        self.admin.create_database(handle.connection_string, self.settings.database_name)

        target = with_database(handle.connection_string, self.settings.database_name)
        logger.info("[build] Migrating database to %s...", self.migrations.target_migration())
        try:
            self.runner.update(target)
        except Exception as e:
            raise MigrationError() from e
