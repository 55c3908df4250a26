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
Container engine backed by the local Docker daemon.
All Docker access in tdb goes through this module.
"""

import logging
from typing import List, Optional

import docker
from docker.errors import DockerException
from testcontainers.mssql import SqlServerContainer

from ..errors import ContainerEngineError
from ..MODELS.container_handle import ContainerHandle
from ..MODELS.image_tag import ImageTag
from ..MODELS.settings import TestDatabaseSettings

logger = logging.getLogger(__name__)

SQL_SERVER_PORT = 1433

# Images committed with this label would be deleted by the testcontainers
# resource reaper when the session that built them ends.
SESSION_LABEL = "org.testcontainers.session-id"


class ContainerEngine:
    """
    Starts, stops, commits and removes SQL Server containers and lists images.
    """

    def __init__(self, settings: TestDatabaseSettings, client: Optional[docker.DockerClient] = None):
        """
        Initialize the engine.

        Args:
            settings: Password and other container settings.
            client: Docker client to use. Created from the environment on first use.
        """
        self.settings = settings
        self._client = client

    @property
    def client(self) -> docker.DockerClient:
        """Docker client, connected lazily."""
        if self._client is None:
            try:
                self._client = docker.from_env()
            except DockerException as e:
                raise ContainerEngineError(f"Cannot connect to the Docker daemon: {e}") from e
        return self._client

    def list_image_tags(self) -> List[str]:
        """
        List every repository:tag string known to the image store.
        """
        try:
            images = self.client.images.list(all=True)
        except DockerException as e:
            raise ContainerEngineError(f"Failed to list images: {e}") from e

        tags = []
        for image in images:
            tags.extend(image.tags)
        return tags

    def start_database(self, image: str, host_port: int) -> ContainerHandle:
        """
        Start a SQL Server container and wait until it accepts connections.

        Args:
            image: Image reference to start.
            host_port: Host port bound to the SQL Server port.

        Returns:
            Handle of the running container.
        """
        container = SqlServerContainer(image=image, password=self.settings.password)
        container.with_bind_ports(SQL_SERVER_PORT, host_port)

        logger.debug("[engine] Starting %s on port %d", image, host_port)
        try:
            container.start()
        except (DockerException, TimeoutError) as e:
            self._discard(container)
            raise ContainerEngineError(f"Failed to start container from {image}: {e}") from e

        wrapped = container.get_wrapped_container()
        handle = ContainerHandle(
            container_id=wrapped.id,
            host=container.get_container_host_ip(),
            port=int(container.get_exposed_port(SQL_SERVER_PORT)),
            connection_string=container.get_connection_url(),
            native=container,
        )
        logger.info("[engine] Started container %s from %s", handle.container_id[:12], image)
        return handle

    def stop_container(self, handle: ContainerHandle) -> None:
        """
        Gracefully stop a container without removing it.
        """
        try:
            self._wrapped(handle).stop()
        except DockerException as e:
            raise ContainerEngineError(f"Failed to stop container {handle.container_id[:12]}: {e}") from e

    def commit_container(self, handle: ContainerHandle, tag: ImageTag) -> None:
        """
        Commit the filesystem of a container as a new tagged image.
        """
        logger.info("[engine] Committing container %s as %s", handle.container_id[:12], tag)
        try:
            self._wrapped(handle).commit(
                repository=tag.repository,
                tag=tag.version,
                changes=f"LABEL {SESSION_LABEL}=",
            )
        except DockerException as e:
            raise ContainerEngineError(f"Failed to commit image {tag}: {e}") from e

    def remove_container(self, handle: ContainerHandle) -> None:
        """
        Force-remove a container and its anonymous volumes.
        """
        try:
            self._wrapped(handle).remove(force=True, v=True)
        except DockerException as e:
            raise ContainerEngineError(f"Failed to remove container {handle.container_id[:12]}: {e}") from e
        logger.debug("[engine] Removed container %s", handle.container_id[:12])

    def remove_image(self, reference: str) -> None:
        """
        Remove an image by its repository:tag reference.
        """
        try:
            self.client.images.remove(reference)
        except DockerException as e:
            raise ContainerEngineError(f"Failed to remove image {reference}: {e}") from e

    def _wrapped(self, handle: ContainerHandle):
        """Get the docker-py container behind a handle."""
        if handle.native is not None:
            return handle.native.get_wrapped_container()
        return self.client.containers.get(handle.container_id)

    def _discard(self, container: SqlServerContainer) -> None:
        """Remove a container that failed to become ready."""
        try:
            container.stop()
        except DockerException as e:
            logger.warning("[engine] Could not remove container that failed to start: %s", e)
