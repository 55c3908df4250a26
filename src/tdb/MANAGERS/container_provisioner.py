"""
Provisioning of test database containers from a built image.
"""
import logging

from ..ENGINE.docker_engine import ContainerEngine
from ..MODELS.container_handle import ContainerHandle
from ..MODELS.image_tag import ImageTag
from ..MODELS.settings import TestDatabaseSettings
from ..UTILS.connection_string import redact, with_database
from ..UTILS.port_finder import is_port_free, resolve_host_port

logger = logging.getLogger(__name__)


class ContainerProvisioner:
    """
    Starts fresh database containers from a pre-migrated image.
    """
    def __init__(self, engine: ContainerEngine, settings: TestDatabaseSettings):
        """
        Initializes the provisioner.

        :param engine: Container engine to start containers on.
        :param settings: Host port and database name.
        """
        self.engine = engine
        self.settings = settings

    def start(self, tag: ImageTag) -> ContainerHandle:
        """
        Starts a container from the image and points its connection string
        at the schema database.

        :param tag: Image to start.
        :return: Handle owned by the caller.
        """
        port = resolve_host_port(self.settings.host_port)
        if not is_port_free(port):
            logger.warning("[provision] Host port %d is already in use, the container may fail to start", port)

        handle = self.engine.start_database(tag.reference, port)
        handle = handle.with_connection_string(
            with_database(handle.connection_string, self.settings.database_name)
        )
        logger.info("[provision] Database ready at %s", redact(handle.connection_string))
        return handle

    def stop(self, handle: ContainerHandle):
        """
        Removes a container started by this provisioner.
        """
        self.engine.remove_container(handle)
