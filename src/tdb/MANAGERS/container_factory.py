"""
Wiring of registry, builder and provisioner into test database containers.
"""
from typing import Optional

from ..BUILDERS.database_admin import DatabaseAdmin
from ..BUILDERS.image_builder import ImageBuilder
from ..ENGINE.cleanup import LeakTracker
from ..ENGINE.docker_engine import ContainerEngine
from ..errors import ConfigurationError
from ..MIGRATIONS.migration_runner import MigrationRunner, load_runner
from ..MIGRATIONS.migration_set import MigrationSet
from ..MODELS.settings import TestDatabaseSettings
from ..REGISTRY.image_cache import ImageCache
from ..REGISTRY.image_registry import ImageRegistry
from .container_provisioner import ContainerProvisioner
from .test_database_container import TestDatabaseContainer


class ContainerFactory:
    """
    Creates TestDatabaseContainer instances that share one image cache,
    so the image store is asked about the image only once per session.
    """
    def __init__(self,
                 engine: ContainerEngine,
                 migrations: MigrationSet,
                 runner: MigrationRunner,
                 settings: TestDatabaseSettings,
                 leaks: Optional[LeakTracker] = None,
                 admin: Optional[DatabaseAdmin] = None):
        self.engine = engine
        self.settings = settings
        self.leaks = leaks or LeakTracker(settings.leak_threshold)
        self.registry = ImageRegistry(engine, ImageCache())
        self.builder = ImageBuilder(engine, migrations, runner, settings, admin=admin, leaks=self.leaks)
        self.provisioner = ContainerProvisioner(engine, settings)

    @classmethod
    def from_settings(cls,
                      settings: TestDatabaseSettings,
                      engine: Optional[ContainerEngine] = None,
                      leaks: Optional[LeakTracker] = None) -> "ContainerFactory":
        """
        Creates a factory from configured migration and runner locations.

        :param settings: Must name migrations_path and migration_runner.
        :param engine: Container engine, defaults to the local Docker daemon.
        :param leaks: Shared leak tracker.
        :raises ConfigurationError: If either location is missing.
        """
        if not settings.migrations_path:
            raise ConfigurationError("TDB_MIGRATIONS_PATH is not set")
        if not settings.migration_runner:
            raise ConfigurationError("TDB_MIGRATION_RUNNER is not set")

        return cls(
            engine or ContainerEngine(settings),
            MigrationSet.from_directory(settings.migrations_path),
            load_runner(settings.migration_runner),
            settings,
            leaks=leaks,
        )

    def __call__(self) -> TestDatabaseContainer:
        return TestDatabaseContainer(self.registry, self.builder, self.provisioner)
