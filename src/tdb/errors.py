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
Exceptions raised while building images and provisioning test databases.
"""

MIGRATION_FAILED_HINT = (
    "Test Database migration failed. Verify that the database connection "
    "string specified in the test project is valid. You may need to manually "
    "synchronize the database or configure the test environment to "
    "force-create a new database."
)


class TestDatabaseError(Exception):
    """Base class for all test database errors."""

    # Keeps pytest from collecting the exception classes as test classes.
    __test__ = False


class ConfigurationError(TestDatabaseError):
    """Settings are missing or invalid."""


class ContainerEngineError(TestDatabaseError):
    """The container engine is unreachable or rejected an operation."""


class DatabaseCreationError(TestDatabaseError):
    """The schema database could not be created inside the build container."""


class MigrationError(TestDatabaseError):
    """Schema migrations failed while building the image."""

    def __init__(self, message: str = MIGRATION_FAILED_HINT):
        super().__init__(message)


class NoMigrationsError(TestDatabaseError):
    """No migrations were found, so no image tag can be derived."""


class ContainerStateError(TestDatabaseError):
    """A container was used in a way its current state does not allow."""
