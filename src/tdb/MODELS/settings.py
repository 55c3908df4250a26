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
Settings for building images and provisioning test databases.
"""
import os
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values
from pydantic import BaseModel, Field, ValidationError

from ..errors import ConfigurationError
from .image_tag import ImageTag

ENV_PREFIX = "TDB_"


class TestDatabaseSettings(BaseModel):
    """
    Configuration shared by the image builder, the provisioner and the
    test lifecycle. Every field can be set with a TDB_<FIELD> variable.
    """

    __test__ = False

    repository: str = ImageTag.DEFAULT_REPOSITORY
    base_image: str = "mcr.microsoft.com/mssql/server:2022-latest"
    password: str = "tdb!Tests1"
    database_name: str = "tests"

    # Host port the test containers bind to; None or 0 picks a free one.
    host_port: Optional[int] = Field(default=31433, ge=0, le=65535)
    connect_timeout: float = Field(default=120.0, gt=0)

    # Consecutive container removal failures before they are logged as errors.
    leak_threshold: int = Field(default=3, ge=1)

    migrations_path: Optional[str] = None
    migration_runner: Optional[str] = None

    # When set, containers are disabled and tests use this database.
    connection_string: Optional[str] = None

    @property
    def containers_enabled(self) -> bool:
        """Whether tests should get their database from a container."""
        return not self.connection_string

    @classmethod
    def from_env(cls,
                 env_file: Optional[str] = None,
                 environ: Optional[Mapping[str, str]] = None) -> "TestDatabaseSettings":
        """
        Builds settings from an optional .env file and the process environment.
        Process variables override values from the file.

        :param env_file: Path to a .env file, skipped if it does not exist.
        :param environ: Environment to read, defaults to os.environ.
        :return: Validated settings.
        :raises ConfigurationError: If a value does not validate.
        """
        merged: Dict[str, str] = {}
        if env_file and os.path.exists(env_file):
            merged.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
        merged.update(os.environ if environ is None else environ)

        values = {}
        for key, value in merged.items():
            if not key.startswith(ENV_PREFIX):
                continue
            name = key[len(ENV_PREFIX):].lower()
            if name in cls.model_fields:
                if value != "":
                    values[name] = value

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid test database settings: {e}") from e
