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
Administrative SQL run against a fresh SQL Server instance.
"""
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from tenacity import Retrying, retry_if_exception_type, stop_after_delay, wait_fixed

from ..errors import ConfigurationError, DatabaseCreationError

logger = logging.getLogger(__name__)


class DatabaseAdmin:
    """
    Creates the schema database inside a newly started server.
    """

    def __init__(self, connect_timeout: float = 120.0):
        """
        Initializes the admin.

        :param connect_timeout: Seconds to keep retrying while the server is not yet accepting logins.
        """
        self.connect_timeout = connect_timeout

    def create_database(self, connection_string: str, name: str) -> None:
        """
        Creates an empty database with simple recovery, which skips full
        transaction logging and makes migrations faster.

        :param connection_string: URL of the server, any catalog.
        :param name: Name of the database to create.
        :raises DatabaseCreationError: If the statements fail.
        """
        if not name or "]" in name:
            raise ConfigurationError(f"Invalid database name '{name}'")

        logger.info("[build] Creating new database %s...", name)
        engine = create_engine(connection_string, isolation_level="AUTOCOMMIT")
        try:
            with self._connect(engine) as connection:
                connection.execute(text(f"CREATE DATABASE [{name}]"))
                connection.execute(text(f"ALTER DATABASE [{name}] SET RECOVERY SIMPLE"))
        except SQLAlchemyError as e:
            raise DatabaseCreationError(f"Failed to create database '{name}': {e}") from e
        finally:
            engine.dispose()

    def _connect(self, engine: Engine) -> Connection:
        """
        Opens a connection, retrying while the server is still starting up.
        """
        retrying = Retrying(
            stop=stop_after_delay(self.connect_timeout),
            wait=wait_fixed(1),
            retry=retry_if_exception_type(OperationalError),
            reraise=True,
        )
        return retrying(engine.connect)
