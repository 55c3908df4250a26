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
Migration metadata and derivation of the image tag for a migration set.

Migration ids start with a 15 character ordering key such as
'202401011200000' followed by a name, e.g. '202401011200000_AddPeople'.
The greatest key in the set names the image built for that set, so image
freshness follows the newest migration rather than wall-clock time.
"""

import os
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..errors import NoMigrationsError
from ..MODELS.image_tag import ImageTag

VERSION_LENGTH = 15

_MIGRATION_FILE = re.compile(r"^(\d{%d}[^.]*)\.\w+$" % VERSION_LENGTH)


@dataclass(frozen=True)
class MigrationRecord:
    """Metadata for a single schema migration."""

    id: str
    name: Optional[str] = None

    @property
    def version(self) -> str:
        """The ordering key used to tag images."""
        return self.id[:VERSION_LENGTH]


class MigrationSet:
    """
    The compiled set of migrations a database is built from.
    """

    def __init__(self, records: Iterable[MigrationRecord]):
        """
        Initializes the migration set.

        :param records: Migration metadata records, in any order.
        """
        self.records: List[MigrationRecord] = list(records)

    @classmethod
    def from_ids(cls, ids: Iterable[str]) -> "MigrationSet":
        """
        Creates a migration set from plain migration ids.
        """
        return cls(MigrationRecord(id=i) for i in ids)

    @classmethod
    def from_directory(cls, path: str) -> "MigrationSet":
        """
        Creates a migration set from a directory of migration files.
        Files whose name does not start with a 15 digit key are ignored.

        :param path: Directory holding the migration scripts.
        :return: The migration set.
        :raises NoMigrationsError: If the directory does not exist.
        """
        if not os.path.isdir(path):
            raise NoMigrationsError(f"Migrations directory '{path}' does not exist")

        records = []
        for filename in sorted(os.listdir(path)):
            match = _MIGRATION_FILE.match(filename)
            if match:
                migration_id = match.group(1)
                name = migration_id[VERSION_LENGTH:].lstrip("_") or None
                records.append(MigrationRecord(id=migration_id, name=name))
        return cls(records)

    def target_migration(self) -> str:
        """
        Gets the version key of the newest migration.

        :return: The lexicographically greatest 15 character version key.
        :raises NoMigrationsError: If the set is empty.
        """
        if not self.records:
            raise NoMigrationsError("No migrations found, cannot determine the target migration")
        return max(record.version for record in self.records)

    def image_tag(self, repository: str = ImageTag.DEFAULT_REPOSITORY) -> ImageTag:
        """
        Gets the tag of the image holding a database migrated to this set.
        """
        return ImageTag(repository=repository, version=self.target_migration())

    def __len__(self) -> int:
        return len(self.records)
