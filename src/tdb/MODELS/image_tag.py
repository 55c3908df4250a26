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
Image tag identifying a pre-migrated test database image.
Tags look like 'tdb/tests-integration:202401011200000'.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ImageTag:
    """
    Repository and migration version of a built test database image.

    Examples:
        - tdb/tests-integration:202401011200000
        - localhost:5000/tdb/tests-integration:202401011200000
    """

    repository: str
    version: str

    DEFAULT_REPOSITORY = "tdb/tests-integration"

    @classmethod
    def parse(cls, reference: str) -> "ImageTag":
        """
        Parse a 'repository:tag' string.

        Args:
            reference: Image reference string.

        Returns:
            Parsed ImageTag.
        """
        if not reference:
            raise ValueError("Empty image reference")

        last_colon = reference.rfind(":")
        if last_colon == -1:
            raise ValueError(f"Image reference '{reference}' has no tag")

        repository = reference[:last_colon]
        version = reference[last_colon + 1 :]

        # A slash after the colon means the colon belongs to a registry port
        if "/" in version or not repository or not version:
            raise ValueError(f"Image reference '{reference}' has no tag")

        return cls(repository=repository, version=version)

    @property
    def reference(self) -> str:
        """Get the full 'repository:tag' string used by the container engine."""
        return f"{self.repository}:{self.version}"

    def __str__(self) -> str:
        return self.reference
