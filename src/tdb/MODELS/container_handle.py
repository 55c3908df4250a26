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
Reference to a running database container.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Optional


@dataclass(eq=False)
class ContainerHandle:
    """
    A running database container owned by exactly one component.

    Handles compare by identity: two handles are the same container only if
    they are the same object.
    """

    container_id: str
    host: str
    port: int
    connection_string: str
    native: Optional[Any] = field(default=None, repr=False)

    def with_connection_string(self, connection_string: str) -> "ContainerHandle":
        """
        Returns a handle for the same container with a rewritten connection string.
        Ownership moves to the returned handle.
        """
        return replace(self, connection_string=connection_string)
