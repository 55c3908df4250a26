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
pytest plugin providing container-backed test databases.

Request the ``test_database`` fixture to get a connection string. Tests of
one class (or module) share a database; mark a test or class with
``@pytest.mark.isolated_database`` to give each such test its own.
"""
from __future__ import annotations

import logging
from collections.abc import Generator
from typing import Optional

import pytest

from .ENGINE.docker_engine import ContainerEngine
from .LIFECYCLE.context import TestSessionContext
from .LIFECYCLE.isolation_policy import IsolationPolicy
from .LIFECYCLE.test_session import TestSession
from .MANAGERS.container_factory import ContainerFactory
from .MODELS.settings import TestDatabaseSettings

ISOLATED_MARKER = "isolated_database"

_policy_key = pytest.StashKey[IsolationPolicy]()
_session_key = pytest.StashKey[TestSession]()


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("tdb", "container-backed test databases")
    group.addoption(
        "--tdb-env-file",
        action="store",
        default=".env",
        help="Env file with TDB_* settings (default: .env)",
    )
    group.addoption(
        "--tdb-isolation-file",
        action="store",
        default=None,
        help="YAML file listing isolated_tests and isolated_classes",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register the isolation marker and quiet the Docker client loggers."""
    config.addinivalue_line(
        "markers",
        f"{ISOLATED_MARKER}: run the test, or every test of the class, against a private database",
    )
    logging.getLogger("docker").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Turn isolation markers and the isolation file into an explicit policy."""
    config.stash[_policy_key] = build_policy(items, config.getoption("tdb_isolation_file"))


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_teardown(item: pytest.Item, nextitem: Optional[pytest.Item]):
    """Run class teardown once the last test of a class or module is done."""
    yield
    session = item.config.stash.get(_session_key, None)
    if session is None or session.current_class != scope_id(item):
        return
    if nextitem is None or scope_id(nextitem) != session.current_class:
        session.end_class()


def build_policy(items: list[pytest.Item], isolation_file: Optional[str] = None) -> IsolationPolicy:
    """
    Build the isolation policy for the collected tests.

    Markers on a class apply to every test in it, so they are recorded per test.
    Marked tests are added on top of the isolation file.
    """
    marked = IsolationPolicy()
    for item in items:
        if item.get_closest_marker(ISOLATED_MARKER) is not None:
            marked.isolate_test(item.nodeid)

    if not isolation_file:
        return marked
    return IsolationPolicy.from_yaml(isolation_file).merge(marked)


def scope_id(item: pytest.Item) -> str:
    """Id of the class a test belongs to, or of its module for plain functions."""
    for kind in (pytest.Class, pytest.Module):
        parent = item.getparent(kind)
        if parent is not None:
            return parent.nodeid
    return item.nodeid


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def tdb_settings(pytestconfig: pytest.Config) -> TestDatabaseSettings:
    """Settings from TDB_* variables and the configured env file."""
    return TestDatabaseSettings.from_env(pytestconfig.getoption("tdb_env_file"))


@pytest.fixture(scope="session")
def tdb_engine(tdb_settings: TestDatabaseSettings) -> ContainerEngine:
    """Container engine; override in a conftest to use another one."""
    return ContainerEngine(tdb_settings)


@pytest.fixture(scope="session")
def tdb_session(
    pytestconfig: pytest.Config,
    tdb_settings: TestDatabaseSettings,
    tdb_engine: ContainerEngine,
) -> Generator[TestSession, None, None]:
    """Session coordinator; the last database is disposed when the session ends."""
    factory = ContainerFactory.from_settings(tdb_settings, tdb_engine)
    context = TestSessionContext(container_factory=factory, leaks=factory.leaks)
    policy = pytestconfig.stash.get(_policy_key, None) or IsolationPolicy()

    with TestSession(context, policy) as session:
        pytestconfig.stash[_session_key] = session
        yield session
        del pytestconfig.stash[_session_key]


@pytest.fixture
def test_database(
    request: pytest.FixtureRequest,
    tdb_settings: TestDatabaseSettings,
) -> Generator[str, None, None]:
    """
    Connection string of a migrated database for the current test.

    With TDB_CONNECTION_STRING set, containers are disabled and that database is used.
    """
    if not tdb_settings.containers_enabled:
        yield tdb_settings.connection_string
        return

    session: TestSession = request.getfixturevalue("tdb_session")
    test_id = request.node.nodeid
    yield session.begin_test(test_id, scope_id(request.node))
    session.end_test(test_id)
