"""
Core configuration
"""

import pytest_asyncio
import structlog

from gitgroups.config.settings import Settings
from gitgroups.gitlab.mock import MockGitlab


@pytest_asyncio.fixture(scope="session")
def database_file(tmp_path_factory):
    yield tmp_path_factory.mktemp("database") / "gitgroups.db"


@pytest_asyncio.fixture(scope="session")
def server_settings(database_file):
    yield Settings(
        database_type="sqlite",
        database_db=str(database_file),
        database_echo=False,
        gitlab_url="http://gitlab.test",
        gitlab_admin_token="admin-token",
        # Small pages, so that rosters and group lists span several requests.
        gitlab_page_size=2,
        reserved_names=["admin", "explore", "help"],
    )


@pytest_asyncio.fixture(scope="session")
def database(server_settings: Settings):
    server_settings.sync_manager().create_all()


@pytest_asyncio.fixture(scope="session")
def session_manager(server_settings: Settings, database):
    yield server_settings.async_manager()


@pytest_asyncio.fixture(scope="session")
def logger():
    yield structlog.get_logger()


@pytest_asyncio.fixture(scope="session")
def mock_gitlab(server_settings: Settings):
    yield MockGitlab(admin_token=server_settings.gitlab_admin_token)


@pytest_asyncio.fixture(scope="session")
def gitlab(server_settings: Settings, mock_gitlab: MockGitlab):
    yield server_settings.gitlab_client(transport=mock_gitlab.transport())
