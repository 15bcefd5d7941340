"""
Main settings object.
"""

from typing import TYPE_CHECKING, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import URL

from .managers import AsyncSessionManager, SyncSessionManager

if TYPE_CHECKING:
    from gitgroups.gitlab.client import GitlabClient


class Settings(BaseSettings):
    database_type: Literal["sqlite", "postgres"] = "sqlite"
    database_user: str | None = None
    database_password: str | None = None
    database_port: int | None = None
    database_host: str | None = None
    database_db: str = "gitgroups.db"

    database_echo: bool = False

    # GitLab instance the groups are mirrored to. Admin calls (roster
    # management, updates and deletions) use the admin token; user calls use
    # the caller's own token.
    gitlab_url: str = "http://localhost:10080"
    gitlab_admin_token: str | None = None
    gitlab_timeout: float = 10.0
    # Page size for GitLab list endpoints; GitLab caps it at 100.
    gitlab_page_size: int = 100

    # Development only: serve against the in-memory GitLab.
    use_mock_gitlab: bool = False

    # Group names (and their slugs) that can never be used for a group.
    reserved_names: list[str] = [
        "admin",
        "api",
        "dashboard",
        "explore",
        "groups",
        "help",
        "new",
        "profile",
        "projects",
        "root",
        "settings",
        "users",
    ]

    hostname: str = "http://localhost:8000"

    model_config = SettingsConfigDict(env_prefix="GITGROUPS_", env_file=".env")

    @property
    def sync_driver(self) -> str:
        match self.database_type:
            case "sqlite":
                return "sqlite"
            case "postgres":
                return "postgresql+psycopg"
            case _:
                raise ValueError

    @property
    def async_driver(self) -> str:
        match self.database_type:
            case "sqlite":
                return "sqlite+aiosqlite"
            case "postgres":
                return "postgresql+asyncpg"
            case _:
                raise ValueError

    @property
    def sync_uri(self) -> URL:
        return URL.create(
            drivername=self.sync_driver,
            username=self.database_user,
            password=self.database_password,
            host=self.database_host,
            port=self.database_port,
            database=self.database_db,
        )

    def sync_manager(self) -> SyncSessionManager:
        return SyncSessionManager(connection_url=self.sync_uri, echo=self.database_echo)

    @property
    def async_uri(self) -> URL:
        return URL.create(
            drivername=self.async_driver,
            username=self.database_user,
            password=self.database_password,
            host=self.database_host,
            port=self.database_port,
            database=self.database_db,
        )

    def async_manager(self) -> AsyncSessionManager:
        return AsyncSessionManager(
            connection_url=self.async_uri, echo=self.database_echo
        )

    def gitlab_client(self, transport=None) -> "GitlabClient":
        """
        Create a client for the configured GitLab instance. Passing an httpx
        transport replaces the network (used with the mock GitLab).
        """
        from gitgroups.gitlab.client import GitlabClient

        return GitlabClient(
            base_url=self.gitlab_url,
            admin_token=self.gitlab_admin_token,
            timeout=self.gitlab_timeout,
            transport=transport,
            per_page=self.gitlab_page_size,
        )
