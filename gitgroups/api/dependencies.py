"""
Dependencies used by the API.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger
from structlog.typing import FilteringBoundLogger

from gitgroups.config.settings import Settings
from gitgroups.core.errors import IncorrectCredentials
from gitgroups.database.account import Account
from gitgroups.gitlab.client import GitlabClient
from gitgroups.gitlab.mock import MockGitlab
from gitgroups.service import accounts as account_service


@lru_cache
def SETTINGS():
    return Settings()


DATABASE_MANAGER = SETTINGS().async_manager()


async def get_async_session():
    async with DATABASE_MANAGER.session() as session:
        async with session.begin():
            yield session


def logger():
    return get_logger()


@lru_cache
def get_mock_gitlab() -> MockGitlab:
    return MockGitlab(admin_token=SETTINGS().gitlab_admin_token)


@lru_cache
def get_gitlab() -> GitlabClient:
    settings = SETTINGS()

    if settings.use_mock_gitlab:
        return settings.gitlab_client(transport=get_mock_gitlab().transport())

    return settings.gitlab_client()


def get_user_token(
    private_token: Annotated[str | None, Header(alias="PRIVATE-TOKEN")] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """
    The caller's GitLab token, from either the `PRIVATE-TOKEN` header or a
    bearer `Authorization` header.
    """
    if private_token:
        return private_token

    if authorization and authorization.lower().startswith("bearer "):
        return authorization[len("bearer ") :].strip()

    raise IncorrectCredentials("No GitLab token supplied")


SettingsDependency = Annotated[Settings, Depends(SETTINGS)]
DatabaseDependency = Annotated[AsyncSession, Depends(get_async_session)]
LoggerDependency = Annotated[FilteringBoundLogger, Depends(logger)]
GitlabDependency = Annotated[GitlabClient, Depends(get_gitlab)]
TokenDependency = Annotated[str, Depends(get_user_token)]


async def get_current_account(
    token: TokenDependency,
    gitlab: GitlabDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> Account:
    return await account_service.resolve_account(
        gitlab=gitlab, conn=conn, log=log, token=token
    )


AccountDependency = Annotated[Account, Depends(get_current_account)]
