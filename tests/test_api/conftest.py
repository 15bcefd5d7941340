"""
Fixtures for the API tests: an app wired to the test database and the mock
GitLab, and two users to call it as.
"""

import httpx
import pytest_asyncio
from fastapi import FastAPI

from gitgroups.api.dependencies import SETTINGS, get_async_session, get_gitlab
from gitgroups.api.errors import add_exception_handlers
from gitgroups.api.groups import group_app
from gitgroups.api.members import member_app
from gitgroups.service import accounts as account_service

API_OWNER_TOKEN = "api-owner-token"
API_MEMBER_TOKEN = "api-member-token"


@pytest_asyncio.fixture(scope="session")
async def client(server_settings, session_manager, gitlab):
    app = add_exception_handlers(FastAPI())
    app.include_router(group_app, prefix="/groups")
    app.include_router(member_app, prefix="/groups/{group_id}/members")

    async def get_test_session():
        async with session_manager.session() as session:
            async with session.begin():
                yield session

    app.dependency_overrides[SETTINGS] = lambda: server_settings
    app.dependency_overrides[get_async_session] = get_test_session
    app.dependency_overrides[get_gitlab] = lambda: gitlab

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client


async def _api_account(session_manager, logger, mock_gitlab, user_name, token):
    gitlab_user = mock_gitlab.add_user(
        username=user_name, token=token, email=f"{user_name}@example.com"
    )

    async with session_manager.session() as conn:
        async with conn.begin():
            account = await account_service.create(
                user_name=user_name,
                email=f"{user_name}@example.com",
                name=None,
                gitlab_id=gitlab_user.id,
                conn=conn,
                log=logger,
            )

            return account.account_id


async def _remove_account(session_manager, logger, account_id):
    async with session_manager.session() as conn:
        async with conn.begin():
            await account_service.delete(account_id=account_id, conn=conn, log=logger)


@pytest_asyncio.fixture(scope="session")
async def api_owner(session_manager, logger, mock_gitlab):
    ACCOUNT_ID = await _api_account(
        session_manager, logger, mock_gitlab, "api-owner", API_OWNER_TOKEN
    )

    yield ACCOUNT_ID

    await _remove_account(session_manager, logger, ACCOUNT_ID)


@pytest_asyncio.fixture(scope="session")
async def api_member(session_manager, logger, mock_gitlab):
    ACCOUNT_ID = await _api_account(
        session_manager, logger, mock_gitlab, "api-member", API_MEMBER_TOKEN
    )

    yield ACCOUNT_ID

    await _remove_account(session_manager, logger, ACCOUNT_ID)
