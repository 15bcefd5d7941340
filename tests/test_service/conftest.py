"""
Configuration variables and fixtures for the service layer tests.
"""

import pytest_asyncio

from gitgroups.service import accounts as account_service

OWNER_TOKEN = "owner-token"
MEMBER_TOKEN = "member-token"


async def create_linked_account(
    session_manager, logger, mock_gitlab, user_name: str, token: str | None = None
):
    """
    Register `user_name` on the mock GitLab and create a local account linked
    to it, returning the account id.
    """
    gitlab_user = mock_gitlab.add_user(
        username=user_name,
        token=token,
        name=user_name.title(),
        email=f"{user_name}@example.com",
    )

    async with session_manager.session() as conn:
        async with conn.begin():
            account = await account_service.create(
                user_name=user_name,
                email=f"{user_name}@example.com",
                name=user_name.title(),
                gitlab_id=gitlab_user.id,
                conn=conn,
                log=logger,
            )

            return account.account_id


async def delete_account(session_manager, logger, account_id):
    async with session_manager.session() as conn:
        async with conn.begin():
            await account_service.delete(account_id=account_id, conn=conn, log=logger)


@pytest_asyncio.fixture(scope="session")
def owner_token():
    yield OWNER_TOKEN


@pytest_asyncio.fixture(scope="session")
async def owner(session_manager, logger, mock_gitlab):
    ACCOUNT_ID = await create_linked_account(
        session_manager, logger, mock_gitlab, user_name="owner", token=OWNER_TOKEN
    )

    yield ACCOUNT_ID

    await delete_account(session_manager, logger, ACCOUNT_ID)


@pytest_asyncio.fixture(scope="session")
async def member(session_manager, logger, mock_gitlab):
    ACCOUNT_ID = await create_linked_account(
        session_manager, logger, mock_gitlab, user_name="member", token=MEMBER_TOKEN
    )

    yield ACCOUNT_ID

    await delete_account(session_manager, logger, ACCOUNT_ID)


@pytest_asyncio.fixture(scope="session")
async def unlinked(session_manager, logger):
    # An account whose person never made it to GitLab.
    async with session_manager.session() as conn:
        async with conn.begin():
            account = await account_service.create(
                user_name="unlinked",
                email="unlinked@example.com",
                name="Not On GitLab",
                gitlab_id=None,
                conn=conn,
                log=logger,
            )

            ACCOUNT_ID = account.account_id

    yield ACCOUNT_ID

    await delete_account(session_manager, logger, ACCOUNT_ID)


@pytest_asyncio.fixture(scope="session")
def make_account(session_manager, logger, mock_gitlab):
    async def make(user_name: str, token: str | None = None):
        return await create_linked_account(
            session_manager, logger, mock_gitlab, user_name=user_name, token=token
        )

    yield make
