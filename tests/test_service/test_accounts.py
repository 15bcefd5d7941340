"""
Tests resolution of identities to accounts.
"""

import pytest

from gitgroups.core.errors import (
    AccountNotFound,
    BadParameters,
    Conflict,
    IncorrectCredentials,
    UserNotFound,
)
from gitgroups.core.identity import (
    EmailIdentity,
    GitlabIdentity,
    PersonIdentity,
    TokenIdentity,
    UsernameIdentity,
)
from gitgroups.core.uuid import uuid7
from gitgroups.service import accounts as account_service


@pytest.mark.asyncio(loop_scope="session")
async def test_resolve_by_each_key(
    session_manager, logger, gitlab, owner, owner_token
):
    async with session_manager.session() as conn:
        async with conn.begin():
            account = await account_service.read_by_id(account_id=owner, conn=conn)
            PERSON_ID = account.person_id
            GITLAB_ID = account.gitlab_id

            identities = [
                TokenIdentity(token=owner_token),
                PersonIdentity(person_id=PERSON_ID),
                EmailIdentity(email="owner@example.com"),
                UsernameIdentity(user_name="owner"),
                GitlabIdentity(gitlab_id=GITLAB_ID),
            ]

            for identity in identities:
                resolved = await account_service.resolve(
                    identity=identity, gitlab=gitlab, conn=conn, log=logger
                )
                assert resolved.account_id == owner

            resolved = await account_service.resolve_account(
                gitlab=gitlab, conn=conn, log=logger, account_id=owner
            )
            assert resolved.account_id == owner


@pytest.mark.asyncio(loop_scope="session")
async def test_resolve_precedence(session_manager, logger, gitlab, owner, member):
    async with session_manager.session() as conn:
        async with conn.begin():
            member_account = await account_service.read_by_id(
                account_id=member, conn=conn
            )

            # Person id beats user name.
            resolved = await account_service.resolve_account(
                gitlab=gitlab,
                conn=conn,
                log=logger,
                person_id=member_account.person_id,
                user_name="owner",
            )
            assert resolved.account_id == member

            # Email beats user name.
            resolved = await account_service.resolve_account(
                gitlab=gitlab,
                conn=conn,
                log=logger,
                email="owner@example.com",
                user_name="member",
            )
            assert resolved.account_id == owner


@pytest.mark.asyncio(loop_scope="session")
async def test_resolve_failures(session_manager, logger, gitlab, mock_gitlab, owner):
    async with session_manager.session() as conn:
        async with conn.begin():
            with pytest.raises(BadParameters):
                await account_service.resolve_account(
                    gitlab=gitlab, conn=conn, log=logger
                )

            with pytest.raises(AccountNotFound):
                await account_service.resolve_account(
                    gitlab=gitlab, conn=conn, log=logger, account_id=uuid7()
                )

            with pytest.raises(UserNotFound):
                await account_service.resolve_account(
                    gitlab=gitlab, conn=conn, log=logger, user_name="nobody"
                )

            with pytest.raises(AccountNotFound):
                await account_service.resolve_account(
                    gitlab=gitlab, conn=conn, log=logger, email="nobody@example.com"
                )

            with pytest.raises(AccountNotFound):
                await account_service.resolve_account(
                    gitlab=gitlab, conn=conn, log=logger, gitlab_id=987654
                )

            # GitLab does not know the token.
            with pytest.raises(IncorrectCredentials):
                await account_service.resolve_account(
                    gitlab=gitlab, conn=conn, log=logger, token="not-a-token"
                )

    # GitLab knows the token, but there is no local account for its user.
    mock_gitlab.add_user(username="stranger", token="stranger-token")

    async with session_manager.session() as conn:
        async with conn.begin():
            with pytest.raises(IncorrectCredentials):
                await account_service.resolve_account(
                    gitlab=gitlab, conn=conn, log=logger, token="stranger-token"
                )


@pytest.mark.asyncio(loop_scope="session")
async def test_create_duplicate_account(session_manager, logger, owner):
    with pytest.raises(Conflict):
        async with session_manager.session() as conn:
            async with conn.begin():
                await account_service.create(
                    user_name="owner",
                    email="someone.else@example.com",
                    name="Owner Again",
                    gitlab_id=None,
                    conn=conn,
                    log=logger,
                )


@pytest.mark.asyncio(loop_scope="session")
async def test_delete_account(session_manager, logger, make_account):
    ACCOUNT_ID = await make_account("short_lived")

    async with session_manager.session() as conn:
        async with conn.begin():
            await account_service.delete(account_id=ACCOUNT_ID, conn=conn, log=logger)

    with pytest.raises(AccountNotFound):
        async with session_manager.session() as conn:
            async with conn.begin():
                await account_service.read_by_id(account_id=ACCOUNT_ID, conn=conn)
