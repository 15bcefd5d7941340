"""
Service layer for accounts, including resolution of an identity to a single
local account.
"""

from sqlalchemy import delete as sql_delete
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from gitgroups.core.errors import AccountNotFound, Conflict, IncorrectCredentials
from gitgroups.core.identity import (
    AccountIdentity,
    EmailIdentity,
    GitlabIdentity,
    Identity,
    PersonIdentity,
    TokenIdentity,
    UsernameIdentity,
    identity_from,
)
from gitgroups.core.uuid import UUID
from gitgroups.database.account import Account, Person
from gitgroups.database.group import Membership
from gitgroups.gitlab.client import GitlabClient


async def create(
    user_name: str,
    email: str | None,
    name: str | None,
    gitlab_id: int | None,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Account:
    """
    Creates a person and their account.

    Raises
    ------
    Conflict
        If the user name, email or GitLab id is already in use.
    """
    log = log.bind(user_name=user_name, email=email, gitlab_id=gitlab_id)

    person = Person(name=name, gitlab_id=gitlab_id)
    account = Account(
        user_name=user_name, email=email, person_id=person.person_id, person=person
    )

    try:
        conn.add_all([person, account])
        await conn.flush()
    except IntegrityError as e:
        log = log.bind(error=e)
        await log.ainfo("account.create.exists")
        raise Conflict(f"Account {user_name} already exists")

    log = log.bind(account_id=account.account_id, person_id=person.person_id)
    await log.ainfo("account.created")

    return account


async def _read_one(query, conn: AsyncSession) -> Account | None:
    return (await conn.execute(query)).unique().scalar_one_or_none()


async def read_by_id(account_id: UUID, conn: AsyncSession) -> Account:
    res = await conn.get(Account, account_id)

    if res is None:
        raise AccountNotFound(f"Account with ID {account_id} not found in the database")

    return res


async def read_by_person_id(person_id: UUID, conn: AsyncSession) -> Account:
    res = await _read_one(select(Account).filter(Account.person_id == person_id), conn)

    if res is None:
        raise AccountNotFound(f"Account for person {person_id} not found in the database")

    return res


async def read_by_user_name(user_name: str, conn: AsyncSession) -> Account:
    res = await _read_one(select(Account).filter(Account.user_name == user_name), conn)

    if res is None:
        raise AccountNotFound(f"Account with name {user_name} not found in the database")

    return res


async def read_by_email(email: str, conn: AsyncSession) -> Account:
    res = await _read_one(select(Account).filter(Account.email == email), conn)

    if res is None:
        raise AccountNotFound(f"Account with email {email} not found in the database")

    return res


async def read_by_gitlab_id(gitlab_id: int, conn: AsyncSession) -> Account:
    query = select(Account).join(Person).filter(Person.gitlab_id == gitlab_id)
    res = await _read_one(query, conn)

    if res is None:
        raise AccountNotFound(
            f"Account with GitLab id {gitlab_id} not found in the database"
        )

    return res


async def resolve(
    identity: Identity,
    gitlab: GitlabClient,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Account:
    """
    Resolve an identity to exactly one local account.

    Parameters
    ----------
    identity: Identity
        The single key to look the account up by. A token is first exchanged
        for the GitLab user it belongs to.
    gitlab: GitlabClient
        Client used for token resolution.
    conn: AsyncSession
        The database session.
    log: FilteringBoundLogger
        Logger instance.

    Raises
    ------
    AccountNotFound
        If no account matches.
    IncorrectCredentials
        If the token is rejected by GitLab or belongs to no local account.
    """
    log = log.bind(identity_kind=identity.kind)

    match identity:
        case TokenIdentity(token=token):
            gitlab_user = await gitlab.get_user(token)
            log = log.bind(gitlab_id=gitlab_user.id)
            try:
                account = await read_by_gitlab_id(gitlab_user.id, conn)
            except AccountNotFound:
                await log.ainfo("account.resolve.unknown_token")
                raise IncorrectCredentials("Token does not belong to a known account")
        case PersonIdentity(person_id=person_id):
            account = await read_by_person_id(person_id, conn)
        case AccountIdentity(account_id=account_id):
            account = await read_by_id(account_id, conn)
        case EmailIdentity(email=email):
            account = await read_by_email(email, conn)
        case UsernameIdentity(user_name=user_name):
            account = await read_by_user_name(user_name, conn)
        case GitlabIdentity(gitlab_id=gitlab_id):
            account = await read_by_gitlab_id(gitlab_id, conn)

    await log.adebug("account.resolved", account_id=account.account_id)

    return account


async def resolve_account(
    gitlab: GitlabClient,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    token: str | None = None,
    person_id: UUID | None = None,
    account_id: UUID | None = None,
    email: str | None = None,
    user_name: str | None = None,
    gitlab_id: int | None = None,
) -> Account:
    """
    Resolve an account from optional keys; see `identity_from` for precedence.

    Raises
    ------
    BadParameters
        If no key was given.
    """
    identity = identity_from(
        token=token,
        person_id=person_id,
        account_id=account_id,
        email=email,
        user_name=user_name,
        gitlab_id=gitlab_id,
    )

    return await resolve(identity=identity, gitlab=gitlab, conn=conn, log=log)


async def delete(account_id: UUID, conn: AsyncSession, log: FilteringBoundLogger):
    """
    Deletes the account and its person, along with their memberships.
    """
    account = await read_by_id(account_id=account_id, conn=conn)
    person_id = account.person_id

    log = log.bind(account_id=account_id, person_id=person_id)

    await conn.delete(account)
    await conn.flush()
    await conn.execute(sql_delete(Membership).where(Membership.person_id == person_id))
    await conn.execute(sql_delete(Person).where(Person.person_id == person_id))

    await log.ainfo("account.deleted")
