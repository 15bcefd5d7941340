"""
Service layer for group membership. The roster lives on GitLab: every
operation changes it there and reports the roster GitLab returns, translated
to local accounts.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from gitgroups.core.access import (
    AccessLevel,
    from_gitlab_access_level,
    to_gitlab_access_level,
)
from gitgroups.core.errors import (
    AccessDenied,
    AccountNotFound,
    BadParameters,
    UnknownUser,
)
from gitgroups.core.identity import Identity, identity_from
from gitgroups.core.user import FailedMember, MembershipBatchResult, UserInGroup
from gitgroups.core.uuid import UUID
from gitgroups.database.account import Account
from gitgroups.database.group import Group, Membership
from gitgroups.gitlab.client import GitlabClient

from . import accounts as account_service
from . import groups as groups_service
from .events import dispatch_event
from .sync import UserInformationRefresh


def require_gitlab_id(account: Account) -> int:
    """
    Raises
    ------
    UnknownUser
        If the account's person is not linked to a GitLab user.
    """
    if account.gitlab_id is None:
        raise UnknownUser(f"Person {account.person_id} is not connected to GitLab")

    return account.gitlab_id


async def _linked(
    group_id: UUID, account_id: UUID, conn: AsyncSession, log: FilteringBoundLogger
) -> tuple[Group, int, Account, int]:
    account = await account_service.read_by_id(account_id=account_id, conn=conn)
    group = await groups_service.read_by_id(group_id=group_id, conn=conn, log=log)

    return (
        group,
        groups_service.require_gitlab_id(group),
        account,
        require_gitlab_id(account),
    )


async def _refresh(
    group_id: UUID,
    account_ids: list[UUID],
    gitlab: GitlabClient,
    conn: AsyncSession,
    log: FilteringBoundLogger,
):
    if not account_ids:
        return

    await dispatch_event(
        UserInformationRefresh(group_id=group_id, account_ids=account_ids),
        gitlab=gitlab,
        conn=conn,
        log=log,
    )


async def list_members(
    group_id: UUID,
    gitlab: GitlabClient,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> list[UserInGroup]:
    """
    The members of a group, in the order GitLab lists them. GitLab users with
    no local account are left out.

    Raises
    ------
    GroupNotFound
        If the group does not exist.
    UnknownGroup
        If the group is not linked to GitLab.
    """
    log = log.bind(group_id=group_id)

    group = await groups_service.read_by_id(group_id=group_id, conn=conn, log=log)
    gitlab_id = groups_service.require_gitlab_id(group)

    members = []

    for member in await gitlab.admin_get_group_members(gitlab_id):
        try:
            account = await account_service.read_by_gitlab_id(member.id, conn=conn)
            access_level = from_gitlab_access_level(member.access_level)
        except (AccountNotFound, BadParameters):
            await log.adebug("member.list.skipped", gitlab_user_id=member.id)
            continue

        members.append(account.to_user_in_group(access_level))

    await log.adebug("member.listed", number_of_members=len(members))

    return members


async def add_member(
    group_id: UUID,
    account_id: UUID,
    gitlab: GitlabClient,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    access_level: AccessLevel | None = AccessLevel.GUEST,
) -> list[UserInGroup]:
    """
    Add an account to a group and return the group's new roster.

    Raises
    ------
    AccountNotFound
        If the account does not exist.
    GroupNotFound
        If the group does not exist.
    UnknownGroup, UnknownUser
        If the group or the account is not linked to GitLab.
    GitlabError
        If GitLab refuses the addition.
    """
    access_level = access_level or AccessLevel.GUEST
    log = log.bind(group_id=group_id, account_id=account_id, access_level=access_level)

    _, group_gitlab_id, _, user_gitlab_id = await _linked(
        group_id=group_id, account_id=account_id, conn=conn, log=log
    )

    await gitlab.admin_add_user_to_group(
        group_id=group_gitlab_id,
        user_id=user_gitlab_id,
        access_level=to_gitlab_access_level(access_level),
    )
    await log.ainfo("member.added")

    await _refresh(group_id, [account_id], gitlab=gitlab, conn=conn, log=log)

    return await list_members(group_id=group_id, gitlab=gitlab, conn=conn, log=log)


async def _resolve_entry(
    identity: Identity,
    gitlab: GitlabClient,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Account:
    account = await account_service.resolve(
        identity=identity, gitlab=gitlab, conn=conn, log=log
    )
    require_gitlab_id(account)
    return account


async def add_members(
    group_id: UUID,
    users: list[UserInGroup],
    gitlab: GitlabClient,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> MembershipBatchResult:
    """
    Add several users to a group, each at their own access level. Each entry
    is identified by the first of `id`, `email`, `user_name`, `gitlab_id` that
    is set. Users that cannot be resolved, are not linked to GitLab, or that
    GitLab refuses are logged and reported in `failed`; the others are in
    `succeeded` with the access level GitLab reports.

    Raises
    ------
    GroupNotFound
        If the group does not exist.
    UnknownGroup
        If the group is not linked to GitLab.
    """
    log = log.bind(group_id=group_id, number_of_users=len(users))

    group = await groups_service.read_by_id(group_id=group_id, conn=conn, log=log)
    group_gitlab_id = groups_service.require_gitlab_id(group)

    result = MembershipBatchResult()

    for user in users:
        try:
            account = await _resolve_entry(
                identity_from(
                    account_id=user.id,
                    email=user.email,
                    user_name=user.user_name,
                    gitlab_id=user.gitlab_id,
                ),
                gitlab=gitlab,
                conn=conn,
                log=log,
            )
            added = await gitlab.admin_add_user_to_group(
                group_id=group_gitlab_id,
                user_id=account.gitlab_id,
                access_level=to_gitlab_access_level(user.access_level),
            )
            result.succeeded.append(
                account.to_user_in_group(from_gitlab_access_level(added.access_level))
            )
        except Exception as e:
            await log.aerror("member.add_failed", user=user.model_dump(), error=repr(e))
            result.failed.append(FailedMember(user=user, reason=str(e)))

    await log.ainfo(
        "member.batch_added",
        number_succeeded=len(result.succeeded),
        number_failed=len(result.failed),
    )

    await _refresh(
        group_id,
        [x.id for x in result.succeeded],
        gitlab=gitlab,
        conn=conn,
        log=log,
    )

    result.members = await list_members(
        group_id=group_id, gitlab=gitlab, conn=conn, log=log
    )

    return result


async def edit_member(
    group_id: UUID,
    account_id: UUID,
    access_level: AccessLevel,
    gitlab: GitlabClient,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> list[UserInGroup]:
    """
    Change the access level of a member and return the group's new roster.

    Raises
    ------
    AccountNotFound
        If the account does not exist.
    GroupNotFound
        If the group does not exist.
    UnknownGroup, UnknownUser
        If the group or the account is not linked to GitLab.
    GitlabError
        If GitLab refuses the change, e.g. the account is not a member.
    """
    log = log.bind(group_id=group_id, account_id=account_id, access_level=access_level)

    _, group_gitlab_id, _, user_gitlab_id = await _linked(
        group_id=group_id, account_id=account_id, conn=conn, log=log
    )

    await gitlab.admin_edit_user_in_group(
        group_id=group_gitlab_id,
        user_id=user_gitlab_id,
        access_level=to_gitlab_access_level(access_level),
    )
    await log.ainfo("member.edited")

    await _refresh(group_id, [account_id], gitlab=gitlab, conn=conn, log=log)

    return await list_members(group_id=group_id, gitlab=gitlab, conn=conn, log=log)


async def remove_member(
    group_id: UUID,
    account_id: UUID,
    gitlab: GitlabClient,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> list[UserInGroup]:
    """
    Remove an account from a group and return the group's new roster.

    Raises
    ------
    AccountNotFound
        If the account does not exist.
    GroupNotFound
        If the group does not exist.
    UnknownGroup, UnknownUser
        If the group or the account is not linked to GitLab.
    GitlabError
        If GitLab refuses the removal, e.g. the account is not a member.
    """
    log = log.bind(group_id=group_id, account_id=account_id)

    _, group_gitlab_id, _, user_gitlab_id = await _linked(
        group_id=group_id, account_id=account_id, conn=conn, log=log
    )

    await gitlab.admin_delete_user_from_group(
        group_id=group_gitlab_id, user_id=user_gitlab_id
    )
    await log.ainfo("member.removed")

    await _refresh(group_id, [account_id], gitlab=gitlab, conn=conn, log=log)

    return await list_members(group_id=group_id, gitlab=gitlab, conn=conn, log=log)


async def remove_members(
    group_id: UUID,
    users: list[UserInGroup],
    gitlab: GitlabClient,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> MembershipBatchResult:
    """
    Remove several users from a group. Each entry is identified by the first
    of `gitlab_id`, `email`, `user_name` that is set. Failures are logged and
    reported in `failed`; `members` holds the roster afterwards.

    Raises
    ------
    GroupNotFound
        If the group does not exist.
    UnknownGroup
        If the group is not linked to GitLab.
    """
    log = log.bind(group_id=group_id, number_of_users=len(users))

    group = await groups_service.read_by_id(group_id=group_id, conn=conn, log=log)
    group_gitlab_id = groups_service.require_gitlab_id(group)

    result = MembershipBatchResult()
    removed_accounts = []

    for user in users:
        try:
            if user.gitlab_id is not None:
                user_gitlab_id = user.gitlab_id
            else:
                account = await _resolve_entry(
                    identity_from(email=user.email, user_name=user.user_name),
                    gitlab=gitlab,
                    conn=conn,
                    log=log,
                )
                user_gitlab_id = account.gitlab_id

            await gitlab.admin_delete_user_from_group(
                group_id=group_gitlab_id, user_id=user_gitlab_id
            )
        except Exception as e:
            await log.aerror(
                "member.remove_failed", user=user.model_dump(), error=repr(e)
            )
            result.failed.append(FailedMember(user=user, reason=str(e)))
            continue

        result.succeeded.append(user)

        try:
            account = await account_service.read_by_gitlab_id(user_gitlab_id, conn=conn)
            removed_accounts.append(account.account_id)
        except AccountNotFound:
            await log.adebug(
                "member.remove.no_local_account", gitlab_user_id=user_gitlab_id
            )

    await log.ainfo(
        "member.batch_removed",
        number_succeeded=len(result.succeeded),
        number_failed=len(result.failed),
    )

    await _refresh(group_id, removed_accounts, gitlab=gitlab, conn=conn, log=log)

    result.members = await list_members(
        group_id=group_id, gitlab=gitlab, conn=conn, log=log
    )

    return result


async def is_member(
    group_id: UUID,
    identity: Identity,
    gitlab: GitlabClient,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> bool:
    """
    Whether the account behind `identity` holds a membership record for the
    group. Never raises: any failure to decide counts as not being a member.
    """
    log = log.bind(group_id=group_id, identity_kind=identity.kind)

    try:
        account = await account_service.resolve(
            identity=identity, gitlab=gitlab, conn=conn, log=log
        )
        membership = await conn.get(
            Membership, {"person_id": account.person_id, "group_id": group_id}
        )
    except Exception as e:
        await log.ainfo("member.check.failed", error=repr(e))
        return False

    await log.adebug("member.checked", is_member=membership is not None)

    return membership is not None


async def assert_member(
    group_id: UUID,
    account: Account,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    minimum_level: AccessLevel = AccessLevel.GUEST,
) -> Membership:
    """
    Raises
    ------
    AccessDenied
        If the account has no membership record for the group, or one below
        `minimum_level`.
    """
    log = log.bind(
        group_id=group_id, account_id=account.account_id, minimum_level=minimum_level
    )

    membership = await conn.get(
        Membership, {"person_id": account.person_id, "group_id": group_id}
    )

    if membership is None or membership.access_level < minimum_level:
        await log.awarning("member.access_denied")
        raise AccessDenied("User is not in group or not allowed to view the group")

    return membership
