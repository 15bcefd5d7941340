"""
Group membership management. Mounted under `/groups/{group_id}/members`.
"""

from fastapi import APIRouter

from gitgroups.api.dependencies import (
    AccountDependency,
    DatabaseDependency,
    GitlabDependency,
    LoggerDependency,
)
from gitgroups.core.access import AccessLevel
from gitgroups.core.identity import AccountIdentity, identity_from
from gitgroups.core.models import AccessLevelContent, MembershipCheckResponse
from gitgroups.core.user import MembershipBatchResult, UserInGroup
from gitgroups.core.uuid import UUID
from gitgroups.service import members as members_service

member_app = APIRouter(tags=["Membership Management"])


@member_app.get(
    "",
    summary="List members",
    description="List the members of a group. The caller must be a member.",
    responses={
        200: {"description": "The group's members."},
        403: {"description": "Access denied to this group."},
    },
)
async def list_members(
    group_id: UUID,
    account: AccountDependency,
    gitlab: GitlabDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> list[UserInGroup]:
    await members_service.assert_member(
        group_id=group_id, account=account, conn=conn, log=log
    )

    return await members_service.list_members(
        group_id=group_id, gitlab=gitlab, conn=conn, log=log
    )


@member_app.get(
    "/check",
    summary="Check membership",
    description=(
        "Check whether a user (by account id, email, user name or GitLab id; "
        "the caller if none is given) is a member of the group. Any failure "
        "to decide answers false."
    ),
    responses={200: {"description": "Whether the user is a member."}},
)
async def check_member(
    group_id: UUID,
    account: AccountDependency,
    gitlab: GitlabDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
    account_id: UUID | None = None,
    email: str | None = None,
    user_name: str | None = None,
    gitlab_id: int | None = None,
) -> MembershipCheckResponse:
    if account_id is None and email is None and user_name is None and gitlab_id is None:
        identity = AccountIdentity(account_id=account.account_id)
    else:
        identity = identity_from(
            account_id=account_id, email=email, user_name=user_name, gitlab_id=gitlab_id
        )

    return MembershipCheckResponse(
        is_member=await members_service.is_member(
            group_id=group_id, identity=identity, gitlab=gitlab, conn=conn, log=log
        )
    )


@member_app.put(
    "",
    summary="Add several members",
    description=(
        "Add a list of users to the group. Users that cannot be added are "
        "reported in `failed`. Requires maintainer access."
    ),
    responses={
        200: {"description": "Outcome for every user, and the new roster."},
        403: {"description": "Access denied to this group."},
    },
)
async def add_members(
    group_id: UUID,
    users: list[UserInGroup],
    account: AccountDependency,
    gitlab: GitlabDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> MembershipBatchResult:
    await members_service.assert_member(
        group_id=group_id,
        account=account,
        conn=conn,
        log=log,
        minimum_level=AccessLevel.MAINTAINER,
    )

    return await members_service.add_members(
        group_id=group_id, users=users, gitlab=gitlab, conn=conn, log=log
    )


@member_app.post(
    "/remove",
    summary="Remove several members",
    description=(
        "Remove a list of users from the group. Users that cannot be removed "
        "are reported in `failed`. Requires maintainer access."
    ),
    responses={
        200: {"description": "Outcome for every user, and the new roster."},
        403: {"description": "Access denied to this group."},
    },
)
async def remove_members(
    group_id: UUID,
    users: list[UserInGroup],
    account: AccountDependency,
    gitlab: GitlabDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> MembershipBatchResult:
    await members_service.assert_member(
        group_id=group_id,
        account=account,
        conn=conn,
        log=log,
        minimum_level=AccessLevel.MAINTAINER,
    )

    return await members_service.remove_members(
        group_id=group_id, users=users, gitlab=gitlab, conn=conn, log=log
    )


@member_app.put(
    "/{account_id}",
    summary="Add a member",
    description="Add a user to the group. Requires maintainer access.",
    responses={
        200: {"description": "The new roster."},
        403: {"description": "Access denied to this group."},
        404: {"description": "Group or user not found."},
        409: {"description": "Group or user not linked to GitLab."},
    },
)
async def add_member(
    group_id: UUID,
    account_id: UUID,
    account: AccountDependency,
    gitlab: GitlabDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
    content: AccessLevelContent | None = None,
) -> list[UserInGroup]:
    await members_service.assert_member(
        group_id=group_id,
        account=account,
        conn=conn,
        log=log,
        minimum_level=AccessLevel.MAINTAINER,
    )

    return await members_service.add_member(
        group_id=group_id,
        account_id=account_id,
        access_level=content.access_level if content else AccessLevel.GUEST,
        gitlab=gitlab,
        conn=conn,
        log=log,
    )


@member_app.patch(
    "/{account_id}",
    summary="Change a member's access level",
    description="Requires maintainer access.",
    responses={
        200: {"description": "The new roster."},
        403: {"description": "Access denied to this group."},
        404: {"description": "Group or user not found."},
    },
)
async def edit_member(
    group_id: UUID,
    account_id: UUID,
    content: AccessLevelContent,
    account: AccountDependency,
    gitlab: GitlabDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> list[UserInGroup]:
    await members_service.assert_member(
        group_id=group_id,
        account=account,
        conn=conn,
        log=log,
        minimum_level=AccessLevel.MAINTAINER,
    )

    return await members_service.edit_member(
        group_id=group_id,
        account_id=account_id,
        access_level=content.access_level,
        gitlab=gitlab,
        conn=conn,
        log=log,
    )


@member_app.delete(
    "/{account_id}",
    summary="Remove a member",
    description="Requires maintainer access, except to remove yourself.",
    responses={
        200: {"description": "The new roster."},
        403: {"description": "Access denied to this group."},
        404: {"description": "Group or user not found."},
    },
)
async def remove_member(
    group_id: UUID,
    account_id: UUID,
    account: AccountDependency,
    gitlab: GitlabDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> list[UserInGroup]:
    await members_service.assert_member(
        group_id=group_id,
        account=account,
        conn=conn,
        log=log,
        minimum_level=(
            AccessLevel.GUEST
            if account_id == account.account_id
            else AccessLevel.MAINTAINER
        ),
    )

    return await members_service.remove_member(
        group_id=group_id, account_id=account_id, gitlab=gitlab, conn=conn, log=log
    )
