"""
Group management.
"""

from fastapi import APIRouter

from gitgroups.api.dependencies import (
    AccountDependency,
    DatabaseDependency,
    GitlabDependency,
    LoggerDependency,
    SettingsDependency,
    TokenDependency,
)
from gitgroups.core.access import AccessLevel
from gitgroups.core.group import GroupData, GroupOfUser
from gitgroups.core.identity import AccountIdentity
from gitgroups.core.models import (
    AvailabilityResponse,
    GroupCreationRequest,
    GroupDetailResponse,
    GroupUpdateRequest,
)
from gitgroups.core.uuid import UUID
from gitgroups.service import groups as groups_service
from gitgroups.service import members as members_service

group_app = APIRouter(tags=["Group Management"])


@group_app.get(
    "/list",
    summary="List groups",
    description="Retrieve the groups the caller holds a membership in.",
    responses={
        200: {"description": "List of groups."},
        401: {"description": "Missing or unknown GitLab token."},
    },
)
async def list_groups(
    account: AccountDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> list[GroupData]:
    log = log.bind(account_id=account.account_id)

    groups = await groups_service.get_group_list(
        conn=conn, log=log, for_person=account.person_id
    )

    return [g.to_core() for g in groups]


@group_app.get(
    "/mine",
    summary="List my GitLab groups",
    description=(
        "Retrieve the groups visible to the caller on GitLab, with the access "
        "level the caller holds in each."
    ),
    responses={
        200: {"description": "List of groups with access levels."},
        401: {"description": "Missing or unknown GitLab token."},
    },
)
async def list_my_groups(
    token: TokenDependency,
    account: AccountDependency,
    gitlab: GitlabDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> list[GroupOfUser]:
    return await groups_service.get_user_groups_list(
        token=token,
        identity=AccountIdentity(account_id=account.account_id),
        gitlab=gitlab,
        conn=conn,
        log=log,
    )


@group_app.get(
    "/availability",
    summary="Check a group name",
    description=(
        "Check whether a name can be used for a new group, returning the slug "
        "the group would get."
    ),
    responses={
        200: {"description": "The name is available."},
        409: {"description": "The name is reserved or already taken."},
    },
)
async def check_availability(
    name: str,
    token: TokenDependency,
    account: AccountDependency,
    settings: SettingsDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> AvailabilityResponse:
    slug = await groups_service.check_availability(
        token=token,
        person_id=account.person_id,
        group_name=name,
        settings=settings,
        conn=conn,
        log=log,
    )

    return AvailabilityResponse(group_name=name, slug=slug)


@group_app.put(
    "",
    summary="Create a new group",
    description=(
        "Create a new group on GitLab and locally. The caller becomes the "
        "owner of the group."
    ),
    responses={
        200: {"description": "Group created successfully."},
        401: {"description": "Missing or unknown GitLab token."},
        409: {"description": "The name is reserved or already taken."},
    },
)
async def create_group(
    content: GroupCreationRequest,
    token: TokenDependency,
    settings: SettingsDependency,
    gitlab: GitlabDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> GroupData:
    group = await groups_service.create(
        owner_token=token,
        group_name=content.group_name,
        path=content.path,
        visibility=content.visibility,
        settings=settings,
        gitlab=gitlab,
        conn=conn,
        log=log,
    )

    return group.to_core()


@group_app.get(
    "/{group_id}",
    summary="Get group by ID",
    description="Retrieve a group and its members. The caller must be a member.",
    responses={
        200: {"description": "Group details with members."},
        403: {"description": "Access denied to this group."},
        404: {"description": "Group not found."},
    },
)
async def get_group_by_id(
    group_id: UUID,
    account: AccountDependency,
    gitlab: GitlabDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> GroupDetailResponse:
    log = log.bind(group_id=group_id, account_id=account.account_id)

    group = await groups_service.read_by_id(group_id=group_id, conn=conn, log=log)
    await members_service.assert_member(
        group_id=group_id, account=account, conn=conn, log=log
    )
    members = await members_service.list_members(
        group_id=group_id, gitlab=gitlab, conn=conn, log=log
    )

    return GroupDetailResponse(group=group.to_core(), members=members)


@group_app.post(
    "/{group_id}",
    summary="Update a group",
    description="Rename a group or change its path. Requires maintainer access.",
    responses={
        200: {"description": "Group updated."},
        403: {"description": "Access denied to this group."},
        404: {"description": "Group not found."},
        409: {"description": "Name taken, reserved, or group not linked."},
    },
)
async def update_group(
    group_id: UUID,
    content: GroupUpdateRequest,
    account: AccountDependency,
    settings: SettingsDependency,
    gitlab: GitlabDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> GroupData:
    log = log.bind(account_id=account.account_id)

    await members_service.assert_member(
        group_id=group_id,
        account=account,
        conn=conn,
        log=log,
        minimum_level=AccessLevel.MAINTAINER,
    )

    group = await groups_service.update(
        group_id=group_id,
        group_name=content.group_name,
        path=content.path,
        settings=settings,
        gitlab=gitlab,
        conn=conn,
        log=log,
    )

    return group.to_core()


@group_app.delete(
    "/{group_id}",
    summary="Delete a group",
    description="Delete a group on GitLab and locally. Requires owner access.",
    responses={
        200: {"description": "Group deleted successfully."},
        403: {"description": "Access denied to delete this group."},
        404: {"description": "Group not found."},
    },
)
async def delete_group(
    group_id: UUID,
    account: AccountDependency,
    gitlab: GitlabDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> None:
    log = log.bind(account_id=account.account_id)

    await members_service.assert_member(
        group_id=group_id,
        account=account,
        conn=conn,
        log=log,
        minimum_level=AccessLevel.OWNER,
    )

    await groups_service.delete_group(
        group_id=group_id, gitlab=gitlab, conn=conn, log=log
    )

    return None
