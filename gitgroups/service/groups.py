"""
Service layer for groups. Every group is mirrored to a GitLab group: changes
are applied on GitLab first and then recorded locally.
"""

from datetime import datetime, timezone

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from gitgroups.config.settings import Settings
from gitgroups.core.access import Visibility, from_gitlab_access_level
from gitgroups.core.errors import Conflict, ErrorCode, GroupNotFound, UnknownGroup
from gitgroups.core.group import GroupOfUser
from gitgroups.core.identity import Identity, TokenIdentity
from gitgroups.core.slugs import to_slug
from gitgroups.core.uuid import UUID
from gitgroups.database.group import Group, Membership
from gitgroups.gitlab.client import GitlabClient, GitlabError

from . import accounts as account_service
from .events import dispatch_event
from .reserved import assert_not_reserved
from .sync import UserInformationRefresh


def require_gitlab_id(group: Group) -> int:
    """
    Raises
    ------
    UnknownGroup
        If the group is not linked to a GitLab group.
    """
    if group.gitlab_id is None:
        raise UnknownGroup(f"Group {group.group_id} is not connected to GitLab")

    return group.gitlab_id


async def create(
    owner_token: str,
    group_name: str,
    path: str | None,
    visibility: Visibility | None,
    settings: Settings,
    gitlab: GitlabClient,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Group:
    """
    Create a new group, on GitLab and locally.

    Parameters
    ----------
    owner_token: str
        GitLab token of the user creating (and owning) the group.
    group_name: str
        The new group's name.
    path: str | None
        The GitLab path for the group; defaults to the slug of the name.
    visibility: Visibility | None
        Defaults to private.

    Raises
    ------
    IncorrectCredentials
        If the token does not belong to a known account.
    Conflict
        If the name is reserved or a group with this name or slug exists.
    GitlabError
        If GitLab refuses to create the group.
    """
    visibility = visibility or Visibility.PRIVATE

    log = log.bind(group_name=group_name, path=path, visibility=visibility)

    owner = await account_service.resolve(
        TokenIdentity(token=owner_token), gitlab=gitlab, conn=conn, log=log
    )
    log = log.bind(account_id=owner.account_id)

    slug = to_slug(group_name)
    assert_not_reserved(group_name, settings=settings)

    existing = await conn.execute(
        select(Group).where(or_(Group.name == group_name, Group.slug == slug))
    )

    if existing.scalars().first() is not None:
        await log.ainfo("group.exists", slug=slug)
        raise Conflict(
            f"Group {group_name} already exists",
            error_code=ErrorCode.GROUP_ALREADY_EXISTS,
        )

    try:
        gitlab_group = await gitlab.user_create_group(
            token=owner_token,
            group_name=group_name,
            path=path or slug,
            visibility=visibility,
        )
    except GitlabError as e:
        await log.aerror("group.gitlab_create_failed", error=str(e))
        if e.status_code in (400, 409):
            raise Conflict(
                f"GitLab refused group {group_name}: {e}",
                error_code=ErrorCode.GROUP_ALREADY_EXISTS,
            )
        raise

    log = log.bind(gitlab_id=gitlab_group.id)

    group = Group(
        name=group_name,
        slug=slug,
        gitlab_id=gitlab_group.id,
        visibility=visibility,
        created_at=datetime.now(tz=timezone.utc),
    )

    try:
        conn.add(group)
        await conn.flush()
    except IntegrityError as e:
        await log.aerror("group.local_create_failed", error=str(e))
        raise Conflict(
            f"Group {group_name} already exists",
            error_code=ErrorCode.GROUP_ALREADY_EXISTS,
        )

    await log.ainfo("group.created", group_id=group.group_id)

    await dispatch_event(
        UserInformationRefresh(group_id=group.group_id, account_ids=[owner.account_id]),
        gitlab=gitlab,
        conn=conn,
        log=log,
    )

    return group


async def get_group_list(
    conn: AsyncSession,
    log: FilteringBoundLogger,
    for_person: UUID | None = None,
) -> list[Group]:
    """
    Get a list of all groups, or of the groups a person is a member of.
    """
    log = log.bind(for_person=for_person)
    if for_person:
        result = await conn.execute(
            select(Group)
            .join(Membership, Membership.group_id == Group.group_id)
            .where(Membership.person_id == for_person)
        )
    else:
        result = await conn.execute(select(Group))

    groups = result.scalars().all()
    await log.adebug("group.listed", number_of_groups=len(groups))
    return list(groups)


async def read_by_id(
    group_id: UUID,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Group:
    """
    Read a group by its ID.

    Raises
    ------
    GroupNotFound
        If the group does not exist.
    """
    log = log.bind(group_id=group_id)
    group = await conn.get(Group, group_id)
    if not group:
        await log.ainfo("group.not_found")
        raise GroupNotFound(f"Group with id {group_id} not found")
    await log.adebug("group.found")
    return group


async def read_by_name(
    group_name: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Group:
    log = log.bind(group_name=group_name)
    result = await conn.execute(select(Group).where(Group.name == group_name))
    group = result.scalar_one_or_none()
    if not group:
        await log.ainfo("group.not_found")
        raise GroupNotFound(f"Group with name {group_name} not found")
    await log.adebug("group.found")
    return group


async def read_by_slug(
    slug: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Group:
    log = log.bind(slug=slug)
    result = await conn.execute(select(Group).where(Group.slug == slug))
    group = result.scalar_one_or_none()
    if not group:
        await log.ainfo("group.not_found")
        raise GroupNotFound(f"Group with slug {slug} not found")
    await log.adebug("group.found")
    return group


async def read_by_gitlab_id(
    gitlab_id: int,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Group:
    log = log.bind(gitlab_id=gitlab_id)
    result = await conn.execute(select(Group).where(Group.gitlab_id == gitlab_id))
    group = result.scalar_one_or_none()
    if not group:
        await log.ainfo("group.not_found")
        raise GroupNotFound(f"Group with GitLab id {gitlab_id} not found")
    return group


async def update(
    group_id: UUID,
    group_name: str | None,
    path: str | None,
    settings: Settings,
    gitlab: GitlabClient,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Group:
    """
    Rename a group and/or change its GitLab path. GitLab is updated first; the
    local name is then set to the name GitLab confirmed, and the slug is
    recomputed from it.

    Raises
    ------
    GroupNotFound
        If the group does not exist.
    UnknownGroup
        If the group is not linked to GitLab.
    Conflict
        If the name is reserved or its slug belongs to another group.
    """
    log = log.bind(group_id=group_id, group_name=group_name, path=path)

    group = await read_by_id(group_id=group_id, conn=conn, log=log)
    gitlab_id = require_gitlab_id(group)

    assert_not_reserved(group_name or group.name, settings=settings)

    if group_name is not None:
        result = await conn.execute(
            select(Group).where(
                Group.slug == to_slug(group_name), Group.group_id != group_id
            )
        )
        if result.scalars().first() is not None:
            await log.ainfo("group.update.slug_taken")
            raise Conflict(
                f"Group {group_name} already exists",
                error_code=ErrorCode.GROUP_ALREADY_EXISTS,
            )

    gitlab_group = await gitlab.admin_update_group(
        group_id=gitlab_id, group_name=group_name, path=path
    )

    group.name = gitlab_group.name
    group.slug = to_slug(gitlab_group.name)
    conn.add(group)
    await conn.flush()

    await log.ainfo("group.updated", slug=group.slug)

    return group


async def delete_group(
    group_id: UUID,
    gitlab: GitlabClient,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> None:
    """
    Delete a group on GitLab, then locally along with its membership records.
    A failure of the local deletion does not restore the GitLab group.

    Raises
    ------
    GroupNotFound
        If the group does not exist.
    UnknownGroup
        If the group is not linked to GitLab.
    """
    log = log.bind(group_id=group_id)

    group = await read_by_id(group_id=group_id, conn=conn, log=log)
    gitlab_id = require_gitlab_id(group)

    await gitlab.admin_delete_group(group_id=gitlab_id)
    await log.ainfo("group.gitlab_deleted", gitlab_id=gitlab_id)

    try:
        await conn.execute(delete(Membership).where(Membership.group_id == group_id))
        await conn.delete(group)
        await conn.flush()
    except Exception as e:
        await log.aerror("group.delete.local_failed", gitlab_id=gitlab_id, error=str(e))
        raise

    await log.ainfo("group.deleted")


async def check_availability(
    token: str,
    person_id: UUID,
    group_name: str,
    settings: Settings,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> str:
    """
    Check whether `group_name` could be used for a new group, returning the
    slug it would get. Nothing is persisted.

    Raises
    ------
    Conflict
        If the name is reserved, or with code GroupAlreadyExists if its slug
        is taken.
    """
    log = log.bind(person_id=person_id, group_name=group_name)

    slug = to_slug(group_name)
    assert_not_reserved(group_name, settings=settings)

    result = await conn.execute(select(Group).where(Group.slug == slug))

    if result.scalars().first() is not None:
        await log.ainfo("group.availability.taken", slug=slug)
        raise Conflict(
            f"Group {group_name} already exists (slug {slug})",
            error_code=ErrorCode.GROUP_ALREADY_EXISTS,
        )

    await log.adebug("group.availability.free", slug=slug)

    return slug


async def get_user_groups_list(
    token: str,
    identity: Identity,
    gitlab: GitlabClient,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> list[GroupOfUser]:
    """
    List the groups visible to `token` on GitLab together with the access
    level the account behind `identity` holds in each. Groups that cannot be
    matched (unknown locally, or the account is not on the roster) are logged
    and skipped.

    Raises
    ------
    AccountNotFound
        If the identity does not resolve.
    """
    account = await account_service.resolve(
        identity=identity, gitlab=gitlab, conn=conn, log=log
    )
    log = log.bind(account_id=account.account_id)

    result = []

    for gitlab_group in await gitlab.user_get_user_groups(token):
        try:
            members = await gitlab.admin_get_group_members(gitlab_group.id)
            level = next(m.access_level for m in members if m.id == account.gitlab_id)
            group = await read_by_gitlab_id(gitlab_group.id, conn=conn, log=log)
            result.append(group.to_group_of_user(from_gitlab_access_level(level)))
        except Exception as e:
            await log.aerror(
                "group.user_groups.skipped", gitlab_id=gitlab_group.id, error=repr(e)
            )

    await log.adebug("group.user_groups.listed", number_of_groups=len(result))

    return result
