"""
Keeps the local membership records in step with GitLab after a mutation.
"""

from typing import ClassVar

from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from gitgroups.core.access import from_gitlab_access_level
from gitgroups.core.errors import BadParameters
from gitgroups.core.uuid import UUID
from gitgroups.database.account import Account
from gitgroups.database.group import Group, Membership
from gitgroups.gitlab.client import GitlabClient

from .events import Event, register_event_handler


class UserInformationRefresh(Event):
    """
    The memberships of `account_ids` in `group_id` may have changed.
    """

    event_type: ClassVar[str] = "user_information.refresh"

    group_id: UUID
    account_ids: list[UUID]


@register_event_handler(UserInformationRefresh.event_type)
async def refresh_user_information(
    event: UserInformationRefresh,
    gitlab: GitlabClient,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> None:
    """
    Re-read the group's roster from GitLab and create, update or delete the
    membership records of the affected accounts to match it.
    """
    log = log.bind(group_id=event.group_id, account_ids=event.account_ids)

    if not event.account_ids:
        return

    group = await conn.get(Group, event.group_id)

    if group is None or group.gitlab_id is None:
        await log.ainfo("sync.group_not_linked")
        return

    roster = {
        member.id: member.access_level
        for member in await gitlab.admin_get_group_members(group.gitlab_id)
    }

    for account_id in event.account_ids:
        account = await conn.get(Account, account_id)

        if account is None:
            continue

        membership = await conn.get(
            Membership, {"person_id": account.person_id, "group_id": group.group_id}
        )

        try:
            level = (
                from_gitlab_access_level(roster[account.gitlab_id])
                if account.gitlab_id in roster
                else None
            )
        except BadParameters:
            # Minimal access does not make a member.
            level = None

        if level is None:
            if membership is not None:
                await conn.delete(membership)
                await log.ainfo("sync.membership_removed", account_id=account_id)
        elif membership is None:
            conn.add(
                Membership(
                    person_id=account.person_id,
                    group_id=group.group_id,
                    access_level=level,
                )
            )
            await log.ainfo("sync.membership_added", account_id=account_id)
        elif membership.access_level != level:
            membership.access_level = level
            conn.add(membership)
            await log.ainfo("sync.membership_updated", account_id=account_id)

    await conn.flush()
