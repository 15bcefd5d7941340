"""
Group ORM
"""

from datetime import datetime

from sqlalchemy import BigInteger, Column, DateTime
from sqlmodel import Field, SQLModel

from gitgroups.core.access import AccessLevel, Visibility
from gitgroups.core.group import GroupData, GroupOfUser
from gitgroups.core.uuid import UUID, uuid7


class Membership(SQLModel, table=True):
    """
    A record of a person's membership of a group, mirrored from GitLab.
    """

    person_id: UUID = Field(
        primary_key=True, foreign_key="person.person_id", ondelete="CASCADE"
    )
    group_id: UUID = Field(
        primary_key=True, foreign_key="group.group_id", ondelete="CASCADE"
    )
    access_level: AccessLevel = AccessLevel.GUEST


class Group(SQLModel, table=True):
    group_id: UUID = Field(primary_key=True, default_factory=uuid7)

    name: str = Field(unique=True)
    slug: str = Field(unique=True, index=True)
    # None until the group has been created on GitLab.
    gitlab_id: int | None = Field(
        default=None, sa_column=Column(BigInteger, unique=True, nullable=True)
    )
    visibility: Visibility = Visibility.PRIVATE
    created_at: datetime | None = Field(
        sa_column=Column(DateTime(timezone=True)), default=None
    )

    def to_core(self) -> GroupData:
        """
        Convert this Group ORM object to a GroupData core object.
        """
        return GroupData(
            group_id=self.group_id,
            name=self.name,
            slug=self.slug,
            gitlab_id=self.gitlab_id,
            visibility=self.visibility,
            created_at=self.created_at,
        )

    def to_group_of_user(self, access_level: AccessLevel) -> GroupOfUser:
        return GroupOfUser(
            id=self.group_id,
            gitlab_id=self.gitlab_id,
            name=self.name,
            access_level=access_level,
        )
