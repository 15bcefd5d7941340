"""
Core group data models.
"""

from datetime import datetime

from pydantic import BaseModel

from gitgroups.core.access import AccessLevel, Visibility
from gitgroups.core.uuid import UUID


class GroupData(BaseModel):
    group_id: UUID
    name: str
    slug: str
    gitlab_id: int | None
    visibility: Visibility
    created_at: datetime | None = None


class GroupOfUser(BaseModel):
    """
    A group as seen by one of its members.
    """

    id: UUID
    gitlab_id: int | None
    name: str
    access_level: AccessLevel
