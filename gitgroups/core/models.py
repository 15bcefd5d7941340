"""
Pydantic models for request/responses to APIs.
"""

from pydantic import BaseModel

from gitgroups.core.access import AccessLevel, Visibility
from gitgroups.core.group import GroupData
from gitgroups.core.user import UserInGroup


class GroupCreationRequest(BaseModel):
    group_name: str
    path: str | None = None
    visibility: Visibility | None = None


class GroupUpdateRequest(BaseModel):
    group_name: str | None = None
    path: str | None = None


class AvailabilityResponse(BaseModel):
    group_name: str
    slug: str


class GroupDetailResponse(BaseModel):
    group: GroupData
    members: list[UserInGroup]


class AccessLevelContent(BaseModel):
    access_level: AccessLevel = AccessLevel.GUEST


class MembershipCheckResponse(BaseModel):
    is_member: bool
