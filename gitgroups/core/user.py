"""
Shared account objects that are serialized.
"""

from pydantic import BaseModel, Field

from gitgroups.core.access import AccessLevel
from gitgroups.core.uuid import UUID


class PersonData(BaseModel):
    person_id: UUID
    name: str | None
    gitlab_id: int | None


class AccountData(BaseModel):
    account_id: UUID
    user_name: str
    email: str | None
    person: PersonData


class UserInGroup(BaseModel):
    """
    An account together with its access level in a group. Used to report
    rosters and as the input of the batch membership operations, where any
    of `id`, `user_name`, `email` or `gitlab_id` may identify the account.
    """

    id: UUID | None = None
    user_name: str | None = None
    email: str | None = None
    gitlab_id: int | None = None
    access_level: AccessLevel = AccessLevel.GUEST


class FailedMember(BaseModel):
    user: UserInGroup
    reason: str


class MembershipBatchResult(BaseModel):
    """
    Outcome of a best-effort batch operation over a list of users.
    """

    succeeded: list[UserInGroup] = Field(default_factory=list)
    failed: list[FailedMember] = Field(default_factory=list)
    # The group's roster after the operation.
    members: list[UserInGroup] = Field(default_factory=list)
