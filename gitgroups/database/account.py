"""
ORM for people and their accounts.
"""

from sqlalchemy import BigInteger, Column
from sqlmodel import Field, Relationship, SQLModel

from gitgroups.core.access import AccessLevel
from gitgroups.core.user import AccountData, PersonData, UserInGroup
from gitgroups.core.uuid import UUID, uuid7


class Person(SQLModel, table=True):
    person_id: UUID = Field(primary_key=True, default_factory=uuid7)

    name: str | None = None
    # The numeric user id on GitLab; None if the person was never linked.
    gitlab_id: int | None = Field(
        default=None, sa_column=Column(BigInteger, unique=True, nullable=True)
    )

    def to_core(self) -> PersonData:
        return PersonData(
            person_id=self.person_id, name=self.name, gitlab_id=self.gitlab_id
        )


class Account(SQLModel, table=True):
    account_id: UUID = Field(primary_key=True, default_factory=uuid7)

    user_name: str = Field(unique=True)
    email: str | None = Field(default=None, unique=True)

    person_id: UUID = Field(
        foreign_key="person.person_id", unique=True, ondelete="CASCADE"
    )
    # The person is needed for nearly every lookup, so always load it.
    person: Person = Relationship(sa_relationship_kwargs=dict(lazy="joined"))

    @property
    def gitlab_id(self) -> int | None:
        return self.person.gitlab_id

    def to_core(self) -> AccountData:
        return AccountData(
            account_id=self.account_id,
            user_name=self.user_name,
            email=self.email,
            person=self.person.to_core(),
        )

    def to_user_in_group(self, access_level: AccessLevel) -> UserInGroup:
        return UserInGroup(
            id=self.account_id,
            user_name=self.user_name,
            email=self.email,
            gitlab_id=self.gitlab_id,
            access_level=access_level,
        )
