"""
Identities that can be resolved to a single local account.

An identity is a tagged variant: exactly one way of pointing at an account.
Use `identity_from` to build one from several optional keys.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from gitgroups.core.errors import BadParameters
from gitgroups.core.uuid import UUID


class TokenIdentity(BaseModel):
    kind: Literal["token"] = "token"
    token: str


class PersonIdentity(BaseModel):
    kind: Literal["person_id"] = "person_id"
    person_id: UUID


class AccountIdentity(BaseModel):
    kind: Literal["account_id"] = "account_id"
    account_id: UUID


class EmailIdentity(BaseModel):
    kind: Literal["email"] = "email"
    email: str


class UsernameIdentity(BaseModel):
    kind: Literal["user_name"] = "user_name"
    user_name: str


class GitlabIdentity(BaseModel):
    kind: Literal["gitlab_id"] = "gitlab_id"
    gitlab_id: int


Identity = Annotated[
    Union[
        TokenIdentity,
        PersonIdentity,
        AccountIdentity,
        EmailIdentity,
        UsernameIdentity,
        GitlabIdentity,
    ],
    Field(discriminator="kind"),
]


def identity_from(
    token: str | None = None,
    person_id: UUID | None = None,
    account_id: UUID | None = None,
    email: str | None = None,
    user_name: str | None = None,
    gitlab_id: int | None = None,
) -> Identity:
    """
    Pick the identity to resolve from a set of optional keys. When several are
    given the first in the order token, person id, account id, email, user
    name, GitLab id wins.

    Raises
    ------
    BadParameters
        If no key was supplied.
    """
    if token is not None:
        return TokenIdentity(token=token)
    if person_id is not None:
        return PersonIdentity(person_id=person_id)
    if account_id is not None:
        return AccountIdentity(account_id=account_id)
    if email is not None:
        return EmailIdentity(email=email)
    if user_name is not None:
        return UsernameIdentity(user_name=user_name)
    if gitlab_id is not None:
        return GitlabIdentity(gitlab_id=gitlab_id)

    raise BadParameters("At least one identity parameter must be provided")
