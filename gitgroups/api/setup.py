"""
Initial setup of the service: the table schema, and for development against
the in-memory GitLab, a user to log in as.
"""

from sqlalchemy import select

from gitgroups.config.settings import Settings
from gitgroups.database.account import Account, Person
from gitgroups.gitlab.mock import MockGitlab

DEVELOPER_USER_NAME = "developer"
DEVELOPER_TOKEN = "developer-token"


def initial_setup(settings: Settings):
    """
    Create the database tables if they do not exist.
    """
    settings.sync_manager().create_all()


def development_setup(settings: Settings, gitlab: MockGitlab) -> str:
    """
    Register a developer on the mock GitLab and link them to a local account,
    returning the token to use against the API.
    """
    initial_setup(settings=settings)

    user = gitlab.add_user(
        username=DEVELOPER_USER_NAME,
        token=DEVELOPER_TOKEN,
        name="Developer",
        email="developer@example.com",
    )

    with settings.sync_manager().session() as conn:
        existing = conn.execute(
            select(Account).where(Account.user_name == DEVELOPER_USER_NAME)
        ).scalar_one_or_none()

        if existing is None:
            person = Person(name=user.name, gitlab_id=user.id)
            conn.add_all(
                [
                    person,
                    Account(
                        user_name=user.username,
                        email=user.email,
                        person_id=person.person_id,
                        person=person,
                    ),
                ]
            )
        else:
            existing.person.gitlab_id = user.id
            conn.add(existing)

        conn.commit()

    return DEVELOPER_TOKEN
