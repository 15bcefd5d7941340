"""
Access levels and visibility, and their translation to the GitLab scales.
"""

from enum import Enum, IntEnum

from .errors import BadParameters


class AccessLevel(IntEnum):
    """
    Ordered permission tier of a member within a group.
    """

    GUEST = 1
    REPORTER = 2
    DEVELOPER = 3
    MAINTAINER = 4
    OWNER = 5


class GitlabAccessLevel(IntEnum):
    NO_ACCESS = 0
    MINIMAL_ACCESS = 5
    GUEST = 10
    REPORTER = 20
    DEVELOPER = 30
    MAINTAINER = 40
    OWNER = 50


class Visibility(str, Enum):
    PRIVATE = "private"
    PUBLIC = "public"


_TO_GITLAB = {
    AccessLevel.GUEST: GitlabAccessLevel.GUEST,
    AccessLevel.REPORTER: GitlabAccessLevel.REPORTER,
    AccessLevel.DEVELOPER: GitlabAccessLevel.DEVELOPER,
    AccessLevel.MAINTAINER: GitlabAccessLevel.MAINTAINER,
    AccessLevel.OWNER: GitlabAccessLevel.OWNER,
}

_FROM_GITLAB = {value: key for key, value in _TO_GITLAB.items()}


def to_gitlab_access_level(level: AccessLevel | int) -> GitlabAccessLevel:
    """
    Translate a local access level to the GitLab one.

    Raises
    ------
    BadParameters
        If the level has no GitLab counterpart.
    """
    try:
        return _TO_GITLAB[AccessLevel(level)]
    except (KeyError, ValueError):
        raise BadParameters(f"Access level {level} is not supported by GitLab")


def from_gitlab_access_level(level: GitlabAccessLevel | int) -> AccessLevel:
    """
    Translate a GitLab access level to the local one.

    Raises
    ------
    BadParameters
        If the level has no local counterpart (e.g. minimal access).
    """
    try:
        return _FROM_GITLAB[GitlabAccessLevel(level)]
    except (KeyError, ValueError):
        raise BadParameters(f"GitLab access level {level} has no local equivalent")
