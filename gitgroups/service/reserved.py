"""
Names that may never be used for a group.
"""

from gitgroups.config.settings import Settings
from gitgroups.core.errors import Conflict, ErrorCode
from gitgroups.core.slugs import to_slug


def assert_not_reserved(name: str, settings: Settings) -> None:
    """
    Check that neither `name` nor its slug is one of the reserved names.

    Raises
    ------
    Conflict
        With code GroupNameReserved, if the name is reserved.
    """
    reserved = {x.strip().lower() for x in settings.reserved_names}

    if name.strip().lower() in reserved or to_slug(name) in reserved:
        raise Conflict(
            f"Group name {name} is reserved", error_code=ErrorCode.GROUP_NAME_RESERVED
        )
