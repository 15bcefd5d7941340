"""
Exceptions shared by the service layer and the API.

Every exception carries the HTTP status code that the API should answer with
and a machine-readable error code.
"""

from enum import Enum


class ErrorCode(str, Enum):
    BAD_PARAMETERS = "BadParameters"
    NOT_FOUND = "NotFound"
    GROUP_NOT_FOUND = "GroupNotFound"
    USER_NOT_FOUND = "UserNotFound"
    ACCOUNT_NOT_FOUND = "AccountNotFound"
    UNKNOWN_GROUP = "UnknownGroup"
    UNKNOWN_USER = "UnknownUser"
    CONFLICT = "Conflict"
    GROUP_ALREADY_EXISTS = "GroupAlreadyExists"
    GROUP_NAME_RESERVED = "GroupNameReserved"
    ACCESS_DENIED = "AccessDenied"
    INCORRECT_CREDENTIALS = "IncorrectCredentials"


class GitgroupsError(Exception):
    status_code: int = 500
    error_code: ErrorCode = ErrorCode.BAD_PARAMETERS

    def __init__(self, message: str, error_code: ErrorCode | None = None):
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code


class BadParameters(GitgroupsError):
    status_code = 400
    error_code = ErrorCode.BAD_PARAMETERS


class NotFound(GitgroupsError):
    status_code = 404
    error_code = ErrorCode.NOT_FOUND


class GroupNotFound(NotFound):
    error_code = ErrorCode.GROUP_NOT_FOUND


class UserNotFound(NotFound):
    error_code = ErrorCode.USER_NOT_FOUND


class AccountNotFound(UserNotFound):
    error_code = ErrorCode.ACCOUNT_NOT_FOUND


class UnknownGroup(GitgroupsError):
    """
    The group exists locally but is not linked to a GitLab group.
    """

    status_code = 409
    error_code = ErrorCode.UNKNOWN_GROUP


class UnknownUser(GitgroupsError):
    """
    The account exists locally but its person has no GitLab user.
    """

    status_code = 409
    error_code = ErrorCode.UNKNOWN_USER


class Conflict(GitgroupsError):
    status_code = 409
    error_code = ErrorCode.CONFLICT


class AccessDenied(GitgroupsError):
    status_code = 403
    error_code = ErrorCode.ACCESS_DENIED


class IncorrectCredentials(GitgroupsError):
    status_code = 401
    error_code = ErrorCode.INCORRECT_CREDENTIALS
