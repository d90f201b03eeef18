"""Error codes and the exceptions the API turns into error bodies.

Every ``AppException`` renders as ``{error_code, message, details}`` with its
``status_code``. The social backend catches them and hands the message to the
inbox as a failed result, so messages are written for end users.
"""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    # 401
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"

    # 404
    USER_NOT_FOUND = "USER_NOT_FOUND"
    GROUP_NOT_FOUND = "GROUP_NOT_FOUND"
    FRIEND_REQUEST_NOT_FOUND = "FRIEND_REQUEST_NOT_FOUND"
    NOTIFICATION_NOT_FOUND = "NOTIFICATION_NOT_FOUND"

    # 400 / 422
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_FRIEND_REQUEST = "INVALID_FRIEND_REQUEST"

    # 409
    ALREADY_FRIENDS = "ALREADY_FRIENDS"
    DUPLICATE_FRIEND_REQUEST = "DUPLICATE_FRIEND_REQUEST"
    ALREADY_A_GROUP_MEMBER = "ALREADY_A_GROUP_MEMBER"

    # 429
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # 5xx
    INTERNAL_ERROR = "INTERNAL_ERROR"
    ACTION_FAILED = "ACTION_FAILED"


class AppException(Exception):
    """Base application exception."""

    status_code = 400

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int | None = None,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(message)


class AuthenticationError(AppException):
    status_code = 401

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(error_code, message)


class NotFoundError(AppException):
    """A referenced profile, group, request or notification does not exist."""

    status_code = 404
    code: ErrorCode
    label: str
    id_field: str

    def __init__(self, object_id: str) -> None:
        super().__init__(self.code, self.describe(object_id), details={self.id_field: object_id})

    def describe(self, object_id: str) -> str:
        return f"{self.label} not found"


class UserNotFoundError(NotFoundError):
    code = ErrorCode.USER_NOT_FOUND
    label = "User"
    id_field = "user_id"


class GroupNotFoundError(NotFoundError):
    code = ErrorCode.GROUP_NOT_FOUND
    label = "Group"
    id_field = "group_id"


class FriendRequestNotFoundError(NotFoundError):
    code = ErrorCode.FRIEND_REQUEST_NOT_FOUND
    label = "Friend request"
    id_field = "request_id"


class NotificationNotFoundError(NotFoundError):
    code = ErrorCode.NOTIFICATION_NOT_FOUND
    label = "Notification"
    id_field = "notification_id"

    def describe(self, object_id: str) -> str:
        return f"Notification not found: {object_id}"


class InvalidFriendRequestError(AppException):
    """Sender or recipient missing, or both are the same user."""

    def __init__(self, message: str = "Invalid user IDs") -> None:
        super().__init__(ErrorCode.INVALID_FRIEND_REQUEST, message)


class ConflictError(AppException):
    status_code = 409


class AlreadyFriendsError(ConflictError):
    def __init__(self, user_id: str) -> None:
        super().__init__(ErrorCode.ALREADY_FRIENDS, "Already friends", details={"user_id": user_id})


class DuplicateFriendRequestError(ConflictError):
    """A request between the two users exists in either direction."""

    def __init__(self, request_id: str, pending: bool = True) -> None:
        message = (
            "Request already sent"
            if pending
            else "A previous request exists. Please wait for it to be processed."
        )
        super().__init__(
            ErrorCode.DUPLICATE_FRIEND_REQUEST, message, details={"request_id": request_id}
        )


class AlreadyAGroupMemberError(ConflictError):
    def __init__(self, user_id: str) -> None:
        super().__init__(
            ErrorCode.ALREADY_A_GROUP_MEMBER,
            "User is already a member",
            details={"user_id": user_id},
        )


class ActionFailedError(AppException):
    """An inbox action reached the backend and was rejected."""

    status_code = 502

    def __init__(self, action: str, message: str, target_id: str | None = None) -> None:
        super().__init__(
            ErrorCode.ACTION_FAILED,
            message,
            details={"action": action, "target_id": target_id},
        )
