"""
Custom Exception Classes for VideoTube

Domain exceptions raised by the service layer. Each one carries the HTTP
status and a machine-readable error code so the handlers in
``videotube.exception_handlers`` can render a consistent error envelope.
"""

from enum import Enum
from typing import Any

from fastapi import status


class ErrorCode(str, Enum):
    """Machine-readable error codes returned in the error envelope."""

    AUTH_FAILED = "AUTH_FAILED"
    AUTH_INVALID_CREDENTIALS = "AUTH_INVALID_CREDENTIALS"
    AUTH_TOKEN_EXPIRED = "AUTH_TOKEN_EXPIRED"
    AUTH_TOKEN_INVALID = "AUTH_TOKEN_INVALID"
    AUTH_PERMISSION_DENIED = "AUTH_PERMISSION_DENIED"

    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_USER_NOT_FOUND = "RESOURCE_USER_NOT_FOUND"
    RESOURCE_VIDEO_NOT_FOUND = "RESOURCE_VIDEO_NOT_FOUND"
    RESOURCE_COMMENT_NOT_FOUND = "RESOURCE_COMMENT_NOT_FOUND"
    RESOURCE_TWEET_NOT_FOUND = "RESOURCE_TWEET_NOT_FOUND"
    RESOURCE_PLAYLIST_NOT_FOUND = "RESOURCE_PLAYLIST_NOT_FOUND"
    RESOURCE_HISTORY_NOT_FOUND = "RESOURCE_HISTORY_NOT_FOUND"

    VALIDATION_FAILED = "VALIDATION_FAILED"
    VALIDATION_DUPLICATE_RESOURCE = "VALIDATION_DUPLICATE_RESOURCE"
    INVALID_OPERATION = "INVALID_OPERATION"

    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class VideoTubeError(Exception):
    """Base exception class for all VideoTube errors"""

    error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
        error_code: ErrorCode | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        if error_code is not None:
            self.error_code = error_code
        super().__init__(self.message)


# ============================================================================
# Authentication & Authorization Exceptions
# ============================================================================


class AuthenticationError(VideoTubeError):
    """Raised when authentication fails"""

    error_code = ErrorCode.AUTH_FAILED

    def __init__(self, message: str = "Authentication failed", details: dict[str, Any] | None = None):
        super().__init__(message=message, status_code=status.HTTP_401_UNAUTHORIZED, details=details)


class InvalidCredentialsError(AuthenticationError):
    """Raised when login credentials are invalid"""

    error_code = ErrorCode.AUTH_INVALID_CREDENTIALS

    def __init__(self, message: str = "Invalid username, email or password"):
        super().__init__(message=message)


class TokenExpiredError(AuthenticationError):
    """Raised when a JWT has expired"""

    error_code = ErrorCode.AUTH_TOKEN_EXPIRED

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message=message)


class InvalidTokenError(AuthenticationError):
    """Raised when a JWT is invalid, or a refresh token was already used"""

    error_code = ErrorCode.AUTH_TOKEN_INVALID

    def __init__(self, message: str = "Invalid or malformed token"):
        super().__init__(message=message)


class AuthorizationError(VideoTubeError):
    """Raised when a user acts on a resource they do not own"""

    error_code = ErrorCode.AUTH_PERMISSION_DENIED

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(message=message, status_code=status.HTTP_403_FORBIDDEN)


# ============================================================================
# Resource Not Found Exceptions
# ============================================================================


class ResourceNotFoundError(VideoTubeError):
    """Base class for resource not found errors"""

    error_code = ErrorCode.RESOURCE_NOT_FOUND

    def __init__(self, resource_type: str, resource_id: Any | None = None):
        message = f"{resource_type} not found"
        if resource_id is not None:
            message = f"{resource_type} with id '{resource_id}' not found"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class UserNotFoundError(ResourceNotFoundError):
    error_code = ErrorCode.RESOURCE_USER_NOT_FOUND

    def __init__(self, user_id: Any | None = None):
        super().__init__(resource_type="User", resource_id=user_id)


class VideoNotFoundError(ResourceNotFoundError):
    error_code = ErrorCode.RESOURCE_VIDEO_NOT_FOUND

    def __init__(self, video_id: Any | None = None):
        super().__init__(resource_type="Video", resource_id=video_id)


class CommentNotFoundError(ResourceNotFoundError):
    error_code = ErrorCode.RESOURCE_COMMENT_NOT_FOUND

    def __init__(self, comment_id: Any | None = None):
        super().__init__(resource_type="Comment", resource_id=comment_id)


class TweetNotFoundError(ResourceNotFoundError):
    error_code = ErrorCode.RESOURCE_TWEET_NOT_FOUND

    def __init__(self, tweet_id: Any | None = None):
        super().__init__(resource_type="Tweet", resource_id=tweet_id)


class PlaylistNotFoundError(ResourceNotFoundError):
    error_code = ErrorCode.RESOURCE_PLAYLIST_NOT_FOUND

    def __init__(self, playlist_id: Any | None = None):
        super().__init__(resource_type="Playlist", resource_id=playlist_id)


class HistoryEntryNotFoundError(ResourceNotFoundError):
    error_code = ErrorCode.RESOURCE_HISTORY_NOT_FOUND

    def __init__(self, entry_id: Any | None = None):
        super().__init__(resource_type="Watch history entry", resource_id=entry_id)


# ============================================================================
# Validation & Business Logic Exceptions
# ============================================================================


class ValidationError(VideoTubeError):
    """Raised when input fails a business rule"""

    error_code = ErrorCode.VALIDATION_FAILED

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST, details=error_details)


class DuplicateResourceError(VideoTubeError):
    """Raised when attempting to create a duplicate resource"""

    error_code = ErrorCode.VALIDATION_DUPLICATE_RESOURCE

    def __init__(self, resource_type: str, field: str, value: Any):
        super().__init__(
            message=f"{resource_type} with {field} '{value}' already exists",
            status_code=status.HTTP_409_CONFLICT,
            details={"resource_type": resource_type, "field": field, "value": value},
        )


class InvalidOperationError(VideoTubeError):
    """Raised when an operation is invalid in the current state"""

    error_code = ErrorCode.INVALID_OPERATION

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


# ============================================================================
# Storage Exceptions
# ============================================================================


class TransientStoreError(VideoTubeError):
    """
    Raised when the database is unavailable or times out.

    Nothing was persisted; the caller may retry the request.
    """

    error_code = ErrorCode.STORE_UNAVAILABLE

    def __init__(self, message: str = "The data store is temporarily unavailable", operation: str | None = None):
        details = {"operation": operation} if operation else {}
        super().__init__(message=message, status_code=status.HTTP_503_SERVICE_UNAVAILABLE, details=details)
