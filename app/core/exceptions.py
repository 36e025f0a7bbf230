"""
Domain errors raised by the services and converted to responses in main.py
"""
from typing import Any, Optional


class SocialError(Exception):
    """Base class for errors surfaced to the client"""
    status_code = 400
    code = "error"

    def __init__(self, message: str, data: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.data = data


class NotAuthenticated(SocialError):
    status_code = 401
    code = "not_authenticated"

    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


class NotFound(SocialError):
    """Row absent, or the caller lacks the role the predicate requires"""
    status_code = 404
    code = "not_found"


class AlreadyRequested(SocialError):
    """A friend request already exists between the pair; carries it unchanged"""
    status_code = 409
    code = "already_requested"

    def __init__(self, request: Any, message: str = "Friend request already exists"):
        super().__init__(message, data=request)
        self.request = request


class AlreadyExists(SocialError):
    status_code = 409
    code = "already_exists"


class EmptyContent(SocialError):
    status_code = 400
    code = "empty_content"

    def __init__(self, message: str = "Content cannot be empty"):
        super().__init__(message)


class InvalidInput(SocialError):
    status_code = 400
    code = "invalid_input"


class RemoteCallFailed(SocialError):
    """Store error passed through with its message"""
    status_code = 502
    code = "remote_call_failed"


class DeletionNotVerified(RemoteCallFailed):
    """A row was still present after it was deleted"""
    code = "deletion_not_verified"
