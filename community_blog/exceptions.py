"""
Exceptions raised by the community_blog stores and remote backends.
"""


class BlogError(Exception):
    """Base exception for community_blog errors."""

    code = "BLOG_ERROR"

    def __init__(self, message, details=None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self):
        """Convert the exception to the standard error format."""
        return {
            "code": self.code,
            "message": str(self),
            "details": self.details,
        }


class ValidationError(BlogError):
    """Raised when input fails local validation (missing field, empty notes)."""

    code = "VALIDATION_ERROR"


class TransitionError(ValidationError):
    """Raised when a status change is not a legal lifecycle transition."""

    code = "ILLEGAL_TRANSITION"

    def __init__(self, current, target, details=None):
        super().__init__(
            f"Cannot move a post from '{current}' to '{target}'",
            details=details,
        )
        self.current = current
        self.target = target


class AuthError(BlogError):
    """Raised when there is no session or the identity lacks the role."""

    code = "AUTH_ERROR"


class RemoteError(BlogError):
    """Raised when the remote data service fails."""

    code = "REMOTE_ERROR"


class NotFoundError(RemoteError):
    """Raised when a requested row does not exist."""

    code = "NOT_FOUND"

    def __init__(self, resource_type, resource_id, details=None):
        super().__init__(
            f"{resource_type} with id '{resource_id}' not found",
            details=details,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id
