class TaskboardError(Exception):
    """Base exception for Taskboard application.

    ``code`` and ``status_code`` drive the HTTP translation in ``taskboard.main``.
    """

    code = "internal_failure"
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        self.message = message
        super().__init__(message)


class InvalidArgumentError(TaskboardError):
    """Raised when input is missing or malformed (empty id, unknown status)."""

    code = "invalid_argument"
    status_code = 400


class NotFoundError(TaskboardError):
    """Raised when a referenced entity does not exist in the caller's tenant."""

    code = "not_found"
    status_code = 404


class ForbiddenError(TaskboardError):
    """Raised when the caller is authenticated but not allowed to act."""

    code = "forbidden"
    status_code = 403


class InternalFailureError(TaskboardError):
    """Raised when the storage layer fails. Message is never shown to clients."""

    pass
