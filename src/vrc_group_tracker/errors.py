from __future__ import annotations


class TrackerError(Exception):
    """Base error for expected failures. Each one ends the run."""

    def __init__(self, message: str, *, exit_code: int = 2):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code


class InputError(TrackerError):
    def __init__(self, message: str = "invalid input"):
        super().__init__(message)


class AuthenticationError(TrackerError):
    def __init__(self, message: str = "failed to authenticate"):
        super().__init__(message)


class NotGroupMemberError(TrackerError):
    def __init__(self, group_id: str):
        super().__init__(f"user must be a member of group {group_id}")
        self.group_id = group_id


class RemoteApiError(TrackerError):
    """Raised for any failed call to the remote API.

    ``error_code`` is the HTTP status of the response, or 0 when no response
    was received at all.
    """

    def __init__(self, message: str, *, error_code: int = 0):
        super().__init__(message)
        self.error_code = error_code


class UnknownPermissionCodeError(TrackerError):
    def __init__(self, code: str):
        super().__init__(f"unknown permission code: {code!r}")
        self.code = code


class OperationCancelledError(TrackerError):
    def __init__(self, message: str = "operation cancelled"):
        super().__init__(message, exit_code=130)
