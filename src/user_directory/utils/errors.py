"""
Error taxonomy for the user directory
"""

from typing import Optional


class RemoteFailure(Exception):
    """Any failed call to the remote user API: transport error, non-2xx status or unreadable payload"""

    def __init__(self, operation: str, status_code: Optional[int] = None, message: str = ""):
        self.operation = operation
        self.status_code = status_code
        self.message = message or "remote call failed"
        super().__init__(str(self))

    def __str__(self) -> str:
        status = f" (status {self.status_code})" if self.status_code is not None else ""
        return f"{self.operation} failed{status}: {self.message}"


class SnapshotCorrupt(Exception):
    """Stored snapshot could not be parsed; callers treat it as absent"""


class ValidationFailure(Exception):
    """Client-side form check failed before the request reached the engine"""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(message)
