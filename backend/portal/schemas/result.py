from __future__ import annotations
from typing import Literal
from pydantic import BaseModel

ErrorKind = Literal["validation", "not_found", "no_match", "permission_denied", "store_error"]

PERMISSION_DENIED_MESSAGE = "Permission denied: the server is not allowed to modify this data."
STORE_FAILURE_MESSAGE = "The operation failed. Please try again."


class ActionResult(BaseModel):
    """Outcome of an admin or public action; callers decide how to surface `message`."""
    success: bool
    message: str
    error: ErrorKind | None = None

    @classmethod
    def ok(cls, message: str, **extra):
        return cls(success=True, message=message, **extra)

    @classmethod
    def fail(cls, error: ErrorKind, message: str, **extra):
        return cls(success=False, message=message, error=error, **extra)
