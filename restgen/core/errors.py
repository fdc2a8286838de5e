from __future__ import annotations

from typing import Optional

from fastapi import HTTPException


class MalformedAnnotation(ValueError):
    """Entity annotations cannot be compiled into a descriptor."""

    def __init__(self, entity: str, message: str):
        super().__init__(f"{entity}: {message}")
        self.entity = entity
        self.message = message


class StorageError(Exception):
    """Raised by pools when a statement fails to execute."""


class Forbidden(HTTPException):
    def __init__(self, detail: str = "Insufficient privileges", required_role: Optional[str] = None):
        super().__init__(status_code=403, detail=detail)
        self.required_role = required_role


class NotFound(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=404, detail=detail)


class DatabaseError(HTTPException):
    """
    Statement execution failure surfaced to the client.

    The driver message is returned as-is in the detail.
    """

    def __init__(self, message: str):
        super().__init__(status_code=500, detail=message)
        self.message = message
