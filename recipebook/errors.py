"""Error taxonomy shared by the adapters, the service and the HTTP layer.

Every failure that should reach a client is raised as a :class:`RecipeError`.
The ``kind`` discriminant decides the HTTP status the web layer answers with.
"""

from __future__ import annotations

import enum
from typing import Any, Dict


class ErrorKind(str, enum.Enum):
    INVALID_INPUT = "InvalidInput"
    NOT_FOUND = "NotFound"
    BACKEND_UNAVAILABLE = "BackendUnavailable"


class RecipeError(Exception):
    """Base exception for all recipebook errors.

    Attributes
    ----------
    kind:
        Discriminant used to pick the response status.
    message:
        Human readable description, exposed to the client as-is.
    """

    kind: ErrorKind = ErrorKind.BACKEND_UNAVAILABLE
    status_code: int = 503

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def as_dict(self) -> Dict[str, Any]:
        """Return error as dictionary for API responses."""
        return {"error": self.message, "kind": self.kind.value}


class InvalidInput(RecipeError):
    kind = ErrorKind.INVALID_INPUT
    status_code = 400


class NotFound(RecipeError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class BackendUnavailable(RecipeError):
    kind = ErrorKind.BACKEND_UNAVAILABLE
    status_code = 503


__all__ = ["BackendUnavailable", "ErrorKind", "InvalidInput", "NotFound", "RecipeError"]
