"""Domain errors raised by the services and translated by the routers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi import HTTPException


@dataclass(eq=False)
class DomainError(Exception):
    """Base error carrying a machine code, a human message and an HTTP status."""

    code: str
    message: str = ""
    status_code: int = 400
    data: Optional[dict[str, Any]] = field(default=None)

    def __post_init__(self) -> None:
        if not self.message:
            self.message = self.code

    def __str__(self) -> str:  # pragma: no cover - human readable message
        return self.message

    def to_http(self) -> HTTPException:
        detail: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            detail["data"] = self.data
        return HTTPException(status_code=self.status_code, detail=detail)


class NotFoundError(DomainError):
    def __init__(self, code: str, message: str = "", data: Optional[dict[str, Any]] = None):
        super().__init__(code, message, 404, data)


class InvalidInputError(DomainError):
    def __init__(self, code: str, message: str = "", data: Optional[dict[str, Any]] = None):
        super().__init__(code, message, 400, data)


class ForbiddenError(DomainError):
    def __init__(self, code: str, message: str = "", data: Optional[dict[str, Any]] = None):
        super().__init__(code, message, 403, data)


class ConflictError(DomainError):
    def __init__(self, code: str, message: str = "", data: Optional[dict[str, Any]] = None):
        super().__init__(code, message, 400, data)


class AlreadyClaimedError(ConflictError):
    def __init__(self, achievement_id: str):
        super().__init__("already_claimed", "Reward already claimed", {"achievementId": achievement_id})


class NotUnlockedError(ConflictError):
    def __init__(self, achievement_id: str):
        super().__init__(
            "not_unlocked",
            "Achievement not found or not unlocked",
            {"achievementId": achievement_id},
        )


class AlreadyRegisteredError(ConflictError):
    def __init__(self) -> None:
        super().__init__("already_registered", "User already registered.")
