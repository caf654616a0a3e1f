from datetime import datetime
from typing import Optional

from pydantic import Field

from deutschshikhi.models.user.user_model import UserLanguage, UserRole
from deutschshikhi.schemas.common import CamelModel


class UserRead(CamelModel):
    id: int
    auth_uid: str
    email: Optional[str] = None
    name: Optional[str] = None
    photo_url: Optional[str] = None
    language: UserLanguage
    role: UserRole
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    photo_url: Optional[str] = Field(None, max_length=1024)
    language: Optional[UserLanguage] = None


class LanguageUpdate(CamelModel):
    language: UserLanguage
