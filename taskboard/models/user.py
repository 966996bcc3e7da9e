from typing import ClassVar, Optional

from pydantic import Field

from taskboard.models.base import StoreDatetime, StoreModel, utcnow


class UserProfile(StoreModel):
    """Профиль пользователя, зеркало учетной записи провайдера аутентификации"""

    __collection__: ClassVar[str] = "users"
    __immutable__: ClassVar[tuple] = ("id", "email", "created_at")

    id: Optional[str] = None
    email: str
    name: str = "User"
    created_at: StoreDatetime = Field(default_factory=utcnow)
    email_verified: bool = False


class Credentials(StoreModel):
    """Учетная запись локального провайдера аутентификации"""

    __collection__: ClassVar[str] = "credentials"
    __immutable__: ClassVar[tuple] = ("id", "email", "created_at")

    id: Optional[str] = None
    email: str
    password_hash: str
    email_verified: bool = False
    created_at: StoreDatetime = Field(default_factory=utcnow)
