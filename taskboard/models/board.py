import enum
from datetime import datetime
from typing import Any, ClassVar, List, Optional

from pydantic import Field, model_validator

from taskboard.models.base import StoreDatetime, StoreModel, encode_value, utcnow


# Роли пользователей на доске
class BoardUserRole(str, enum.Enum):
    OWNER = "owner"      # Создатель доски
    EDITOR = "editor"    # Может редактировать списки и карточки
    VIEWER = "viewer"    # Только просмотр


# Статус приглашения, не зависит от роли
class MemberStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class BoardMember(StoreModel):
    """Участник доски: пользователь, роль и статус приглашения"""

    user_id: str
    role: BoardUserRole
    joined_at: StoreDatetime = Field(default_factory=utcnow)
    # None means the record predates invitations and counts as accepted
    status: Optional[MemberStatus] = None
    invited_by: Optional[str] = None
    invited_at: Optional[StoreDatetime] = None

    @model_validator(mode="before")
    @classmethod
    def default_joined_at(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("joinedAt") is None and data.get("joined_at") is None:
            data = {key: value for key, value in data.items() if key not in ("joinedAt", "joined_at")}
            data["joinedAt"] = utcnow()
        return data

    @property
    def is_accepted(self) -> bool:
        return self.status is None or self.status == MemberStatus.ACCEPTED

    @property
    def is_pending(self) -> bool:
        return self.status == MemberStatus.PENDING


class Board(StoreModel):
    """Модель доски"""

    __collection__: ClassVar[str] = "boards"
    # members и memberIds меняются только через InvitationService
    __immutable__: ClassVar[tuple] = ("id", "owner_id", "members", "member_ids", "created_at")

    id: Optional[str] = None
    title: str
    owner_id: str
    members: List[BoardMember]
    # Denormalized copy of members[].userId for membership queries
    member_ids: List[str] = Field(default_factory=list)
    created_at: StoreDatetime
    updated_at: StoreDatetime

    def find_member(self, user_id: Optional[str]) -> Optional[BoardMember]:
        if not user_id:
            return None
        return next((m for m in self.members if m.user_id == user_id), None)

    def to_document(self) -> dict:
        document = super().to_document()
        document["memberIds"] = [m.user_id for m in self.members]
        return document


def members_update(members: List[BoardMember], updated_at: Optional[datetime] = None) -> dict:
    """Store fields for a whole-array membership write"""
    return {
        "members": encode_value(members),
        "memberIds": [m.user_id for m in members],
        "updatedAt": encode_value(updated_at or utcnow()),
    }
