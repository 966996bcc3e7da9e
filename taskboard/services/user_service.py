from typing import Dict, Iterable, Optional

from taskboard.core.exceptions import MalformedRecordError
from taskboard.db.store import DocumentStore, FieldFilter
from taskboard.logs import debug_logger
from taskboard.models.base import utcnow
from taskboard.models.user import UserProfile
from taskboard.services.validation import normalize_email, require_text


class UserService:
    """Operations on the users collection (profile mirror of auth accounts)"""

    @staticmethod
    def build_profile(user_id: str, email: str, name: str) -> UserProfile:
        return UserProfile(
            id=user_id,
            email=normalize_email(email),
            name=require_text(name, "name"),
            created_at=utcnow(),
            email_verified=False,
        )

    @staticmethod
    async def create_profile(
        store: DocumentStore,
        user_id: str,
        email: str,
        name: str
    ) -> UserProfile:
        """Create the profile record keyed by the account id"""
        profile = UserService.build_profile(user_id, email, name)
        await store.set(UserProfile.__collection__, user_id, profile.to_document())
        return profile

    @staticmethod
    async def get_profile(
        store: DocumentStore,
        user_id: str
    ) -> Optional[UserProfile]:
        """Get profile by user id"""
        snapshot = await store.get(UserProfile.__collection__, user_id)
        if snapshot is None:
            debug_logger.warning(f"Профиль пользователя {user_id} не найден")
            return None
        return UserProfile.from_snapshot(snapshot)

    @staticmethod
    async def get_by_email(
        store: DocumentStore,
        email: str
    ) -> Optional[UserProfile]:
        """Get profile by email (first match)"""
        snapshots = await store.query(
            UserProfile.__collection__,
            [FieldFilter("email", "==", normalize_email(email))],
        )
        if not snapshots:
            debug_logger.warning(f"Пользователь с email {email} не найден")
            return None
        return UserProfile.from_snapshot(snapshots[0])

    @staticmethod
    async def get_profiles(
        store: DocumentStore,
        user_ids: Iterable[str]
    ) -> Dict[str, Optional[UserProfile]]:
        """Profiles for several users; missing or malformed ones map to None"""
        profiles: Dict[str, Optional[UserProfile]] = {}
        for user_id in dict.fromkeys(user_ids):
            try:
                profiles[user_id] = await UserService.get_profile(store, user_id)
            except MalformedRecordError as e:
                debug_logger.warning(f"Пропускаем профиль: {e.message}")
                profiles[user_id] = None
        return profiles

    @staticmethod
    async def mark_email_verified(
        store: DocumentStore,
        user_id: str
    ) -> None:
        await store.update(UserProfile.__collection__, user_id, {"emailVerified": True})
