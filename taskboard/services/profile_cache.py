import json
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from taskboard.core import get_settings
from taskboard.logs import debug_logger
from taskboard.models.user import UserProfile

PROFILE_CACHE_KEY = "taskboard.user"


class ProfileCache:
    """Signed-in user's profile kept on disk under a fixed key"""

    def __init__(self, path):
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            debug_logger.warning(f"Кэш профиля поврежден, игнорируем: {e}")
            return {}

    def load(self) -> Optional[UserProfile]:
        payload = self._read().get(PROFILE_CACHE_KEY)
        if payload is None:
            return None
        try:
            return UserProfile.model_validate(payload)
        except ValidationError as e:
            debug_logger.warning(f"Кэш профиля не прошел проверку: {e}")
            return None

    def save(self, profile: UserProfile) -> None:
        data = self._read()
        data[PROFILE_CACHE_KEY] = profile.model_dump(mode="json", by_alias=True)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")

    def clear(self) -> None:
        data = self._read()
        if data.pop(PROFILE_CACHE_KEY, None) is None:
            return
        self.path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")


def default_profile_cache() -> ProfileCache:
    """Cache at the configured PROFILE_CACHE_PATH"""
    return ProfileCache(get_settings().PROFILE_CACHE_PATH)
