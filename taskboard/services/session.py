from typing import Callable, List, Optional

from taskboard.core.exceptions import AuthenticationError
from taskboard.models.user import UserProfile
from taskboard.services.profile_cache import ProfileCache, default_profile_cache

AuthStateCallback = Callable[[Optional[UserProfile]], None]


class SessionContext:
    """Authenticated identity passed explicitly to the operations that need it.

    Set on sign-in, refreshed on token refresh and cleared on sign-out.
    Listeners registered with on_auth_state_change hear every transition.
    When a ProfileCache is attached the signed-in profile survives restarts.
    """

    def __init__(self, user: Optional[UserProfile] = None, cache: Optional[ProfileCache] = None):
        self._user = user
        self._cache = cache
        self._listeners: List[AuthStateCallback] = []

    @classmethod
    def restore(cls, cache: Optional[ProfileCache] = None) -> "SessionContext":
        """Session seeded from the cached profile, if any"""
        cache = cache or default_profile_cache()
        return cls(user=cache.load(), cache=cache)

    def current_user(self) -> Optional[UserProfile]:
        return self._user

    @property
    def user_id(self) -> Optional[str]:
        return self._user.id if self._user else None

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def require_user(self) -> UserProfile:
        if self._user is None:
            raise AuthenticationError("Not signed in")
        return self._user

    def set_user(self, user: UserProfile) -> None:
        self._user = user
        if self._cache is not None:
            self._cache.save(user)
        self._notify()

    def clear(self) -> None:
        self._user = None
        if self._cache is not None:
            self._cache.clear()
        self._notify()

    def on_auth_state_change(self, callback: AuthStateCallback) -> Callable[[], None]:
        """Subscribe to sign-in/out/refresh; returns an unsubscribe function"""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback(self._user)
