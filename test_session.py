import json
import pytest
from unittest.mock import MagicMock

from taskboard.core.exceptions import AuthenticationError
from taskboard.models.user import UserProfile
from taskboard.services.profile_cache import PROFILE_CACHE_KEY, ProfileCache
from taskboard.services.session import SessionContext


@pytest.fixture
def profile():
    return UserProfile(id="u1", email="u1@example.com", name="User One", email_verified=True)


class TestSessionContext:
    """Тесты контекста аутентифицированного пользователя"""

    def test_empty_session(self):
        session = SessionContext()

        assert session.current_user() is None
        assert session.user_id is None
        assert not session.is_authenticated
        with pytest.raises(AuthenticationError):
            session.require_user()

    def test_listeners_hear_sign_in_and_out(self, profile):
        """Подписчики получают вход и выход"""
        session = SessionContext()
        listener = MagicMock()
        session.on_auth_state_change(listener)

        session.set_user(profile)
        session.clear()

        assert [c.args[0] for c in listener.call_args_list] == [profile, None]

    def test_unsubscribe(self, profile):
        session = SessionContext()
        listener = MagicMock()
        unsubscribe = session.on_auth_state_change(listener)

        unsubscribe()
        unsubscribe()
        session.set_user(profile)

        listener.assert_not_called()

    def test_listener_errors_propagate(self, profile):
        session = SessionContext()
        session.on_auth_state_change(MagicMock(side_effect=RuntimeError("boom")))

        with pytest.raises(RuntimeError):
            session.set_user(profile)


class TestProfileCache:
    """Тесты локального кэша профиля"""

    def test_save_load_clear(self, tmp_path, profile):
        cache = ProfileCache(tmp_path / "profile.json")

        assert cache.load() is None
        cache.save(profile)

        stored = json.loads((tmp_path / "profile.json").read_text(encoding="utf-8"))
        assert stored[PROFILE_CACHE_KEY]["email"] == "u1@example.com"
        assert cache.load() == profile

        cache.clear()
        assert cache.load() is None

    def test_session_writes_and_invalidates_cache(self, tmp_path, profile):
        """Вход сохраняет профиль в кэш, выход удаляет его"""
        cache = ProfileCache(tmp_path / "profile.json")
        session = SessionContext(cache=cache)

        session.set_user(profile)
        restored = SessionContext.restore(ProfileCache(tmp_path / "profile.json"))
        assert restored.user_id == "u1"

        session.clear()
        assert SessionContext.restore(cache).current_user() is None

    def test_corrupted_cache_is_ignored(self, tmp_path):
        path = tmp_path / "profile.json"
        path.write_text("{not json", encoding="utf-8")

        assert ProfileCache(path).load() is None

    def test_other_keys_are_kept(self, tmp_path, profile):
        path = tmp_path / "profile.json"
        path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")
        cache = ProfileCache(path)

        cache.save(profile)
        cache.clear()

        assert json.loads(path.read_text(encoding="utf-8")) == {"theme": "dark"}

    def test_restore_uses_configured_path(self, tmp_path, monkeypatch, profile):
        """По умолчанию кэш берется из PROFILE_CACHE_PATH"""
        path = tmp_path / "configured.json"
        monkeypatch.setenv("PROFILE_CACHE_PATH", str(path))

        SessionContext.restore().set_user(profile)

        assert path.exists()
        assert SessionContext.restore().user_id == "u1"
