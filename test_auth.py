import pytest
from datetime import timedelta
from unittest.mock import MagicMock

from taskboard.core.exceptions import AuthenticationError, InvalidInputError
from taskboard.services.auth_service import AuthService
from taskboard.services.security_service import (
    REFRESH_TOKEN,
    VERIFY_TOKEN,
    SecurityService,
)
from taskboard.services.session import SessionContext
from taskboard.services.user_service import UserService


class TestSecurityService:
    """Юниттесты хеширования паролей и JWT"""

    def test_password_hash(self):
        hashed = SecurityService.create_password_hash("password123")

        assert hashed != "password123"
        assert SecurityService.verify_password("password123", hashed)
        assert not SecurityService.verify_password("wrong", hashed)

    def test_tokens_have_types(self):
        """Access и refresh токены не взаимозаменяемы"""
        tokens = SecurityService.create_tokens("user-1")

        assert tokens["token_type"] == "bearer"
        assert SecurityService.verify_token(tokens["access_token"])["sub"] == "user-1"
        assert SecurityService.verify_token(tokens["refresh_token"]) is None
        assert SecurityService.verify_token(tokens["refresh_token"], token_type=REFRESH_TOKEN)["sub"] == "user-1"

    def test_refresh_tokens_are_unique(self):
        first = SecurityService.create_refresh_token({"sub": "user-1"})
        second = SecurityService.create_refresh_token({"sub": "user-1"})
        assert first != second

    def test_expired_token(self):
        token = SecurityService.create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-1))
        assert SecurityService.verify_token(token) is None

    def test_garbage_token(self):
        assert SecurityService.verify_token("not-a-jwt") is None

    def test_verification_token(self):
        token = SecurityService.create_verification_token("user-1", "a@example.com")
        payload = SecurityService.verify_token(token, token_type=VERIFY_TOKEN)

        assert payload["sub"] == "user-1"
        assert payload["email"] == "a@example.com"


class TestAuthService:
    """Юниттесты локального провайдера аутентификации"""

    async def register(self, store, email="New.User@Example.com", password="password123", name="New User"):
        return await AuthService.sign_up(store, email, password, name)

    @pytest.mark.asyncio
    async def test_sign_up_creates_account_and_profile(self, store):
        """Регистрация создает учетную запись и неподтвержденный профиль"""
        result = await self.register(store)

        profile = await UserService.get_profile(store, result.profile.id)
        assert profile.email == "new.user@example.com"
        assert profile.name == "New User"
        assert profile.email_verified is False

        credentials = (await store.get("credentials", result.profile.id)).data
        assert credentials["email"] == "new.user@example.com"
        assert credentials["passwordHash"] != "password123"
        assert credentials["emailVerified"] is False

    @pytest.mark.asyncio
    async def test_sign_up_duplicate_email(self, store):
        await self.register(store)

        with pytest.raises(InvalidInputError) as exc_info:
            await self.register(store, email="new.user@example.com")
        assert "already registered" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_sign_up_short_password(self, store):
        with pytest.raises(InvalidInputError):
            await self.register(store, password="123")

    @pytest.mark.asyncio
    async def test_sign_in_requires_verified_email(self, store):
        """Вход до подтверждения email запрещен"""
        await self.register(store)
        session = SessionContext()

        with pytest.raises(AuthenticationError) as exc_info:
            await AuthService.sign_in(store, session, "new.user@example.com", "password123")

        assert "verify" in exc_info.value.message
        assert not session.is_authenticated

    @pytest.mark.asyncio
    async def test_verify_then_sign_in(self, store):
        """После подтверждения вход публикует пользователя в сессию"""
        result = await self.register(store)
        await AuthService.verify_email(store, result.verification_token)

        session = SessionContext()
        listener = MagicMock()
        session.on_auth_state_change(listener)

        profile, tokens = await AuthService.sign_in(store, session, "NEW.USER@example.com", "password123")

        assert profile.email_verified
        assert session.current_user().id == result.profile.id
        listener.assert_called_once_with(profile)
        assert SecurityService.verify_token(tokens["access_token"])["sub"] == result.profile.id
        assert (await AuthService.get_current_user(store, tokens["access_token"])).id == result.profile.id

    @pytest.mark.asyncio
    async def test_sign_in_mirrors_verified_flag(self, store):
        """Профиль помечается подтвержденным при входе, если учетная запись уже подтверждена"""
        result = await self.register(store)
        await store.update("credentials", result.profile.id, {"emailVerified": True})

        profile, _ = await AuthService.sign_in(store, SessionContext(), "new.user@example.com", "password123")

        assert profile.email_verified
        assert (await UserService.get_profile(store, result.profile.id)).email_verified

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email,password", [
        ("new.user@example.com", "wrong-password"),
        ("nobody@example.com", "password123"),
    ])
    async def test_sign_in_bad_credentials(self, store, email, password):
        await self.register(store)

        with pytest.raises(AuthenticationError) as exc_info:
            await AuthService.sign_in(store, SessionContext(), email, password)
        assert "Incorrect email or password" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_verify_email_rejects_other_tokens(self, store):
        result = await self.register(store)
        access_token = SecurityService.create_access_token({"sub": result.profile.id})

        with pytest.raises(AuthenticationError):
            await AuthService.verify_email(store, access_token)

    @pytest.mark.asyncio
    async def test_resend_verification(self, store):
        """Повторное письмо работает до подтверждения и запрещено после"""
        await self.register(store)

        token = await AuthService.resend_verification_email(store, "new.user@example.com", "password123")
        await AuthService.verify_email(store, token)

        with pytest.raises(InvalidInputError):
            await AuthService.resend_verification_email(store, "new.user@example.com", "password123")

    @pytest.mark.asyncio
    async def test_refresh(self, store):
        result = await self.register(store)
        await AuthService.verify_email(store, result.verification_token)
        _, tokens = await AuthService.sign_in(store, SessionContext(), "new.user@example.com", "password123")

        session = SessionContext()
        listener = MagicMock()
        session.on_auth_state_change(listener)
        new_tokens = await AuthService.refresh(store, session, tokens["refresh_token"])

        assert SecurityService.verify_token(new_tokens["access_token"])["sub"] == result.profile.id
        assert session.user_id == result.profile.id
        listener.assert_called_once()

    @pytest.mark.asyncio
    async def test_refresh_with_access_token(self, store):
        with pytest.raises(AuthenticationError):
            await AuthService.refresh(store, SessionContext(), SecurityService.create_access_token({"sub": "x"}))

    @pytest.mark.asyncio
    async def test_sign_out(self, store):
        result = await self.register(store)
        session = SessionContext(user=result.profile)
        listener = MagicMock()
        session.on_auth_state_change(listener)

        AuthService.sign_out(session)

        assert session.current_user() is None
        listener.assert_called_once_with(None)

    @pytest.mark.asyncio
    async def test_get_current_user_invalid_token(self, store):
        assert await AuthService.get_current_user(store, "invalid") is None
