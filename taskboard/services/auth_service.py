import uuid
from typing import NamedTuple, Optional, Tuple

from taskboard.core.exceptions import AuthenticationError, InvalidInputError
from taskboard.db.store import DocumentStore, FieldFilter
from taskboard.logs import debug_logger
from taskboard.models.user import Credentials, UserProfile
from taskboard.services.security_service import (
    JWTToken,
    REFRESH_TOKEN,
    VERIFY_TOKEN,
    SecurityService,
)
from taskboard.services.session import SessionContext
from taskboard.services.user_service import UserService
from taskboard.services.validation import normalize_email, require_text

MIN_PASSWORD_LENGTH = 6


class SignUpResult(NamedTuple):
    profile: UserProfile
    verification_token: str


class AuthService:
    """Local authentication provider.

    Accounts live in the credentials collection; the users collection holds
    the public profile mirror. Verification delivery is not implemented: the
    token is returned to the caller and logged.
    """

    @staticmethod
    async def _get_credentials_by_email(
        store: DocumentStore,
        email: str
    ) -> Optional[Credentials]:
        snapshots = await store.query(
            Credentials.__collection__, [FieldFilter("email", "==", email)]
        )
        return Credentials.from_snapshot(snapshots[0]) if snapshots else None

    @staticmethod
    async def _authenticate(
        store: DocumentStore,
        email: str,
        password: str
    ) -> Credentials:
        email = normalize_email(email)
        require_text(password, "password")

        credentials = await AuthService._get_credentials_by_email(store, email)
        if credentials is None or not SecurityService.verify_password(password, credentials.password_hash):
            raise AuthenticationError("Incorrect email or password")
        return credentials

    @staticmethod
    async def sign_up(
        store: DocumentStore,
        email: str,
        password: str,
        name: str
    ) -> SignUpResult:
        """Register an account and its profile; the user stays signed out"""
        email = normalize_email(email)
        name = require_text(name, "name")
        if password is None or len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidInputError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")

        if await AuthService._get_credentials_by_email(store, email) is not None:
            raise InvalidInputError("Email already registered")

        user_id = uuid.uuid4().hex
        profile = UserService.build_profile(user_id, email, name)
        credentials = Credentials(
            email=email,
            password_hash=SecurityService.create_password_hash(password),
            created_at=profile.created_at,
        )

        # Учетная запись и профиль создаются одним батчем
        batch = store.batch()
        batch.set(Credentials.__collection__, user_id, credentials.to_document())
        batch.set(UserProfile.__collection__, user_id, profile.to_document())
        await store.commit(batch)

        token = SecurityService.create_verification_token(user_id, email)
        debug_logger.info(f"Зарегистрирован пользователь {user_id}, письмо подтверждения для {email}")
        return SignUpResult(profile.model_copy(update={"id": user_id}), token)

    @staticmethod
    async def verify_email(store: DocumentStore, token: str) -> UserProfile:
        """Confirm the address encoded in a verification token"""
        payload = SecurityService.verify_token(token, token_type=VERIFY_TOKEN)
        if not payload:
            raise AuthenticationError("Invalid or expired verification token")

        user_id = payload["sub"]
        snapshot = await store.get(Credentials.__collection__, user_id)
        if snapshot is None or Credentials.from_snapshot(snapshot).email != payload.get("email"):
            raise AuthenticationError("Invalid or expired verification token")

        await store.update(Credentials.__collection__, user_id, {"emailVerified": True})
        await UserService.mark_email_verified(store, user_id)
        debug_logger.info(f"Email пользователя {user_id} подтвержден")
        return await UserService.get_profile(store, user_id)

    @staticmethod
    async def resend_verification_email(
        store: DocumentStore,
        email: str,
        password: str
    ) -> str:
        """Issue a fresh verification token for an unverified account"""
        credentials = await AuthService._authenticate(store, email, password)
        if credentials.email_verified:
            raise InvalidInputError("Email is already verified")

        debug_logger.info(f"Повторное письмо подтверждения для {credentials.email}")
        return SecurityService.create_verification_token(credentials.id, credentials.email)

    @staticmethod
    async def sign_in(
        store: DocumentStore,
        session: SessionContext,
        email: str,
        password: str
    ) -> Tuple[UserProfile, JWTToken]:
        """Sign in a verified user and publish it to the session"""
        credentials = await AuthService._authenticate(store, email, password)
        if not credentials.email_verified:
            raise AuthenticationError("Please verify your email before signing in")

        profile = await UserService.get_profile(store, credentials.id)
        if profile is None:
            # Профиль мог не создаться, восстанавливаем его
            profile = await UserService.create_profile(store, credentials.id, credentials.email, "User")
        if not profile.email_verified:
            await UserService.mark_email_verified(store, credentials.id)
            profile = profile.model_copy(update={"email_verified": True})

        session.set_user(profile)
        debug_logger.info(f"Пользователь {credentials.id} вошел в систему")
        return profile, SecurityService.create_tokens(credentials.id)

    @staticmethod
    def sign_out(session: SessionContext) -> None:
        user_id = session.user_id
        session.clear()
        debug_logger.info(f"Пользователь {user_id} вышел из системы")

    @staticmethod
    async def get_current_user(
        store: DocumentStore,
        token: str
    ) -> Optional[UserProfile]:
        """Profile of the access token's subject"""
        payload = SecurityService.verify_token(token)
        if not payload:
            return None
        return await UserService.get_profile(store, payload["sub"])

    @staticmethod
    async def refresh(
        store: DocumentStore,
        session: SessionContext,
        refresh_token: str
    ) -> JWTToken:
        """Exchange a refresh token for new tokens and reload the session user"""
        payload = SecurityService.verify_token(refresh_token, token_type=REFRESH_TOKEN)
        if not payload:
            raise AuthenticationError("Invalid refresh token")

        profile = await UserService.get_profile(store, payload["sub"])
        if profile is None:
            raise AuthenticationError("Invalid refresh token")

        session.set_user(profile)
        return SecurityService.create_tokens(profile.id)
