from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import jwt, JWTError
from passlib.context import CryptContext
import uuid

from taskboard.core import get_settings

# Get application settings
settings = get_settings()

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Access Token Model (for typing)
JWTToken = Dict[str, str]

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"
VERIFY_TOKEN = "verify"


class SecurityService:
    """Password hashing and JWT issuing for the local auth provider"""

    @staticmethod
    def create_password_hash(password: str) -> str:
        """Create a hashed password"""
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash"""
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def _encode(data: Dict[str, Any], token_type: str, expires_delta: timedelta) -> str:
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + expires_delta
        to_encode.update({"exp": expire, "type": token_type})
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def create_access_token(
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """Create a JWT access token"""
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        return SecurityService._encode(data, ACCESS_TOKEN, expires_delta)

    @staticmethod
    def create_refresh_token(
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """Create a JWT refresh token"""
        to_encode = data.copy()

        # Add a unique jti (JWT ID) to the token to prevent reuse
        to_encode.update({"jti": str(uuid.uuid4())})

        if expires_delta is None:
            expires_delta = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
        return SecurityService._encode(to_encode, REFRESH_TOKEN, expires_delta)

    @staticmethod
    def create_verification_token(
        user_id: str,
        email: str,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """Create a single-purpose email verification token"""
        if expires_delta is None:
            expires_delta = timedelta(hours=settings.VERIFICATION_TOKEN_EXPIRE_HOURS)
        return SecurityService._encode({"sub": user_id, "email": email}, VERIFY_TOKEN, expires_delta)

    @staticmethod
    def create_tokens(user_id: str) -> JWTToken:
        """Create access and refresh tokens for a user"""
        token_data = {"sub": str(user_id)}

        return {
            "access_token": SecurityService.create_access_token(data=token_data),
            "refresh_token": SecurityService.create_refresh_token(data=token_data),
            "token_type": "bearer"
        }

    @staticmethod
    def verify_token(token: str, token_type: str = ACCESS_TOKEN) -> Optional[Dict[str, Any]]:
        """Verify a JWT token and return its payload if valid"""
        try:
            # jose checks exp itself
            payload = jwt.decode(
                token,
                settings.SECRET_KEY,
                algorithms=[settings.ALGORITHM]
            )
        except JWTError:
            return None

        # Check token type
        if payload.get("type") != token_type:
            return None
        if payload.get("sub") is None:
            return None

        return payload
