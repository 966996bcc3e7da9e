from datetime import datetime
from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=100)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class VerifyEmailRequest(BaseModel):
    token: str


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    email_verified: bool
    created_at: datetime

    class Config:
        from_attributes = True


class SignUpResponse(BaseModel):
    user: UserResponse
    # Доставка писем не реализована, токен отдается только в режиме DEBUG
    verification_token: Optional[str] = None


class VerificationTokenResponse(BaseModel):
    verification_token: Optional[str] = None
