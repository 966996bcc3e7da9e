from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm

from taskboard.api.dependencies.auth import get_current_user, get_session
from taskboard.core import get_settings
from taskboard.db.database import get_document_store
from taskboard.db.store import DocumentStore
from taskboard.models.user import UserProfile
from taskboard.schemas.auth import (
    RefreshTokenRequest,
    SignUpResponse,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserResponse,
    VerificationTokenResponse,
    VerifyEmailRequest,
)
from taskboard.services.auth_service import AuthService
from taskboard.services.session import SessionContext

settings = get_settings()

# Create router
router = APIRouter(prefix="/auth", tags=["auth"])


def _exposed_token(token: str):
    return token if settings.DEBUG else None


@router.post("/register", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    store: DocumentStore = Depends(get_document_store)
):
    """
    Register a new user

    The account stays unverified until the verification token is confirmed
    """
    result = await AuthService.sign_up(store, user_data.email, user_data.password, user_data.name)
    return SignUpResponse(
        user=UserResponse.model_validate(result.profile),
        verification_token=_exposed_token(result.verification_token),
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    store: DocumentStore = Depends(get_document_store)
):
    """
    Login for access token

    This endpoint is compatible with OAuth2 password flow, username is the email
    """
    _, tokens = await AuthService.sign_in(store, SessionContext(), form_data.username, form_data.password)
    return tokens


@router.post("/verify", response_model=UserResponse)
async def verify_email(
    request: VerifyEmailRequest,
    store: DocumentStore = Depends(get_document_store)
):
    """
    Confirm an email address
    """
    profile = await AuthService.verify_email(store, request.token)
    return UserResponse.model_validate(profile)


@router.post("/resend-verification", response_model=VerificationTokenResponse)
async def resend_verification(
    credentials: UserLogin,
    store: DocumentStore = Depends(get_document_store)
):
    """
    Issue a new verification token for an unverified account
    """
    token = await AuthService.resend_verification_email(store, credentials.email, credentials.password)
    return VerificationTokenResponse(verification_token=_exposed_token(token))


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    store: DocumentStore = Depends(get_document_store)
):
    """
    Refresh access token
    """
    return await AuthService.refresh(store, SessionContext(), refresh_data.refresh_token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    session: SessionContext = Depends(get_session)
):
    """
    Sign out; tokens are stateless, so the client drops them
    """
    AuthService.sign_out(session)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: UserProfile = Depends(get_current_user)
):
    """
    Get current user information
    """
    return UserResponse.model_validate(current_user)
