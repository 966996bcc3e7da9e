from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from taskboard.db.database import get_document_store
from taskboard.db.store import DocumentStore
from taskboard.models.user import UserProfile
from taskboard.services.auth_service import AuthService
from taskboard.services.session import SessionContext

# OAuth2 configuration
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


# Dependency to get the session of the current request
async def get_session(
    token: str = Depends(oauth2_scheme),
    store: DocumentStore = Depends(get_document_store)
) -> SessionContext:
    """
    Build the session context from the bearer token

    Returns:
        SessionContext: Session holding the authenticated user

    Raises:
        HTTPException: If the token is invalid or the profile is missing
    """
    user = await AuthService.get_current_user(store, token)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return SessionContext(user=user)


# Dependency to get current user
async def get_current_user(
    session: SessionContext = Depends(get_session),
) -> UserProfile:
    return session.require_user()
