from fastapi import APIRouter
from taskboard.api.v1.auth import router as auth_router
from taskboard.api.v1.boards import router as boards_router
from taskboard.api.v1.members import router as members_router
from taskboard.api.v1.lists import router as lists_router
from taskboard.api.v1.cards import router as cards_router
from taskboard.api.v1.comments import router as comments_router

# Create main API router
api_router = APIRouter(prefix="/api/v1")

# Include routers
api_router.include_router(auth_router)
api_router.include_router(boards_router)
api_router.include_router(members_router)
api_router.include_router(lists_router)
api_router.include_router(cards_router)
api_router.include_router(comments_router)
