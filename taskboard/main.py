from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskboard.db import get_document_store, init_db
from taskboard.core import get_settings
from taskboard.core.exceptions import (
    AuthenticationError,
    DocumentNotFoundError,
    InvalidInputError,
    InvitationError,
    MalformedRecordError,
    NotFoundError,
    PermissionDeniedError,
    StoreError,
    TaskboardError,
)
from taskboard.api.v1 import api_router
from taskboard.core.middleware import RequestLoggingMiddleware
from taskboard.logs import api_logger, debug_logger

# Get application settings
settings = get_settings()

# Domain errors -> HTTP status, first match wins
ERROR_STATUS = (
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DocumentNotFoundError, status.HTTP_404_NOT_FOUND),
    (InvitationError, status.HTTP_409_CONFLICT),
    (MalformedRecordError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (StoreError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


# Lifespan event handler
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    try:
        # Initialize database on startup
        await init_db()
        api_logger.info(f"✅ Document store initialized ({settings.STORE_BACKEND})")
    except Exception as e:
        api_logger.error(f"❌ Error initializing document store: {e}")
        raise

    yield
    # Clean up resources on shutdown
    await get_document_store().close()


# Initialize FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="API for collaborative task boards with invitations",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
    max_age=3600,
)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)

# Include API router
app.include_router(api_router)


@app.exception_handler(TaskboardError)
async def taskboard_error_handler(request: Request, exc: TaskboardError):
    status_code = next(
        (code for error_type, code in ERROR_STATUS if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    if status_code >= 500:
        debug_logger.error(f"Ошибка хранилища при {request.method} {request.url}: {exc.message}")
        detail = "Storage error, please retry"
    else:
        detail = exc.message

    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=status_code, content={"detail": detail}, headers=headers)


@app.get("/")
async def root(request: Request):
    """Health check endpoint"""
    api_logger.info(f"Received health check request: {request.method} {request.url}")
    return {"message": f"{settings.PROJECT_NAME} is running"}


if __name__ == "__main__":
    import uvicorn
    print("\033[1;36m" + "=" * 50 + "\033[0m")  # Cyan
    print("\033[1;36m" + "  Запуск API сервера досок задач" + "\033[0m")  # Cyan
    print("\033[1;36m" + "=" * 50 + "\033[0m")  # Cyan

    api_logger.info(f"Сервер запускается на http://0.0.0.0:8000")

    # Запускаем uvicorn с настройкой логирования
    uvicorn.run(
        "taskboard.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info"
    )
