from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from app.config import settings
from app.core.errors import register_exception_handlers
from app.core.logging_config import setup_logging, get_logger
from app.routes import (
    auth_router,
    file_router,
    audit_log_router,
    permission_router,
    role_router,
    user_role_router,
)
from app.services.audit_service import audit_service

# Setup logging as early as possible
setup_logging(force_configure=True)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} starting ({settings.ENV}, audit mode {settings.AUDIT_LOG_MODE})")
    yield
    # Give in-flight audit writes a bounded chance to land
    await audit_service.drain()
    logger.info(f"{settings.APP_NAME} stopped")


app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Roles, permissions and audit trail for the Litex client portal",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# Set up CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(auth_router, prefix=settings.API_PREFIX)
app.include_router(permission_router, prefix=settings.API_PREFIX)
app.include_router(role_router, prefix=settings.API_PREFIX)
app.include_router(user_role_router, prefix=settings.API_PREFIX)
app.include_router(file_router, prefix=settings.API_PREFIX)
app.include_router(audit_log_router, prefix=settings.API_PREFIX)


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.APP_NAME} API"}


@app.get("/health")
async def health_check():
    return {"status": "ok", "version": settings.APP_VERSION}


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
