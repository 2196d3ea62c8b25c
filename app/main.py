from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from app.core.config import settings
from app.core.email import EmailSender
from app.core.errors import EXCEPTION_HANDLERS
from app.core.storage import StorageClient
from app.db.init_db import create_all_tables
from app.db.session import SessionLocal
from app.middleware.request_logging import RequestLoggingMiddleware
from app.middleware.auth_logging import AuthLoggingMiddleware
from app.modules.auth.api.router import router as auth_router
from app.modules.auth.services.oauth import OAuthVerifier
from app.modules.business_profiles.api.router import router as business_profiles_router
from app.modules.media.router import router as media_router
from app.modules.media.service import MediaService
from app.modules.notifications.api.router import router as notifications_router
from app.modules.notifications.services.push import PushSender
from app.modules.password_reset.api.router import router as password_reset_router
from app.modules.statuses.api.router import router as status_router
from app.modules.statuses.services.feed import FeedAggregator
from app.modules.user_management.api.router import router as user_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("app")

# Initialize the FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    exception_handlers=EXCEPTION_HANDLERS,
    debug=settings.DEBUG,
    description="Business networking app with 24-hour statuses",
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    swagger_ui_parameters={"defaultModelsExpandDepth": -1},
)

# Shared collaborators, resolved by the dependencies in app.deps
app.state.storage = StorageClient(
    base_url=settings.SUPABASE_URL,
    service_key=settings.SUPABASE_SERVICE_KEY,
    bucket=settings.STORAGE_BUCKET,
    public_base_url=settings.storage_public_base,
    timeout=settings.STORAGE_TIMEOUT_SECONDS,
)
app.state.media = MediaService(app.state.storage, request_timeout=settings.MEDIA_REQUEST_TIMEOUT_SECONDS)
app.state.email = EmailSender(
    host=settings.SMTP_HOST,
    port=settings.SMTP_PORT,
    username=settings.SMTP_USERNAME,
    password=settings.SMTP_PASSWORD,
    from_email=settings.SMTP_FROM_EMAIL,
    from_name=settings.SMTP_FROM_NAME,
    use_tls=settings.SMTP_USE_TLS,
)
app.state.push = PushSender(settings.FIREBASE_SERVICE_ACCOUNT_PATH)
app.state.oauth = OAuthVerifier(
    settings.GOOGLE_TOKENINFO_URL,
    settings.FACEBOOK_GRAPH_URL,
    timeout=settings.OAUTH_TIMEOUT_SECONDS,
)
app.state.feed = FeedAggregator(SessionLocal)

@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting server in {settings.ENVIRONMENT} mode")
    create_all_tables()

@app.on_event("shutdown")
async def shutdown_event():
    await app.state.storage.close()
    await app.state.oauth.close()
    app.state.push.shutdown()

# Add middleware
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(AuthLoggingMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(auth_router, prefix=f"{settings.API_V1_STR}/auth", tags=["authentication"])
app.include_router(user_router, prefix=f"{settings.API_V1_STR}/users", tags=["users"])
app.include_router(business_profiles_router, prefix=f"{settings.API_V1_STR}/business-profiles", tags=["business profiles"])
app.include_router(status_router, prefix=f"{settings.API_V1_STR}/status", tags=["status"])
app.include_router(notifications_router, prefix=f"{settings.API_V1_STR}/notifications", tags=["notifications"])
app.include_router(password_reset_router, prefix=f"{settings.API_V1_STR}/password-reset", tags=["password reset"])
app.include_router(media_router, prefix=f"{settings.API_V1_STR}/images", tags=["images"])

@app.get("/")
async def root():
    return {
        "message": "Welcome to Bizstatus",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "documentation": "/docs" if settings.DEBUG else None,
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
