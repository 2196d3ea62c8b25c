from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core import security
from app.core.config import settings
from app.core.email import EmailSender
from app.core.errors import AuthenticationError, AuthorizationError, NotFoundError
from app.db.session import get_db
from app.modules.auth.services.oauth import OAuthVerifier
from app.modules.media.service import MediaService
from app.modules.notifications.services.push import PushSender
from app.modules.statuses.services.feed import FeedAggregator
from app.modules.user_management.models.user import User, UserRole
from app.modules.user_management.services.user import get_user

# OAuth2 token URL
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")

def get_current_user(db: Session = Depends(get_db), token: str = Depends(oauth2_scheme)) -> User:
    """
    Dependency for getting current authenticated user
    """
    payload = security.decode_access_token(token)
    if payload is None:
        raise AuthenticationError("Could not validate credentials")

    user = get_user(db, user_id=payload["sub"])
    if not user:
        raise NotFoundError("User not found")

    if not user.is_active or user.is_banned:
        raise AuthorizationError("Account is disabled")

    return user

def get_current_business_user(current_user: User = Depends(get_current_user)) -> User:
    """
    Dependency for endpoints reserved to business accounts
    """
    if current_user.role != UserRole.BUSINESS.value:
        raise AuthorizationError("Create a business profile to add status.")
    return current_user

# External collaborators are built once in app.main and kept on app.state

def get_media_service(request: Request) -> MediaService:
    return request.app.state.media

def get_email_sender(request: Request) -> EmailSender:
    return request.app.state.email

def get_push_sender(request: Request) -> PushSender:
    return request.app.state.push

def get_oauth_verifier(request: Request) -> OAuthVerifier:
    return request.app.state.oauth

def get_feed_aggregator(request: Request) -> FeedAggregator:
    return request.app.state.feed
