"""Authentication router: email/password, OAuth and onboarding"""
from typing import Any, Optional
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core import security
from app.core.email import EmailSender
from app.core.errors import AuthenticationError, ConflictError, ValidationError
from app.core.responses import ok
from app.db.session import get_db
from app.deps import get_current_user, get_email_sender, get_media_service, get_oauth_verifier
from app.modules.auth.schemas.auth import (
    CheckUsernameRequest,
    LoginRequest,
    OAuthRequest,
    RegisterRequest,
    ResendOtpRequest,
    UsernameAvailability,
    VerifyEmailRequest,
)
from app.modules.auth.services import auth as auth_service
from app.modules.auth.services.oauth import SUPPORTED_PROVIDERS, OAuthVerifier
from app.modules.auth.services.username import (
    extract_clean,
    generate_suggestions,
    is_username_available,
    normalize_username,
)
from app.modules.auth.services.verification import (
    VerificationResult,
    reissue_verification_code,
    verify_code,
)
from app.modules.media.service import MediaService
from app.modules.user_management.models.user import AuthProvider, RegistrationStage, User
from app.modules.user_management.schemas.user import FCMTokenUpdate, User as UserSchema
from app.modules.user_management.services.user import update_fcm_token

logger = logging.getLogger("app")

router = APIRouter()

def _provider(name: str) -> AuthProvider:
    if name.lower() not in SUPPORTED_PROVIDERS:
        raise ValidationError("Unsupported provider")
    return AuthProvider(name.upper())

@router.post("/register")
def register(
    request: RegisterRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    email: EmailSender = Depends(get_email_sender),
) -> Any:
    """Register with email and password; a verification code is emailed to new users"""
    result, code = auth_service.register_user(db, request.name, request.email, request.password)

    if result.is_existing_user:
        message = f"Account already exists. Please {result.next_action.replace('_', ' ')}"
        return ok(message, result.model_dump(exclude={"is_existing_user"}))

    background_tasks.add_task(email.send_verification_code, request.email, request.name, code)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=ok(
            "Registration successful. Please check your email for verification.",
            result.model_dump(exclude={"is_existing_user"}),
        ),
    )

@router.post("/verify-email")
def verify_email(request: VerifyEmailRequest, db: Session = Depends(get_db)) -> Any:
    result = verify_code(db, request.user_id, request.code)
    if result == VerificationResult.EXPIRED_CODE:
        raise AuthenticationError("Code has already expired")
    if result != VerificationResult.SUCCESS:
        raise AuthenticationError("Invalid verification code")

    return ok("Email verified successfully", {
        "user_id": request.user_id,
        "current_stage": RegistrationStage.EMAIL_VERIFIED.value,
        "next_action": "complete_profile",
    })

@router.post("/resend-otp")
def resend_otp(
    request: ResendOtpRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    email: EmailSender = Depends(get_email_sender),
) -> Any:
    user, code = reissue_verification_code(db, request.user_id)
    background_tasks.add_task(email.send_verification_code, user.email, user.name, code)
    return ok("New verification code sent to your email", {
        "user_id": request.user_id,
        "current_stage": RegistrationStage.EMAIL_SUBMITTED.value,
    })

@router.post("/login")
def login(request: LoginRequest, db: Session = Depends(get_db)) -> Any:
    auth_response = auth_service.login(db, request.email, request.password)
    if auth_response is None:
        raise AuthenticationError("Invalid credentials")
    return ok("Login successful", auth_response.model_dump())

@router.post("/oauth/register", status_code=status.HTTP_201_CREATED)
async def oauth_register(
    request: OAuthRequest,
    db: Session = Depends(get_db),
    oauth: OAuthVerifier = Depends(get_oauth_verifier),
) -> Any:
    provider = _provider(request.provider)
    user_info = await oauth.verify(request.provider, request.token)
    if not user_info:
        raise AuthenticationError("Invalid token or email not found")

    result = auth_service.register_oauth_user(db, user_info["name"], user_info["email"], provider)
    return ok("Registration successful", result.model_dump(exclude={"is_existing_user"}))

@router.post("/oauth/login")
async def oauth_login(
    request: OAuthRequest,
    db: Session = Depends(get_db),
    oauth: OAuthVerifier = Depends(get_oauth_verifier),
) -> Any:
    provider = _provider(request.provider)
    user_info = await oauth.verify(request.provider, request.token)
    if not user_info:
        raise AuthenticationError("Invalid token or email not found")

    auth_response = auth_service.oauth_login(db, user_info["email"], provider)
    return ok("Login successful", auth_response.model_dump())

@router.post("/check-username")
def check_username(request: CheckUsernameRequest, db: Session = Depends(get_db)) -> Any:
    normalized = normalize_username(request.username)
    available = is_username_available(db, normalized, exclude_user_id=request.user_id)
    suggestions = [] if available else generate_suggestions(db, extract_clean(normalized), request.user_id)[:3]
    return ok(
        "Username availability checked",
        UsernameAvailability(available=available, suggestions=suggestions).model_dump(),
    )

@router.post("/complete-profile")
async def complete_profile(
    user_id: str = Form(...),
    username: str = Form(...),
    profile_pic: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    media: MediaService = Depends(get_media_service),
) -> Any:
    """
    Choose a username and optional profile picture after verifying the email.
    A picture uploaded for a request that then fails is deleted again.
    """
    normalized = normalize_username(username)

    uploaded_url = None
    if profile_pic is not None and profile_pic.filename:
        data = await profile_pic.read()
        uploaded_url = (await media.upload_image(data, "profile_pictures")).url

    try:
        user = auth_service.complete_profile(db, user_id, normalized, uploaded_url)
    except ConflictError:
        await media.discard(uploaded_url)
        suggestions = generate_suggestions(db, extract_clean(normalized), user_id)
        raise ConflictError("Username unavailable", data={"suggestions": suggestions})
    except Exception:
        await media.discard(uploaded_url)
        raise

    token = security.create_access_token(user.id, role=user.role)
    return ok("Profile completed successfully", {
        "token": token,
        "user": UserSchema.model_validate(user).model_dump(),
    })

@router.put("/fcm-token")
def put_fcm_token(
    request: FCMTokenUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    if not request.token.strip():
        raise ValidationError("FCM token is required")
    update_fcm_token(db, current_user.id, request.token.strip())
    return ok("FCM token updated successfully")
