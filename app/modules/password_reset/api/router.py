from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from app.core.email import EmailSender
from app.core.errors import AuthenticationError, NotFoundError, ValidationError
from app.core.responses import ok
from app.db.session import get_db
from app.deps import get_email_sender
from app.modules.password_reset.schemas.password_reset import ForgotPasswordRequest, ResetPasswordRequest
from app.modules.password_reset.services.password_reset import (
    ResetPasswordResult,
    issue_reset_code,
    reset_password,
)

router = APIRouter()

RESET_CODE_SENT = "If this email exists, a reset code has been sent"

def _send_reset_code(
    db: Session, email_address: str, background_tasks: BackgroundTasks, email: EmailSender
) -> None:
    issued = issue_reset_code(db, email_address)
    if issued:
        user, code = issued
        background_tasks.add_task(email.send_password_reset_code, user.email, user.name or "User", code)

@router.post("/forgot")
def forgot_password(
    request: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    email: EmailSender = Depends(get_email_sender),
) -> Any:
    """Email a reset code; the answer is the same for unknown emails"""
    _send_reset_code(db, request.email, background_tasks, email)
    return ok(RESET_CODE_SENT)

@router.post("/resend-otp")
def resend_reset_code(
    request: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    email: EmailSender = Depends(get_email_sender),
) -> Any:
    _send_reset_code(db, request.email, background_tasks, email)
    return ok(RESET_CODE_SENT)

@router.post("/reset")
def reset(request: ResetPasswordRequest, db: Session = Depends(get_db)) -> Any:
    result = reset_password(db, request.email, request.otp, request.new_password)
    if result == ResetPasswordResult.USER_NOT_FOUND:
        raise NotFoundError("User not found")
    if result == ResetPasswordResult.INVALID_REQUEST:
        raise ValidationError("Invalid request")
    if result == ResetPasswordResult.INVALID_OTP:
        raise AuthenticationError("Invalid or expired code")
    return ok("Password reset successfully")
