import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from dayplanner.config import APP_NAME
from dayplanner.database import get_db
from dayplanner.models.user import User
from dayplanner.services import pages
from dayplanner.services.password_reset import (
    ExpiredResetToken,
    InvalidResetToken,
    find_valid_reset_token,
    reset_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(include_in_schema=False)

INVALID_TOKEN = "Invalid or expired password reset token."
EXPIRED_TOKEN = "Password reset token has expired. Please request a new one."


@router.get("/")
def read_root():
    return {"message": f"Welcome to the {APP_NAME} API!"}


@router.get("/login", response_class=HTMLResponse)
def login_page(error: Optional[str] = None):
    return HTMLResponse(pages.login_page(error))


@router.get("/email-verified", response_class=HTMLResponse)
def email_verified(message: Optional[str] = None):
    return HTMLResponse(pages.email_verified_page(message))


@router.get("/reset-password", response_class=HTMLResponse)
def show_reset_form(token: Optional[str] = None, email: Optional[str] = None, db: Session = Depends(get_db)):
    if not token or not email:
        return HTMLResponse(pages.reset_error_page("Invalid password reset link."), status_code=400)
    try:
        find_valid_reset_token(db, email, token)
    except InvalidResetToken:
        return HTMLResponse(pages.reset_error_page(INVALID_TOKEN), status_code=400)
    except ExpiredResetToken:
        return HTMLResponse(pages.reset_error_page(EXPIRED_TOKEN), status_code=400)
    return HTMLResponse(pages.reset_form_page(token, email))


def validate_reset_form(token: str, email: str, password: str, password_confirmation: str) -> dict:
    errors = {}
    if not token:
        errors["token"] = ["The token field is required."]
    if not email or "@" not in email:
        errors["email"] = ["The email field must be a valid email address."]
    if len(password) < 8:
        errors["password"] = ["The password field must be at least 8 characters."]
    elif password != password_confirmation:
        errors["password"] = ["The password field confirmation does not match."]
    return errors


@router.post("/reset-password", response_class=HTMLResponse)
def submit_reset_form(
    request: Request,
    token: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    password_confirmation: str = Form(""),
    db: Session = Depends(get_db),
):
    errors = validate_reset_form(token, email, password, password_confirmation)
    user = None
    if not errors:
        user = db.query(User).filter(User.email == email).first()
        if not user:
            errors["email"] = ["The selected email is invalid."]
    if errors:
        return HTMLResponse(pages.reset_form_page(token, email, errors=errors), status_code=422)

    try:
        reset_password(db, user, token, password)
    except InvalidResetToken:
        return HTMLResponse(pages.reset_form_page(token, email, error=INVALID_TOKEN), status_code=400)
    except ExpiredResetToken:
        return HTMLResponse(pages.reset_form_page(token, email, error=EXPIRED_TOKEN), status_code=400)

    logger.info(
        "Password reset completed via web form: user=%s email=%s ip=%s user_agent=%s",
        user.id,
        user.email,
        request.client.host if request.client else None,
        request.headers.get("user-agent"),
    )
    return HTMLResponse(pages.reset_success_page())


@router.get("/password-reset-success", response_class=HTMLResponse)
def password_reset_success():
    return HTMLResponse(pages.reset_success_page())
