import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dayplanner.config import API_PREFIX, APP_DEBUG, APP_URL
from dayplanner.core.auth import (
    get_current_user,
    get_refreshable_claims,
    get_refreshing_user,
    get_token_claims,
    revoke_token,
)
from dayplanner.core.responses import create_response, field_error, validation_error_response
from dayplanner.core.security import (
    check_verification_signature,
    create_access_token,
    email_hash,
    get_password_hash,
    make_verification_signature,
    verify_password,
)
from dayplanner.database import get_db
from dayplanner.models.user import User
from dayplanner.services import image_storage
from dayplanner.services.password_reset import (
    ExpiredResetToken,
    InvalidResetToken,
    discard_reset_token,
    issue_reset_token,
    reset_password,
)
from dayplanner.services.zoho_mail import ZohoMailService, get_mail_service

logger = logging.getLogger(__name__)

router = APIRouter()

INVALID_VERIFICATION_LINK = "Invalid verification link."
UNKNOWN_EMAIL = "The selected email is invalid."


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8)
    password_confirmation: str = Field(min_length=8)

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class EmailRequest(BaseModel):
    email: EmailStr

class ResetPasswordRequest(BaseModel):
    email: EmailStr
    token: str
    password: str = Field(min_length=8)
    password_confirmation: str

class UpdateProfileRequest(BaseModel):
    # Omitted fields are left alone; an explicit null is rejected
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None

    @field_validator("name", "email", mode="before")
    @classmethod
    def not_null(cls, value, info):
        if value is None:
            raise ValueError(f"The {info.field_name} field may not be null.")
        return value

class UpdatePasswordRequest(BaseModel):
    current_password: str
    password: str = Field(min_length=8)
    password_confirmation: str


def verification_url(user: User) -> str:
    hash_value = email_hash(user.email)
    signature = make_verification_signature(user.id, hash_value)
    return f"{APP_URL}{API_PREFIX}/email/verify/{user.id}/{hash_value}?{urlencode({'signature': signature})}"


def password_reset_url(email: str, token: str) -> str:
    return f"{APP_URL}/reset-password?{urlencode({'token': token, 'email': email})}"


def token_payload(token: str) -> dict:
    return {"token": token, "type": "bearer"}


@router.post("/register")
def register(body: RegisterRequest, db: Session = Depends(get_db), mailer: ZohoMailService = Depends(get_mail_service)):
    if db.query(User).filter(User.email == body.email).first():
        return field_error("email", "The email has already been taken.")
    if body.password != body.password_confirmation:
        return field_error("password_confirmation", "The password confirmation does not match.")

    user = User(name=body.name, email=body.email, password=get_password_hash(body.password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return field_error("email", "The email has already been taken.")
    db.refresh(user)

    sent = mailer.send_verification_email(user, verification_url(user))
    logger.info("User registered: id=%s email=%s verification_sent=%s", user.id, user.email, sent)
    return create_response(
        "success",
        "User registered successfully. Please verify your email address.",
        status_code=201,
        user=user.to_dict(["id", "name", "email"]),
        email_verification_sent=sent,
    )


@router.post("/login")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email).first()
    if user and not user.has_verified_email():
        logger.warning("Login attempt for unverified email %s", body.email)
        return create_response(
            "error",
            "Please verify your email address before logging in.",
            status_code=403,
            email_verified=False,
            can_resend_verification=True,
            user_email=user.email,
        )
    if not user or not verify_password(body.password, user.password):
        return create_response("error", "Invalid credentials", status_code=401)

    return create_response(
        "success",
        "Login successful",
        user=user.to_dict(),
        authorization=token_payload(create_access_token(user.id)),
    )


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return create_response("success", "Authenticated user", user=current_user.to_dict())


@router.post("/logout")
def logout(
    current_user: User = Depends(get_current_user),
    claims: dict = Depends(get_token_claims),
    db: Session = Depends(get_db),
):
    revoke_token(db, claims)
    logger.info("User %s logged out", current_user.id)
    return create_response("success", "Successfully logged out")


@router.post("/refresh")
def refresh(
    current_user: User = Depends(get_refreshing_user),
    claims: dict = Depends(get_refreshable_claims),
    db: Session = Depends(get_db),
):
    revoke_token(db, claims)
    return create_response(
        "success",
        "Token refreshed",
        user=current_user.to_dict(),
        authorization=token_payload(create_access_token(current_user.id)),
    )


@router.post("/forgot-password")
def forgot_password(body: EmailRequest, db: Session = Depends(get_db), mailer: ZohoMailService = Depends(get_mail_service)):
    user = db.query(User).filter(User.email == body.email).first()
    if not user:
        return field_error("email", UNKNOWN_EMAIL)

    token = issue_reset_token(db, user.email)
    if not mailer.send_password_reset_email(user, password_reset_url(user.email, token)):
        # No usable token may outlive a link that never arrived
        discard_reset_token(db, user.email)
        logger.error("Failed to send password reset email to %s (user %s)", user.email, user.id)
        return create_response(
            "error",
            "Failed to send password reset email. Please try again later.",
            status_code=500,
            error_details=(mailer.last_error or "Mail send failed") if APP_DEBUG else "Email service unavailable",
        )

    logger.info("Password reset email sent to %s (user %s)", user.email, user.id)
    return create_response("success", "Password reset link sent to your email")


@router.post("/reset-password")
def reset_password_api(body: ResetPasswordRequest, db: Session = Depends(get_db)):
    if body.password != body.password_confirmation:
        return field_error("password", "The password field confirmation does not match.")
    user = db.query(User).filter(User.email == body.email).first()
    if not user:
        return field_error("email", UNKNOWN_EMAIL)

    try:
        reset_password(db, user, body.token, body.password)
    except InvalidResetToken:
        return create_response("error", "Invalid or expired password reset token", status_code=400)
    except ExpiredResetToken:
        return create_response("error", "Password reset token has expired", status_code=400)
    return create_response("success", "Password has been reset successfully")


@router.get("/email/verify/{user_id}/{hash_value}", response_class=RedirectResponse)
def verify_email(
    user_id: int,
    hash_value: str,
    signature: Optional[str] = None,
    db: Session = Depends(get_db),
    mailer: ZohoMailService = Depends(get_mail_service),
):
    invalid = RedirectResponse(f"/login?{urlencode({'error': INVALID_VERIFICATION_LINK})}", status_code=302)
    if not signature or not check_verification_signature(signature, user_id, hash_value):
        return invalid
    user = db.get(User, user_id)
    if not user or hash_value != email_hash(user.email):
        return invalid

    if not user.mark_email_as_verified():
        message = "Email already verified. You can now log in."
    else:
        db.commit()
        logger.info("Email verified: id=%s email=%s", user.id, user.email)
        mailer.send_welcome_email(user)
        message = "Email verified successfully. You can now log in."
    return RedirectResponse(f"/email-verified?{urlencode({'message': message})}", status_code=302)


@router.post("/email/resend")
def resend_verification(body: EmailRequest, db: Session = Depends(get_db), mailer: ZohoMailService = Depends(get_mail_service)):
    user = db.query(User).filter(User.email == body.email).first()
    if not user:
        return field_error("email", UNKNOWN_EMAIL)
    if user.has_verified_email():
        return create_response("error", "Email is already verified", status_code=400)
    if not mailer.send_verification_email(user, verification_url(user)):
        return create_response("error", "Failed to send verification email. Please try again later.", status_code=500)
    return create_response("success", "Verification email sent successfully")


@router.put("/profile")
def update_profile(
    body: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    mailer: ZohoMailService = Depends(get_mail_service),
):
    fields = body.model_dump(exclude_unset=True)
    if "email" in fields and fields["email"] != current_user.email:
        taken = db.query(User).filter(User.email == fields["email"], User.id != current_user.id).first()
        if taken:
            return field_error("email", "The email has already been taken.")

    name_changed = "name" in fields and fields["name"] != current_user.name
    email_changed = "email" in fields and fields["email"] != current_user.email
    if not name_changed and not email_changed:
        return create_response("info", "No changes detected")

    if name_changed:
        current_user.name = fields["name"]
    if email_changed:
        current_user.email = fields["email"]
        current_user.email_verified_at = None
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return field_error("email", "The email has already been taken.")
    db.refresh(current_user)
    logger.info("Profile updated for user %s", current_user.id)

    user_data = current_user.to_dict(["id", "name", "email"])
    if not email_changed:
        return create_response("success", "Profile updated successfully", user=user_data)

    if mailer.send_verification_email(current_user, verification_url(current_user)):
        return create_response(
            "success",
            "Profile updated successfully. A verification email has been sent to your new email address.",
            user=user_data,
            email_verification_sent=True,
            email_verification_required=True,
        )
    logger.error("Failed to send verification email after profile update for user %s", current_user.id)
    return create_response(
        "success",
        "Profile updated successfully, but failed to send verification email.",
        user=user_data,
        email_verification_sent=False,
        email_verification_required=True,
    )


@router.put("/password")
def update_password(
    body: UpdatePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if body.password != body.password_confirmation:
        return field_error("password", "The password field confirmation does not match.")
    if not verify_password(body.current_password, current_user.password):
        return validation_error_response({"current_password": ["The current password is incorrect."]})

    current_user.password = get_password_hash(body.password)
    db.commit()
    logger.info("Password updated for user %s (%s)", current_user.id, current_user.email)
    return create_response("success", "Password updated successfully")


@router.post("/image")
def update_image(
    image: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        data = image_storage.read_profile_image(image)
    except image_storage.InvalidImage as e:
        return field_error("image", str(e))

    try:
        image_path = image_storage.store_profile_image(data, image.filename)
    except OSError as e:
        logger.error("Failed to store profile image for user %s: %s", current_user.id, e)
        return create_response("error", "Failed to update profile image. Please try again.", status_code=500)

    old_path = current_user.image
    current_user.image = image_path
    db.commit()
    try:
        if old_path and old_path != image_path:
            image_storage.delete_profile_image(old_path)
    except OSError as e:
        logger.warning("Could not remove old profile image %s: %s", old_path, e)

    logger.info("Profile image updated for user %s: %s", current_user.id, image_path)
    return create_response(
        "success",
        "Profile image updated successfully",
        user=current_user.to_dict(["id", "name", "email", "image"]),
        image_url=image_storage.public_url(image_path),
    )
