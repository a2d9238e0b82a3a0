"""
Password reset token lifecycle.

One row per email in password_reset_tokens. A token is valid for
PASSWORD_RESET_TTL_MINUTES after creation and is removed when used, when
found expired, or when the email carrying it could not be sent.
"""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dayplanner.config import PASSWORD_RESET_TTL_MINUTES
from dayplanner.core.security import generate_reset_token, get_password_hash
from dayplanner.core.timeutils import utcnow
from dayplanner.models.password_reset import PasswordResetToken
from dayplanner.models.user import User

logger = logging.getLogger(__name__)

RESET_TOKEN_TTL = timedelta(minutes=PASSWORD_RESET_TTL_MINUTES)


class InvalidResetToken(Exception):
    pass


class ExpiredResetToken(Exception):
    pass


def issue_reset_token(db: Session, email: str) -> str:
    """Creates a token for email, replacing any earlier one."""
    token = generate_reset_token()
    try:
        db.merge(PasswordResetToken(email=email, token=token, created_at=utcnow()))
        db.commit()
    except IntegrityError:
        # A concurrent request inserted the row between our lookup and insert;
        # the primary key rejected ours, so overwrite theirs instead.
        db.rollback()
        db.merge(PasswordResetToken(email=email, token=token, created_at=utcnow()))
        db.commit()
    return token


def discard_reset_token(db: Session, email: str) -> None:
    db.query(PasswordResetToken).filter(PasswordResetToken.email == email).delete()
    db.commit()


def is_expired(record: PasswordResetToken, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    return record.created_at + RESET_TOKEN_TTL < now


def find_valid_reset_token(db: Session, email: str, token: str) -> PasswordResetToken:
    record = db.get(PasswordResetToken, email)
    if record is None or not secrets.compare_digest(record.token.encode(), (token or "").encode()):
        raise InvalidResetToken()
    if is_expired(record):
        logger.warning("Expired password reset token used for %s", email)
        discard_reset_token(db, email)
        raise ExpiredResetToken()
    return record


def reset_password(db: Session, user: User, token: str, new_password: str) -> None:
    record = find_valid_reset_token(db, user.email, token)
    user.password = get_password_hash(new_password)
    db.delete(record)
    db.commit()
    logger.info("Password reset for user %s (%s)", user.id, user.email)
