# dayplanner/core/security.py
# Password hashing, bearer tokens and signed links
import calendar
import hashlib
import secrets
import string
import uuid
from datetime import timedelta
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from dayplanner.config import (
    EMAIL_VERIFY_TTL_MINUTES,
    JWT_REFRESH_TTL_MINUTES,
    JWT_TTL_MINUTES,
    SECRET_KEY,
)
from dayplanner.core.timeutils import utcnow

ALGORITHM = "HS256"
RESET_TOKEN_LENGTH = 64
EMAIL_VERIFY_SALT = "email-verification"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class TokenError(Exception):
    """Raised when a bearer token cannot be accepted."""


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    now = utcnow()
    if expires_delta is None:
        expires_delta = timedelta(minutes=JWT_TTL_MINUTES)
    to_encode = {
        "sub": str(user_id),
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str, allow_expired: bool = False) -> dict:
    """
    Returns the claims of a token signed by us.

    With allow_expired the expiry check is replaced by the refresh window,
    measured from the time the token was issued.
    """
    try:
        payload = jwt.decode(
            token,
            SECRET_KEY,
            algorithms=[ALGORITHM],
            options={"verify_exp": not allow_expired},
        )
    except ExpiredSignatureError:
        raise TokenError("Token has expired")
    except JWTError as e:
        raise TokenError(f"Invalid token: {e}")
    if not payload.get("sub") or not payload.get("jti"):
        raise TokenError("Token is missing claims")
    if allow_expired:
        issued_at = payload.get("iat")
        if issued_at is None:
            raise TokenError("Token is missing claims")
        refresh_deadline = issued_at + JWT_REFRESH_TTL_MINUTES * 60
        if refresh_deadline < utcnow_timestamp():
            raise TokenError("Token can no longer be refreshed")
    return payload


def utcnow_timestamp() -> int:
    return calendar.timegm(utcnow().utctimetuple())


def email_hash(email: str) -> str:
    return hashlib.sha1(email.encode("utf-8")).hexdigest()


def _verification_serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(SECRET_KEY, salt=EMAIL_VERIFY_SALT)


def make_verification_signature(user_id: int, hash_value: str) -> str:
    return _verification_serializer().dumps({"id": user_id, "hash": hash_value})


def check_verification_signature(signature: str, user_id: int, hash_value: str) -> bool:
    """True if the signature was issued for this id/hash pair and has not expired."""
    try:
        data = _verification_serializer().loads(signature, max_age=EMAIL_VERIFY_TTL_MINUTES * 60)
    except (SignatureExpired, BadSignature):
        return False
    return (
        isinstance(data, dict)
        and data.get("id") == user_id
        and secrets.compare_digest(str(data.get("hash", "")).encode(), hash_value.encode())
    )


def generate_reset_token(length: int = RESET_TOKEN_LENGTH) -> str:
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))
