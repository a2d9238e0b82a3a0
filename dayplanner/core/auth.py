import logging
from datetime import datetime, timezone

from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dayplanner.config import JWT_REFRESH_TTL_MINUTES
from dayplanner.core.security import TokenError, decode_access_token
from dayplanner.core.timeutils import utcnow
from dayplanner.database import get_db
from dayplanner.models.revoked_token import RevokedToken
from dayplanner.models.user import User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(scheme_name="BearerAuth", bearerFormat="JWT", auto_error=False)


def credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=401,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def is_revoked(db: Session, jti: str) -> bool:
    return db.get(RevokedToken, jti) is not None


def revoke_token(db: Session, claims: dict) -> None:
    """Denylist a token until it can no longer be used, even at /refresh, and drop lapsed entries."""
    now = utcnow()
    usable_until = max(claims["exp"], claims.get("iat", 0) + JWT_REFRESH_TTL_MINUTES * 60)
    db.query(RevokedToken).filter(RevokedToken.expires_at < now).delete(synchronize_session=False)
    if not is_revoked(db, claims["jti"]):
        db.add(RevokedToken(jti=claims["jti"], expires_at=datetime.fromtimestamp(usable_until, timezone.utc).replace(tzinfo=None)))
    try:
        db.commit()
    except IntegrityError:
        # revoked concurrently by another request
        db.rollback()


def _load_user(db: Session, claims: dict) -> User:
    if is_revoked(db, claims["jti"]):
        raise credentials_exception()
    try:
        user_id = int(claims["sub"])
    except (TypeError, ValueError):
        raise credentials_exception()
    user = db.get(User, user_id)
    if user is None:
        logger.warning("Token subject %s does not match any user", claims["sub"])
        raise credentials_exception()
    return user


def get_token_claims(credentials: HTTPAuthorizationCredentials = Security(bearer_scheme)) -> dict:
    if not credentials or not credentials.credentials:
        raise credentials_exception()
    try:
        claims = decode_access_token(credentials.credentials)
    except TokenError as e:
        logger.warning("Rejected bearer token: %s", e)
        raise credentials_exception()
    return claims


def get_refreshable_claims(credentials: HTTPAuthorizationCredentials = Security(bearer_scheme)) -> dict:
    """Like get_token_claims, but accepts tokens that expired inside the refresh window."""
    if not credentials or not credentials.credentials:
        raise credentials_exception()
    try:
        claims = decode_access_token(credentials.credentials, allow_expired=True)
    except TokenError as e:
        logger.warning("Rejected refresh token: %s", e)
        raise credentials_exception()
    return claims


def get_current_user(claims: dict = Depends(get_token_claims), db: Session = Depends(get_db)) -> User:
    return _load_user(db, claims)


def get_refreshing_user(claims: dict = Depends(get_refreshable_claims), db: Session = Depends(get_db)) -> User:
    return _load_user(db, claims)
