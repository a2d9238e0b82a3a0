from sqlalchemy import Column, DateTime, String

from dayplanner.database import Base

class RevokedToken(Base):
    """Bearer tokens invalidated by logout or refresh, kept until they would expire."""
    __tablename__ = "revoked_tokens"

    jti = Column(String(64), primary_key=True)
    expires_at = Column(DateTime, nullable=False, index=True)
