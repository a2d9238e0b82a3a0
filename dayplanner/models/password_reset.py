from sqlalchemy import Column, DateTime, String

from dayplanner.core.timeutils import utcnow
from dayplanner.database import Base

class PasswordResetToken(Base):
    __tablename__ = "password_reset_tokens"

    # One live token per email
    email = Column(String(255), primary_key=True)
    token = Column(String(64), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
