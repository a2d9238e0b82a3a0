from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from dayplanner.core.timeutils import utcnow
from dayplanner.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)
    email_verified_at = Column(DateTime, nullable=True)
    image = Column(String, nullable=True)  # path relative to STORAGE_DIR
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    tasks = relationship("Task", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)

    def has_verified_email(self) -> bool:
        return self.email_verified_at is not None

    def mark_email_as_verified(self) -> bool:
        """Sets email_verified_at once. Returns False if it was already set."""
        if self.email_verified_at is not None:
            return False
        self.email_verified_at = utcnow()
        return True

    def to_dict(self, fields=None):
        data = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "email_verified_at": self.email_verified_at.isoformat() if self.email_verified_at else None,
            "image": self.image,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if fields:
            return {key: data[key] for key in fields}
        return data
