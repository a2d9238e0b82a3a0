import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text, Time
from sqlalchemy.orm import relationship

from dayplanner.core.timeutils import utcnow
from dayplanner.database import Base


class TaskStatus(str, enum.Enum):
    todo = "todo"
    progress = "progress"
    done = "done"


# Shared with the mobile client, indexed by color_index
TASK_COLORS = {
    0: "#2196F3",  # Blue
    1: "#4CAF50",  # Green
    2: "#FF9800",  # Orange
    3: "#9C27B0",  # Purple
    4: "#F44336",  # Red
}


def color_for_index(color_index) -> str:
    """Hex color for a palette index; anything unknown falls back to entry 0."""
    return TASK_COLORS.get(color_index, TASK_COLORS[0])


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(
        Enum(TaskStatus, values_callable=lambda e: [m.value for m in e], native_enum=False, length=16),
        nullable=False,
        default=TaskStatus.todo,
    )
    color_index = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="tasks")

    @property
    def color_hex(self) -> str:
        return color_for_index(self.color_index)

    def to_dict(self):
        status = self.status.value if isinstance(self.status, TaskStatus) else self.status
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "start_time": self.start_time.strftime("%H:%M") if self.start_time else None,
            "end_time": self.end_time.strftime("%H:%M") if self.end_time else None,
            "status": status,
            "color_index": self.color_index,
            "color_hex": self.color_hex,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
