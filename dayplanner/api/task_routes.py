import logging
from datetime import datetime, time
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dayplanner.core.auth import get_current_user
from dayplanner.core.responses import create_response, field_error
from dayplanner.database import get_db
from dayplanner.models.task import Task, TaskStatus
from dayplanner.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["Tasks"])

END_BEFORE_START = "The end time must be a time after start time."
TIME_FORMAT = "%H:%M"


def parse_clock_time(value, field_name: str) -> time:
    """Accepts only HH:MM wall-clock times; no seconds, no UTC offsets."""
    label = field_name.replace("_", " ")
    if isinstance(value, str) and len(value) == 5:
        try:
            return datetime.strptime(value, TIME_FORMAT).time()
        except ValueError:
            pass
    raise ValueError(f"The {label} field must match the format H:i.")


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    start_time: time
    end_time: time
    status: TaskStatus = TaskStatus.todo
    color_index: int = Field(default=0, ge=0, le=4)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def clock_time(cls, value, info):
        return parse_clock_time(value, info.field_name)

    @field_validator("end_time")
    @classmethod
    def end_after_start(cls, end_time, info):
        start_time = info.data.get("start_time")
        if start_time is not None and end_time <= start_time:
            raise ValueError(END_BEFORE_START)
        return end_time


class TaskUpdate(BaseModel):
    # Partial update: only fields present in the request are applied.
    # None means "absent"; an explicit null is rejected for everything but description.
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    status: Optional[TaskStatus] = None
    color_index: Optional[int] = Field(default=None, ge=0, le=4)

    @field_validator("title", "status", "color_index", mode="before")
    @classmethod
    def not_null(cls, value, info):
        if value is None:
            raise ValueError(f"The {info.field_name.replace('_', ' ')} field may not be null.")
        return value

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def clock_time(cls, value, info):
        return parse_clock_time(value, info.field_name)


def find_user_task(db: Session, user: User, task_id: int) -> Optional[Task]:
    """Only ever returns tasks owned by user; anything else looks missing."""
    return db.query(Task).filter(Task.user_id == user.id, Task.id == task_id).first()


def task_not_found():
    return create_response("error", "Task not found", status_code=404)


@router.get("")
def list_tasks(
    status: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(Task).filter(Task.user_id == current_user.id)
    if status in {s.value for s in TaskStatus}:
        query = query.filter(Task.status == TaskStatus(status))
    tasks = query.order_by(Task.created_at.desc(), Task.id.desc()).all()
    return create_response(
        "success",
        "Tasks retrieved successfully",
        data=[task.to_dict() for task in tasks],
        count=len(tasks),
    )


@router.post("")
def create_task(body: TaskCreate, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    task = Task(user_id=current_user.id, **body.model_dump())
    db.add(task)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to create task for user %s: %s", current_user.id, e)
        return create_response("error", "Failed to create task. Please try again.", status_code=500)
    db.refresh(task)
    logger.info("Task created: user=%s task=%s title=%r", current_user.id, task.id, task.title)
    return create_response("success", "Task created successfully", status_code=201, data=task.to_dict())


@router.get("/{task_id}")
def get_task(task_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    task = find_user_task(db, current_user, task_id)
    if not task:
        return task_not_found()
    return create_response("success", "Task retrieved successfully", data=task.to_dict())


@router.put("/{task_id}")
def update_task(
    task_id: int,
    body: TaskUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    task = find_user_task(db, current_user, task_id)
    if not task:
        return task_not_found()

    changes = body.model_dump(exclude_unset=True)
    start_time = changes.get("start_time", task.start_time)
    end_time = changes.get("end_time", task.end_time)
    if ("start_time" in changes or "end_time" in changes) and end_time <= start_time:
        return field_error("end_time", END_BEFORE_START)

    for field, value in changes.items():
        setattr(task, field, value)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to update task %s for user %s: %s", task_id, current_user.id, e)
        return create_response("error", "Failed to update task. Please try again.", status_code=500)
    db.refresh(task)
    logger.info("Task updated: user=%s task=%s title=%r", current_user.id, task.id, task.title)
    return create_response("success", "Task updated successfully", data=task.to_dict())


@router.delete("/{task_id}")
def delete_task(task_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    task = find_user_task(db, current_user, task_id)
    if not task:
        return task_not_found()
    db.delete(task)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to delete task %s for user %s: %s", task_id, current_user.id, e)
        return create_response("error", "Failed to delete task. Please try again.", status_code=500)
    logger.info("Task deleted: user=%s task=%s", current_user.id, task_id)
    return create_response("success", "Task deleted successfully")
