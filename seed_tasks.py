from datetime import time

from dayplanner.core.security import get_password_hash
from dayplanner.core.timeutils import utcnow
from dayplanner.database import Base, SessionLocal, engine
from dayplanner.models.task import Task, TaskStatus
from dayplanner.models.user import User

# Change these to seed a different account
demo_name = "Demo User"
demo_email = "demo@example.com"
demo_password = "password123"

SAMPLE_TASKS = [
    ("Morning Workout", "Start the day with 30 minutes of exercise", time(7, 0), time(7, 30), TaskStatus.done, 1),
    ("Team Meeting", "Weekly standup with development team", time(9, 0), time(10, 0), TaskStatus.progress, 0),
    ("Code Review", "Review pull requests from team members", time(10, 30), time(11, 30), TaskStatus.todo, 2),
    ("Lunch Break", None, time(12, 0), time(13, 0), TaskStatus.todo, 4),
    ("Project Development", "Continue working on the mobile app features", time(14, 0), time(17, 0), TaskStatus.progress, 3),
    ("Documentation", "Update API documentation and user guides", time(17, 30), time(18, 30), TaskStatus.todo, 1),
]

def seed(email: str):
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email).first()
        if not user:
            user = User(
                name=demo_name,
                email=email,
                password=get_password_hash(demo_password),
                email_verified_at=utcnow(),
            )
            db.add(user)
            db.flush()
            print(f"Created verified user: {email}")
        for title, description, start, end, status, color_index in SAMPLE_TASKS:
            db.add(Task(
                user_id=user.id,
                title=title,
                description=description,
                start_time=start,
                end_time=end,
                status=status,
                color_index=color_index,
            ))
        db.commit()
        print(f"Seeded {len(SAMPLE_TASKS)} tasks for {email}")
    finally:
        db.close()

if __name__ == "__main__":
    seed(demo_email)
