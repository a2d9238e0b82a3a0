# dayplanner/database.py
# Engine, session factory and the FastAPI session dependency

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from dayplanner.config import DATABASE_URL

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    # Sync endpoints run in a threadpool
    connect_args["check_same_thread"] = False

engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
    pool_pre_ping=True,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
