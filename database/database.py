"""
quizforge storage binding

Postgres is assembled from POSTGRES_* variables unless DATABASE_URL is set;
tests point DATABASE_URL at in-memory SQLite. Routers get one session per
request through get_db.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker
import os

# Connection settings
POSTGRES_USER = os.getenv("POSTGRES_USER", "quiz_user")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "quiz_pass")
POSTGRES_HOST = os.getenv("POSTGRES_HOST", "localhost")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")
POSTGRES_DB = os.getenv("POSTGRES_DB", "quizforge")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}",
)

# sqlite: single file or memory, no pool sizing
if DATABASE_URL.startswith("sqlite"):
    engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False})
else:
    engine = create_engine(
        DATABASE_URL,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10
    )

# One Session per request or per test
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Declarative base shared by database.models
Base = declarative_base()


def get_db():
    """Request-scoped session; closed when the response is done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
