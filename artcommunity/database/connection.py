"""
Database connection and session management
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from artcommunity.config.settings import settings
from artcommunity.database.models import Base
from typing import Generator
def _engine_options(url: str) -> dict:
    """Driver-specific engine arguments"""
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True, "pool_recycle": 300}
    options = {"connect_args": {"check_same_thread": False}}
    # In-memory SQLite lives inside a single connection
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options
# Create database engine
engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DATABASE_ECHO,
    **_engine_options(settings.DATABASE_URL)
)
# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)
def create_tables():
    """Create all database tables"""
    Base.metadata.create_all(bind=engine)
def drop_tables():
    """Drop all database tables"""
    Base.metadata.drop_all(bind=engine)
def get_db() -> Generator[Session, None, None]:
    """Dependency for getting database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
async def init_db():
    """Initialize database - create tables if they don't exist"""
    create_tables()
