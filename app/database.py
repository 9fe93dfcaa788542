"""
Database connection and session management for the SchoolQuiz Achievements API
"""
from sqlalchemy import create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker
from app.core.config import settings

# Create database engine with connection pooling
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,      # Test connections before using
    pool_size=10,            # Connection pool size
    max_overflow=20,         # Overflow connections allowed
    echo=settings.DEBUG      # Log SQL queries in debug mode
)

# Session factory for creating database sessions
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for all models
Base = declarative_base()


def get_db():
    """
    Dependency for getting database session in endpoints

    Usage in FastAPI endpoints:
        def my_endpoint(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Initialize database tables"""
    # Register models on Base.metadata before create_all
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def check_db_connection() -> bool:
    """Return True if a trivial query succeeds against the database"""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return True
