from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from electronics_store.config import get_settings

settings = get_settings()

# Seconds a writer waits for another transaction to release the SQLite lock
SQLITE_BUSY_TIMEOUT = 30


def build_engine(database_url: str):
    """
    Create a SQLAlchemy engine for the given URL.

    SQLite connections are shared across request threads, so same-thread
    checking is disabled and concurrent writers queue on the database lock
    instead of failing; other backends get a sized connection pool.
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
        )
    return create_engine(
        database_url,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
    )


engine = build_engine(settings.DATABASE_URL)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def get_db():
    """
    Dependency to get database session.
    Yields a database session and closes it after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
