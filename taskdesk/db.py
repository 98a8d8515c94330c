# PURPOSE: create the engine, a Session factory and the per-request dependency.

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings

# Choose engine based on DATABASE_URL; apply SQLite-specific connect_args only when needed.
db_url = settings.DATABASE_URL
connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}

engine = create_engine(db_url, connect_args=connect_args, pool_pre_ping=True)

# SessionLocal: we open/close this per-request in FastAPI
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base: parent class for all ORM models (tables)
Base = declarative_base()


def get_db():
    """Yield a SQLAlchemy session (used as a FastAPI dependency).

    Anything left uncommitted when the request fails is rolled back.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
