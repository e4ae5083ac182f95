from __future__ import annotations
import os
from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from .models import Base

# ---------------------------------------------------------------------------
# Database location
# ---------------------------------------------------------------------------
# Defaults to: <cwd>/data/tcgvault.db
# Override via DATABASE_URL env (any SQLAlchemy URL, e.g. postgresql+psycopg://...).
# ---------------------------------------------------------------------------

DATA_DIR = Path(os.getenv("TCGVAULT_DATA_DIR", Path.cwd() / "data"))
DB_PATH = DATA_DIR / "tcgvault.db"

# DATABASE_URL is the URL of the catalog database
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DB_PATH.as_posix()}")

if DATABASE_URL.startswith("sqlite:///") and DATABASE_URL == f"sqlite:///{DB_PATH.as_posix()}":
    DATA_DIR.mkdir(parents=True, exist_ok=True)


def make_engine(url: str):
    """
    Build an engine for `url`. SQLite connections may be used from the
    expansion-count worker threads, so same-thread checking is disabled.
    """
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=False, future=True, connect_args=connect_args)


# engine is the database engine
engine = make_engine(DATABASE_URL)

# SessionLocal is a factory for creating new database sessions
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)


def init_db() -> None:
    """Create all catalog tables defined in models.py (idempotent)."""
    Base.metadata.create_all(bind=engine)
