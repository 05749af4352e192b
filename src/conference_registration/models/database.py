"""Database engine and session dependency"""

import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlmodel import Session

from conference_registration.config import config

# Database URL from config
DATABASE_URL = config["database_url"]

if not DATABASE_URL:
    raise ValueError(
        "DATABASE_URL environment variable is not set. "
        "Set DATABASE_URL in the deployment environment or the local .env file."
    )


def build_engine(database_url: str) -> Engine:
    """Create an engine; SQLite connections are shared with upload worker threads."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(
        database_url,
        echo=os.getenv("DEBUG", "false").lower() == "true",
        connect_args=connect_args,
        pool_pre_ping=not database_url.startswith("sqlite"),
    )


engine = build_engine(DATABASE_URL)


def get_db():
    """Get database session"""
    with Session(engine) as session:
        yield session
