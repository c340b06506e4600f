"""Database bootstrap helpers shared by all services."""

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker


def make_session_factory(dsn: str, statement_timeout_ms: int | None = None) -> sessionmaker:
    """Create one engine per process and return its session factory."""

    connect_args = {}
    if statement_timeout_ms and dsn.startswith("postgresql"):
        # A write that hangs past the timeout raises instead of blocking the handler.
        connect_args["options"] = f"-c statement_timeout={statement_timeout_ms}"
    engine = create_engine(dsn, pool_pre_ping=True, connect_args=connect_args)
    # `expire_on_commit=False` keeps ORM objects readable after commit in handlers.
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


class Base(DeclarativeBase):
    """Declarative base for SQLAlchemy models."""

    pass
