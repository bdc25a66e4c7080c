"""SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 in synchronous mode. One engine per process with
connection pooling, one short-lived Session per repo call. The users
context is a synchronous, request-scoped layer, so there is no async
session here.
"""

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from authex.config import settings


def build_engine(url: str | None = None, **kwargs) -> Engine:
    """Create an engine. echo follows AUTHEX_DEBUG to show SQL queries."""
    url = url or settings.database_url
    kwargs.setdefault("echo", settings.debug)
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, **kwargs)


engine = build_engine()

# Session factory, each repo call gets its own session.
session_factory = sessionmaker(
    engine,
    class_=Session,
    expire_on_commit=False,
)

