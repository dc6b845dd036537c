from __future__ import annotations

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from foodshop.core.config import get_settings
from foodshop.persistence.models import Base


def create_engine_from_url(url: str) -> Engine:
    # sqlite connections are shared with the threadpool that runs the function routes
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, future=True, pool_pre_ping=True, connect_args=connect_args)


def build_session_factory(bind: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=bind, autoflush=False, autocommit=False, expire_on_commit=False)


settings = get_settings()
engine = create_engine_from_url(settings.database_url)
SessionLocal = build_session_factory(engine)


def configure_database(url: str) -> Engine:
    """Point the module-level engine and session factory at another database."""
    global engine, SessionLocal
    engine.dispose()
    engine = create_engine_from_url(url)
    SessionLocal = build_session_factory(engine)
    return engine


def init_db() -> None:
    Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Commit on success, roll back on any error; shop and capture writes go through here."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_session() -> Generator[Session, None, None]:
    with session_scope() as session:
        yield session
