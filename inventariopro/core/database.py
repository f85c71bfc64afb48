import logging
from datetime import datetime, timezone
from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import Settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def build_engine(database_url: str, echo: bool = False) -> Engine:
    kwargs = {"echo": echo, "pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        # Requests are served from a threadpool
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


class AppContext:
    """
    Process-wide resources: settings, engine and session factory.

    Created by create_app() and stored on app.state.context; its lifetime
    follows the application lifespan.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine = build_engine(settings.database_url, echo=settings.debug)
        self.session_factory = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine
        )

    def startup(self) -> None:
        # Importing the models registers their tables on Base.metadata
        from .. import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables created successfully")

    def shutdown(self) -> None:
        self.engine.dispose()
        logger.info("Database engine disposed")


def get_settings(request: Request) -> Settings:
    return request.app.state.context.settings


def get_db(request: Request) -> Generator[Session, None, None]:
    db = request.app.state.context.session_factory()
    try:
        yield db
    finally:
        db.close()
