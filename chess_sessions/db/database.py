"""Generate database engine and sessions"""

import logging
from typing import Iterator

from sqlalchemy import Engine, StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from chess_sessions.core.config import SETTINGS
from chess_sessions.db.schema import Base

logger = logging.getLogger(__name__)


def build_engine(database_url: str | None = None, echo: bool | None = None) -> Engine:
    """Create the engine and ensure all tables exist."""
    url = database_url or SETTINGS.database_url
    connect_args: dict[str, object] = {}
    engine_options: dict[str, object] = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        if ":memory:" in url:
            # every connection would otherwise get its own empty in-memory database
            engine_options["poolclass"] = StaticPool

    engine = create_engine(
        url,
        echo=SETTINGS.sql_echo if echo is None else echo,
        connect_args=connect_args,
        **engine_options,
    )
    Base.metadata.create_all(bind=engine)
    logger.info("Database ready at %s", engine.url.render_as_string(hide_password=True))
    return engine


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine)


def get_db(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
