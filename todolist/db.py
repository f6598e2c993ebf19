from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

import os
import logging

from .errors import StoreUnavailable
# register table metadata before create_all
from . import models  # noqa: F401

logger = logging.getLogger(__name__)


def _sqlite_path_from_url(url: str | None) -> str | None:
    if not url:
        return None
    if url.startswith('sqlite+aiosqlite:///'):
        path = url.replace('sqlite+aiosqlite:///', '', 1)
    elif url.startswith('sqlite:///'):
        path = url.replace('sqlite:///', '', 1)
    else:
        return None
    if not path or path == ':memory:':
        return None
    if path.startswith('./'):
        path = path[2:]
    return os.path.abspath(path)


def make_engine(url: str, echo: bool = False) -> AsyncEngine:
    # NullPool: every session gets a fresh connection and returns it on close,
    # so no pooled sqlite connections outlive the event loop in tests.
    return create_async_engine(url, echo=echo, future=True, poolclass=NullPool)


def make_sessionmaker(engine: AsyncEngine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Create tables, raising StoreUnavailable if the database can't be reached."""
    url = str(engine.url)
    db_path = _sqlite_path_from_url(url)
    if db_path:
        parent = os.path.dirname(db_path)
        if parent and not os.path.isdir(parent):
            raise StoreUnavailable(f'database directory does not exist: {parent}')
    try:
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
    except (SQLAlchemyError, OSError) as e:
        logger.error('database init failed for %s: %s', engine.url.render_as_string(hide_password=True), e)
        raise StoreUnavailable(str(e)) from e
