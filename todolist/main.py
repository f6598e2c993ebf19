from contextlib import asynccontextmanager
import logging
import sys

from fastapi import FastAPI

from . import config
from .api import router as tasks_router, not_found_handler, validation_handler
from .errors import NotFoundError, ValidationError
from .service import TaskService
from .store import TaskStore, open_store

logger = logging.getLogger(__name__)
# Ensure INFO-level messages from the package appear on the server console
# when no handlers are configured.
_pkg_logger = logging.getLogger('todolist')
if not _pkg_logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter('%(asctime)s %(levelname)s:%(name)s: %(message)s')
    handler.setFormatter(formatter)
    _pkg_logger.addHandler(handler)
_pkg_logger.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))


async def store_from_config() -> TaskStore:
    return await open_store(
        config.TASK_STORE,
        database_url=config.DATABASE_URL,
        local_path=config.LOCAL_STORE_PATH,
        local_key=config.LOCAL_STORE_KEY,
        echo=config.SQL_ECHO,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    owned = False
    if getattr(app.state, 'task_service', None) is None:
        # StoreUnavailable propagates and aborts startup
        store = await store_from_config()
        app.state.task_service = TaskService(store)
        owned = True
    store = app.state.task_service.store
    logger.info('starting server using task store %s', store.describe())
    try:
        yield
    finally:
        if owned:
            await store.close()
            app.state.task_service = None
            logger.info('task store closed')


def create_app(store: TaskStore | None = None) -> FastAPI:
    """Build the application; a given store is used instead of the configured one."""
    app = FastAPI(lifespan=lifespan)
    app.state.task_service = TaskService(store) if store is not None else None
    app.include_router(tasks_router)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(ValidationError, validation_handler)
    return app


app = create_app()
