"""Runtime configuration for the todolist service.

Values are read from environment variables so the store backend and paths
can be switched between development, tests and deployment without code
changes.
"""
import os


def _trueish(v: str | None) -> bool:
    if not v:
        return False
    return v.lower() in ('1', 'true', 'yes', 'on')


# Async SQLAlchemy URL for the database-backed store.
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite+aiosqlite:///./todolist.db')

# Which store backs the REST API: 'sql' (database collection) or 'local'
# (single serialized list under LOCAL_STORE_KEY).
TASK_STORE = os.getenv('TASK_STORE', 'sql').lower()

# SQLite key/value file used by the local store.
LOCAL_STORE_PATH = os.getenv('LOCAL_STORE_PATH', './todolist_local.db')

# Key under which the local store keeps the whole task list.
LOCAL_STORE_KEY = os.getenv('LOCAL_STORE_KEY', 'tasks')

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

# Echo SQL statements issued by the engine (noisy; debugging only).
SQL_ECHO = _trueish(os.getenv('SQL_ECHO', '0'))

HOST = os.getenv('HOST', '127.0.0.1')
try:
    PORT = int(os.getenv('PORT', '8000'))
except ValueError:
    PORT = 8000

# Optional local overrides: define variables in todolist/local_config.py to
# override the defaults above without changing versioned config.
try:
    from .local_config import *  # type: ignore  # noqa: F401,F403
except ImportError:
    pass
