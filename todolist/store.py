"""Task stores: the persistence boundary for the task collection.

Two implementations share the TaskStore contract:

- SqlTaskStore keeps one row per task in a SQL table (async SQLAlchemy via
  SQLModel). Ids are autoincrement integers, the list is newest-first.
- LocalTaskStore keeps the whole collection as one JSON array under a single
  key in a small SQLite key/value file. The array is read once when the store
  is opened and rewritten in full after every mutation. Ids are UUID hex
  strings, the list is in insertion order.

Both persist before returning from any mutating call.
"""
import abc
import asyncio
import json
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, List

import aiosqlite
from sqlmodel import select
from sqlalchemy.exc import SQLAlchemyError

from .db import init_db, make_engine, make_sessionmaker
from .errors import NotFoundError, StoreUnavailable, ValidationError
from .models import Task, TaskRead
from .utils import clean_text, now_utc

logger = logging.getLogger(__name__)

NEWEST_FIRST = 'newest_first'
INSERTION = 'insertion'

UPDATABLE_FIELDS = ('text', 'completed')

# SQLite INTEGER is a signed 64-bit value
MAX_SQL_ID = 2 ** 63 - 1


def normalize_fields(fields: Dict[str, Any] | None) -> Dict[str, Any]:
    """Validate a partial update and return only the fields to apply.

    Unknown keys are dropped. `text` must be a non-blank string (returned
    trimmed) and `completed` must be a bool.
    """
    out: Dict[str, Any] = {}
    if not fields:
        return out
    if 'text' in fields:
        text = fields['text']
        if not isinstance(text, str):
            raise ValidationError('text must be a string')
        text = clean_text(text)
        if not text:
            raise ValidationError('text must not be empty')
        out['text'] = text
    if 'completed' in fields:
        completed = fields['completed']
        if not isinstance(completed, bool):
            raise ValidationError('completed must be a boolean')
        out['completed'] = completed
    return out


def require_text(text) -> str:
    if not isinstance(text, str):
        raise ValidationError('text must be a string')
    cleaned = clean_text(text)
    if not cleaned:
        raise ValidationError('text must not be empty')
    return cleaned


class TaskStore(abc.ABC):
    """Holder of the task collection and sole assigner of task ids."""

    # How list() orders tasks; presentation code uses it to place new tasks.
    ordering: str = INSERTION

    @abc.abstractmethod
    async def list(self) -> List[TaskRead]:
        ...

    @abc.abstractmethod
    async def get(self, task_id) -> TaskRead:
        ...

    @abc.abstractmethod
    async def create(self, text: str) -> TaskRead:
        ...

    @abc.abstractmethod
    async def update(self, task_id, fields: Dict[str, Any]) -> TaskRead:
        ...

    @abc.abstractmethod
    async def delete(self, task_id) -> None:
        ...

    async def close(self) -> None:
        return None

    def describe(self) -> str:
        return type(self).__name__


class SqlTaskStore(TaskStore):
    ordering = NEWEST_FIRST

    def __init__(self, engine):
        self.engine = engine
        self._session = make_sessionmaker(engine)

    @classmethod
    async def open(cls, url: str, echo: bool = False) -> 'SqlTaskStore':
        try:
            engine = make_engine(url, echo=echo)
        except (SQLAlchemyError, ValueError, ImportError) as e:
            raise StoreUnavailable(f'cannot create engine: {e}') from e
        await init_db(engine)
        return cls(engine)

    async def close(self) -> None:
        await self.engine.dispose()

    def describe(self) -> str:
        return f'sql ({self.engine.url.render_as_string(hide_password=True)})'

    @staticmethod
    def _pk(task_id) -> int:
        """Map a wire id to a primary key; only the canonical form "1", "42" matches."""
        key = str(task_id)
        if not (key.isascii() and key.isdigit()) or key.startswith('0'):
            raise NotFoundError(task_id)
        pk = int(key)
        if pk > MAX_SQL_ID:
            raise NotFoundError(task_id)
        return pk

    async def list(self) -> List[TaskRead]:
        async with self._session() as sess:
            q = select(Task).order_by(Task.created_at.desc(), Task.id.desc())
            res = await sess.exec(q)
            return [TaskRead.from_row(row) for row in res.all()]

    async def get(self, task_id) -> TaskRead:
        pk = self._pk(task_id)
        async with self._session() as sess:
            row = await sess.get(Task, pk)
            if not row:
                raise NotFoundError(task_id)
            return TaskRead.from_row(row)

    async def create(self, text: str) -> TaskRead:
        cleaned = require_text(text)
        async with self._session() as sess:
            row = Task(text=cleaned, completed=False)
            sess.add(row)
            await sess.commit()
            await sess.refresh(row)
            return TaskRead.from_row(row)

    async def update(self, task_id, fields: Dict[str, Any]) -> TaskRead:
        changes = normalize_fields(fields)
        pk = self._pk(task_id)
        async with self._session() as sess:
            row = await sess.get(Task, pk)
            if not row:
                raise NotFoundError(task_id)
            if changes:
                for k, v in changes.items():
                    setattr(row, k, v)
                row.updated_at = now_utc()
                sess.add(row)
                await sess.commit()
                await sess.refresh(row)
            return TaskRead.from_row(row)

    async def delete(self, task_id) -> None:
        pk = self._pk(task_id)
        async with self._session() as sess:
            row = await sess.get(Task, pk)
            if not row:
                raise NotFoundError(task_id)
            await sess.delete(row)
            await sess.commit()


class LocalTaskStore(TaskStore):
    """Whole-list store: one JSON array under one key in a SQLite file.

    File access goes through aiosqlite so a request never blocks the event
    loop. Mutations hold a lock: each one rewrites the full list, and two
    interleaved rewrites would drop one of them.
    """

    ordering = INSERTION

    def __init__(self, db_path: str, storage_key: str = 'tasks'):
        self.db_path = db_path
        self.storage_key = storage_key
        self._tasks: List[TaskRead] = []
        self._lock = asyncio.Lock()

    @classmethod
    async def open(cls, db_path: str, storage_key: str = 'tasks') -> 'LocalTaskStore':
        store = cls(db_path, storage_key)
        await store.load()
        return store

    def describe(self) -> str:
        return f'local ({self.db_path}, key={self.storage_key!r})'

    @asynccontextmanager
    async def _connect(self):
        try:
            conn = await aiosqlite.connect(self.db_path)
        except aiosqlite.Error as e:
            raise StoreUnavailable(f'cannot open {self.db_path}: {e}') from e
        try:
            yield conn
            await conn.commit()
        except aiosqlite.Error as e:
            raise StoreUnavailable(f'local store error: {e}') from e
        finally:
            await conn.close()

    async def load(self) -> None:
        """Read the serialized list once; entries without a unique id get one."""
        async with self._connect() as conn:
            await conn.execute('''
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            ''')
            async with conn.execute('SELECT value FROM kv WHERE key = ?', (self.storage_key,)) as cur:
                row = await cur.fetchone()
        raw: list = []
        if row and row[0]:
            try:
                raw = json.loads(row[0])
            except ValueError:
                logger.warning('local store key %r holds invalid JSON; starting empty', self.storage_key)
                raw = []
            if not isinstance(raw, list):
                logger.warning('local store key %r is not a list; starting empty', self.storage_key)
                raw = []
        tasks: List[TaskRead] = []
        seen: set[str] = set()
        dirty = False
        for item in raw:
            if not isinstance(item, dict) or not isinstance(item.get('text'), str):
                logger.warning('dropping malformed local task entry: %r', item)
                dirty = True
                continue
            tid = str(item['id']) if item.get('id') else ''
            if not tid or tid in seen:
                if tid:
                    logger.warning('local task id %s is duplicated; assigning a new id', tid)
                tid = uuid.uuid4().hex
                dirty = True
            seen.add(tid)
            tasks.append(TaskRead(id=tid, text=item['text'], completed=bool(item.get('completed', False))))
        self._tasks = tasks
        if dirty:
            await self._persist(tasks)
        logger.info('local store loaded %d task(s) from %s', len(tasks), self.db_path)

    async def _persist(self, tasks: List[TaskRead]) -> None:
        payload = json.dumps([t.to_local() for t in tasks])
        async with self._connect() as conn:
            await conn.execute(
                'INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)',
                (self.storage_key, payload),
            )

    def _index(self, task_id) -> int:
        key = str(task_id)
        for i, t in enumerate(self._tasks):
            if t.id == key:
                return i
        raise NotFoundError(task_id)

    async def list(self) -> List[TaskRead]:
        return [t.model_copy() for t in self._tasks]

    async def get(self, task_id) -> TaskRead:
        return self._tasks[self._index(task_id)].model_copy()

    async def create(self, text: str) -> TaskRead:
        cleaned = require_text(text)
        task = TaskRead(id=uuid.uuid4().hex, text=cleaned, completed=False)
        async with self._lock:
            tasks = self._tasks + [task]
            await self._persist(tasks)
            self._tasks = tasks
        return task.model_copy()

    async def update(self, task_id, fields: Dict[str, Any]) -> TaskRead:
        changes = normalize_fields(fields)
        async with self._lock:
            idx = self._index(task_id)
            updated = self._tasks[idx].model_copy(update=changes)
            if changes:
                tasks = list(self._tasks)
                tasks[idx] = updated
                await self._persist(tasks)
                self._tasks = tasks
        return updated.model_copy()

    async def delete(self, task_id) -> None:
        async with self._lock:
            idx = self._index(task_id)
            tasks = self._tasks[:idx] + self._tasks[idx + 1:]
            await self._persist(tasks)
            self._tasks = tasks


async def open_store(kind: str, *, database_url: str | None = None, local_path: str | None = None,
                     local_key: str = 'tasks', echo: bool = False) -> TaskStore:
    """Build a store from explicit settings. Raises StoreUnavailable on failure."""
    if kind == 'sql':
        if not database_url:
            raise StoreUnavailable('sql store requires a database URL')
        return await SqlTaskStore.open(database_url, echo=echo)
    if kind == 'local':
        if not local_path:
            raise StoreUnavailable('local store requires a file path')
        return await LocalTaskStore.open(local_path, local_key)
    raise ValueError(f'unknown task store: {kind!r}')
