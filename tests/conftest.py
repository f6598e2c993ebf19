import sys
import pathlib
import logging as _logging

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# ensure project root is on PYTHONPATH for test runs
ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from todolist.main import create_app
from todolist.service import TaskService
from todolist.errors import NotFoundError
from todolist.models import TaskRead
from todolist.store import INSERTION, LocalTaskStore, SqlTaskStore

# Reduce SQLAlchemy logger verbosity during tests
for _name in ('sqlalchemy', 'sqlalchemy.engine', 'sqlalchemy.pool', 'sqlmodel', 'aiosqlite'):
    _logging.getLogger(_name).setLevel(_logging.ERROR)


def sqlite_url(path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest_asyncio.fixture
async def sql_store(tmp_path):
    store = await SqlTaskStore.open(sqlite_url(tmp_path / 'tasks.db'))
    yield store
    await store.close()


@pytest_asyncio.fixture
async def local_store(tmp_path):
    store = await LocalTaskStore.open(str(tmp_path / 'local.db'), 'tasks')
    yield store
    await store.close()


@pytest_asyncio.fixture(params=['sql', 'local'])
async def store(request, tmp_path):
    """Run a test once against each store implementation."""
    if request.param == 'sql':
        s = await SqlTaskStore.open(sqlite_url(tmp_path / 'tasks.db'))
    else:
        s = await LocalTaskStore.open(str(tmp_path / 'local.db'), 'tasks')
    yield s
    await s.close()


@pytest.fixture
def service(store):
    return TaskService(store)


@pytest_asyncio.fixture
async def client(sql_store):
    app = create_app(sql_store)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def local_client(local_store):
    app = create_app(local_store)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class RecordingBackend:
    """In-memory list/create/update/delete backend that records calls.

    Set `fail_with` to an exception to make the next mutating call raise it.
    """

    ordering = INSERTION

    def __init__(self, tasks=None):
        self.tasks = list(tasks or [])
        self.calls = []
        self.fail_with = None
        self._next = 1

    def _maybe_fail(self):
        if self.fail_with is not None:
            exc, self.fail_with = self.fail_with, None
            raise exc

    def _find(self, task_id):
        for i, t in enumerate(self.tasks):
            if t.id == str(task_id):
                return i
        raise NotFoundError(task_id)

    async def list(self):
        self.calls.append(('list',))
        return list(self.tasks)

    async def create(self, text):
        self.calls.append(('create', text))
        self._maybe_fail()
        task = TaskRead(id=str(self._next), text=text.strip(), completed=False)
        self._next += 1
        self.tasks.append(task)
        return task

    async def update(self, task_id, fields):
        self.calls.append(('update', task_id, dict(fields)))
        self._maybe_fail()
        i = self._find(task_id)
        self.tasks[i] = self.tasks[i].model_copy(update=fields)
        return self.tasks[i]

    async def delete(self, task_id):
        self.calls.append(('delete', task_id))
        self._maybe_fail()
        i = self._find(task_id)
        del self.tasks[i]


@pytest.fixture
def backend():
    return RecordingBackend()
