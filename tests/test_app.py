import pytest
from httpx import AsyncClient, ASGITransport

from todolist import config
from todolist.errors import StoreUnavailable
from todolist.main import create_app
from todolist.store import LocalTaskStore, SqlTaskStore

pytestmark = pytest.mark.asyncio


async def test_lifespan_opens_configured_local_store(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "TASK_STORE", "local")
    monkeypatch.setattr(config, "LOCAL_STORE_PATH", str(tmp_path / "local.db"))
    monkeypatch.setattr(config, "LOCAL_STORE_KEY", "my-tasks")

    app = create_app()
    assert app.state.task_service is None
    async with app.router.lifespan_context(app):
        store = app.state.task_service.store
        assert isinstance(store, LocalTaskStore)
        assert store.storage_key == "my-tasks"
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            r = await ac.post("/tasks", json={"text": "via lifespan"})
            assert r.status_code == 200
    assert app.state.task_service is None


async def test_lifespan_opens_configured_sql_store(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "TASK_STORE", "sql")
    monkeypatch.setattr(config, "DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'app.db'}")

    app = create_app()
    async with app.router.lifespan_context(app):
        assert isinstance(app.state.task_service.store, SqlTaskStore)


async def test_unreachable_store_aborts_startup(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "TASK_STORE", "sql")
    monkeypatch.setattr(config, "DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'nope' / 'app.db'}")

    app = create_app()
    with pytest.raises(StoreUnavailable):
        async with app.router.lifespan_context(app):
            pass


async def test_injected_store_is_not_closed_by_lifespan(local_store):
    app = create_app(local_store)
    async with app.router.lifespan_context(app):
        pass
    assert app.state.task_service.store is local_store


async def test_service_missing_returns_503():
    app = create_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/tasks")
    assert r.status_code == 503


async def test_trueish():
    assert config._trueish("1")
    assert config._trueish("Yes")
    assert not config._trueish("0")
    assert not config._trueish(None)
