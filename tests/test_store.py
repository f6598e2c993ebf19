import pytest

from todolist.errors import NotFoundError, ValidationError
from todolist.store import NEWEST_FIRST, INSERTION

pytestmark = pytest.mark.asyncio


async def test_create_defaults_to_not_completed(store):
    task = await store.create("Buy milk")
    assert task.text == "Buy milk"
    assert task.completed is False
    assert task.id

    tasks = await store.list()
    assert [(t.text, t.completed) for t in tasks] == [("Buy milk", False)]


async def test_create_trims_surrounding_whitespace(store):
    task = await store.create("  walk dog \n")
    assert task.text == "walk dog"


@pytest.mark.parametrize("text", ["", "   ", "\t\n"])
async def test_create_blank_text_rejected_without_mutation(store, text):
    with pytest.raises(ValidationError):
        await store.create(text)
    assert await store.list() == []


async def test_ids_are_unique(store):
    ids = {(await store.create(f"task {i}")).id for i in range(5)}
    assert len(ids) == 5


async def test_ids_not_reused_after_delete(store):
    a = await store.create("a")
    b = await store.create("b")
    await store.delete(b.id)
    c = await store.create("c")
    assert c.id not in (a.id, b.id)


async def test_update_completed_leaves_other_fields(store):
    task = await store.create("read book")
    await store.update(task.id, {"completed": True})

    got = {t.id: t for t in await store.list()}[task.id]
    assert got.completed is True
    assert got.text == "read book"
    assert got.created_at == task.created_at


async def test_update_text_leaves_completed(store):
    task = await store.create("draft")
    await store.update(task.id, {"completed": True})
    updated = await store.update(task.id, {"text": "final"})
    assert updated.text == "final"
    assert updated.completed is True


async def test_update_ignores_unknown_fields(store):
    task = await store.create("x")
    updated = await store.update(task.id, {"colour": "red"})
    assert updated.text == "x"
    assert updated.completed is False


async def test_update_blank_text_rejected(store):
    task = await store.create("keep me")
    with pytest.raises(ValidationError):
        await store.update(task.id, {"text": "   "})
    assert (await store.get(task.id)).text == "keep me"


async def test_update_unknown_id(store):
    await store.create("only one")
    with pytest.raises(NotFoundError):
        await store.update("999999", {"completed": True})


async def test_delete_then_list_and_second_delete(store):
    keep = await store.create("keep")
    gone = await store.create("gone")
    await store.delete(gone.id)

    ids = [t.id for t in await store.list()]
    assert gone.id not in ids
    assert keep.id in ids

    with pytest.raises(NotFoundError):
        await store.delete(gone.id)


async def test_get(store):
    task = await store.create("fetch me")
    assert (await store.get(task.id)).text == "fetch me"
    await store.delete(task.id)
    with pytest.raises(NotFoundError):
        await store.get(task.id)


async def test_list_order_follows_store_convention(store):
    for text in ("first", "second", "third"):
        await store.create(text)
    texts = [t.text for t in await store.list()]
    if store.ordering == NEWEST_FIRST:
        assert texts == ["third", "second", "first"]
    else:
        assert store.ordering == INSERTION
        assert texts == ["first", "second", "third"]
