"""Optimistic question cache: local-first mutation, reconciliation, no rollback."""

from __future__ import annotations

import asyncio

import pytest

from onboard_admin.client.errors import NetworkError, ServerError, ValidationError
from onboard_admin.client.store import QuestionStore

from conftest import FakeQuestionGateway, seed_records

pytestmark = pytest.mark.anyio


def _orders(store: QuestionStore):
    return {q.id: q.order for q in store.items}


async def test_open_loads_server_list(store, fake_gateway):
    assert store.ids() == ["A", "B", "C"]
    assert store.loading is False
    assert store.last_error is None
    assert fake_gateway.calls == [("list",)]


async def test_load_failure_keeps_cache_and_records_error(store, fake_gateway):
    fake_gateway.fail["list"] = NetworkError("down", operation="list")
    with pytest.raises(NetworkError):
        await store.refresh()
    assert store.ids() == ["A", "B", "C"]
    assert store.loading is False
    assert store.last_error.kind == "NetworkError"


async def test_add_blank_prepends_draft_with_increasing_orders(store):
    first = await store.add_blank()
    second = await store.add_blank()
    assert first.order == 4
    assert second.order == 5
    assert store.items[0].id == second.id
    assert first.status == "draft"
    assert first.paths == ["New Business"]
    assert first.text == ""


async def test_created_entry_is_visible_before_server_reply(store, fake_gateway):
    fake_gateway.hold["create"] = asyncio.Event()
    task = asyncio.create_task(store.add_blank())
    await asyncio.sleep(0)
    provisional = store.items[0]
    assert provisional.id not in fake_gateway.records
    assert provisional.order == 4
    fake_gateway.hold["create"].set()
    created = await task
    assert created.id == provisional.id
    assert store.items[0] == created


async def test_create_does_not_resurrect_entry_removed_while_in_flight(store, fake_gateway):
    fake_gateway.hold["create"] = asyncio.Event()
    task = asyncio.create_task(store.add_blank())
    await asyncio.sleep(0)
    provisional_id = store.items[0].id
    store._replace(q for q in store.items if q.id != provisional_id)
    fake_gateway.hold["create"].set()
    await task
    assert provisional_id not in store.ids()


async def test_failed_create_leaves_provisional_entry(store, fake_gateway):
    fake_gateway.fail["create"] = ServerError("boom", operation="create", status=500)
    with pytest.raises(ServerError):
        await store.add_blank()
    assert len(store.items) == 4
    assert store.last_error.kind == "ServerError"


async def test_duplicate_copies_fields_as_new_draft(store):
    copy = await store.duplicate("A")
    assert copy.text == "Alpha (Copy)"
    assert copy.id != "A"
    assert copy.status == "draft"
    assert copy.order == 4
    assert await store.duplicate("missing") is None


async def test_duplicate_of_blank_text(fake_gateway):
    fake_gateway.records["A"] = fake_gateway.records["A"].model_copy(update={"text": ""})
    store = await QuestionStore.open(fake_gateway)
    assert (await store.duplicate("A")).text == "(Copy)"


async def test_update_applies_locally_then_reconciles(store, fake_gateway):
    before = store.get_by_id("A").updated_at
    saved = await store.update("A", {"text": "X"})
    assert store.get_by_id("A").text == "X"
    assert store.get_by_id("A").updated_at > before
    assert saved == fake_gateway.records["A"]


async def test_update_failure_is_not_rolled_back(store, fake_gateway):
    fake_gateway.fail["update"] = NetworkError("down", operation="update")
    with pytest.raises(NetworkError):
        await store.update("B", {"helpText": "kept"})
    assert store.get_by_id("B").help_text == "kept"
    assert store.last_error.operation == "update"


async def test_invalid_patch_raises_validation_error_without_request(store, fake_gateway):
    with pytest.raises(ValidationError):
        await store.update("A", {"status": "archived"})
    assert [c[0] for c in fake_gateway.calls] == ["list"]


async def test_remove_failure_keeps_item_absent(store, fake_gateway):
    fake_gateway.fail["remove"] = ServerError("boom", operation="remove", status=500)
    with pytest.raises(ServerError):
        await store.remove("A")
    assert store.get_by_id("A") is None
    assert store.last_error.kind == "ServerError"


async def test_bulk_update_ignores_unknown_ids(store, fake_gateway):
    matched = await store.bulk_update(["A", "X"], {"status": "inactive"})
    assert matched == 1
    assert store.get_by_id("A").status == "inactive"
    assert store.get_by_id("B").status == "active"
    assert fake_gateway.calls[-1][1] == ["A", "X"]


async def test_reorder_moves_last_to_first(store, fake_gateway):
    mapping = await store.reorder_questions(["C", "A", "B"])
    assert mapping == {"C": 1, "A": 2, "B": 3}
    assert _orders(store) == {"A": 2, "B": 3, "C": 1}
    assert store.ids() == ["C", "A", "B"]
    assert fake_gateway.calls[-1] == ("reorder", ["C", "A", "B"])


async def test_reorder_with_current_order_touches_nothing(store):
    before = {q.id: q.updated_at for q in store.items}
    await store.reorder_questions(store.ids())
    assert _orders(store) == {"A": 1, "B": 2, "C": 3}
    assert {q.id: q.updated_at for q in store.items} == before


async def test_reorder_partial_list_stays_dense(store, fake_gateway):
    await store.reorder_questions(["B", "nope"])
    assert sorted(_orders(store).values()) == [1, 2, 3]
    assert store.ids() == ["B", "A", "C"]
    assert fake_gateway.calls[-1] == ("reorder", ["B", "A", "C"])


async def test_observers_are_notified_and_isolated(store):
    seen = []

    def broken(_store):
        raise RuntimeError("observer bug")

    store.subscribe(broken)
    unsubscribe = store.subscribe(lambda s: seen.append(s.ids()))
    await store.update("A", {"text": "Y"})
    assert seen
    count = len(seen)
    unsubscribe()
    await store.update("A", {"text": "Z"})
    assert len(seen) == count


async def test_fresh_gateway_helper_matches_seed():
    gateway = FakeQuestionGateway(seed_records())
    store = QuestionStore(gateway)
    assert store.items == ()
    await store.load()
    assert [q.text for q in store.items] == ["Alpha", "Beta", "Gamma"]
