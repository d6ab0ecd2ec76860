"""Bulk actions: sequential deletes, status changes and drag-and-drop moves."""

from __future__ import annotations

import pytest

from onboard_admin.client.bulk import activate, deactivate, delete_many, move, set_status
from onboard_admin.client.errors import NotFound, ServerError
from onboard_admin.client.notifications import Notifier

pytestmark = pytest.mark.anyio


class FlakyRemove:
    """Fails remote deletes for the given ids, delegating the rest."""

    def __init__(self, gateway, failing):
        self._failing = set(failing)
        self._remove = gateway.remove

    async def __call__(self, question_id):
        if question_id in self._failing:
            raise ServerError("boom", operation="remove", status=500)
        await self._remove(question_id)


async def test_delete_many_runs_in_request_order(store, fake_gateway):
    notifier = Notifier()
    outcome = await delete_many(store, ["C", "A"], notifier=notifier)
    assert outcome.ok and outcome.all_succeeded
    assert [c for c in fake_gateway.calls if c[0] == "remove"] == [("remove", "C"), ("remove", "A")]
    assert store.ids() == ["B"]
    [note] = notifier.drain()
    assert note.title == "Deleted"
    assert note.variant == "default"


async def test_delete_many_continues_past_failures(store, fake_gateway):
    fake_gateway.remove = FlakyRemove(fake_gateway, {"A"})
    notifier = Notifier()
    outcome = await delete_many(store, ["A", "B", "C"], notifier=notifier)
    assert outcome.completed
    assert outcome.succeeded == ["B", "C"]
    assert list(outcome.failed) == ["A"]
    assert not outcome.all_succeeded
    # Failed deletes are not rolled back either
    assert store.ids() == []
    [note] = notifier.drain()
    assert note.variant == "destructive"
    assert "1 of 3" in note.description


async def test_delete_many_with_pool_reports_unknown_ids(store):
    outcome = await delete_many(store, ["A", "ghost", "A"], concurrency=2)
    assert outcome.requested == ["A", "ghost"]
    assert outcome.succeeded == ["A"]
    assert isinstance(outcome.failed["ghost"], NotFound)


async def test_delete_many_rejects_bad_concurrency(store):
    with pytest.raises(ValueError):
        await delete_many(store, ["A"], concurrency=0)


async def test_status_actions_notify(store):
    notifier = Notifier()
    assert await activate(store, ["C"], notifier=notifier) is True
    assert store.get_by_id("C").status == "active"
    assert await deactivate(store, ["A", "B"], notifier=notifier) is True
    assert await set_status(store, ["A"], "draft", notifier=notifier) is True
    assert [n.title for n in notifier.drain()] == ["Activated", "Deactivated", "Moved to draft"]


async def test_status_action_failure_returns_false(store, fake_gateway):
    fake_gateway.fail["bulk_update"] = ServerError("boom", operation="bulk_update", status=500)
    notifier = Notifier()
    assert await activate(store, ["C"], notifier=notifier) is False
    assert notifier.drain()[0].variant == "destructive"


async def test_status_action_edge_cases(store, fake_gateway):
    with pytest.raises(ValueError):
        await set_status(store, ["A"], "archived")
    assert await activate(store, []) is False
    assert [c[0] for c in fake_gateway.calls] == ["list"]


async def test_move_drops_item_onto_target_slot(store, fake_gateway):
    notifier = Notifier()
    assert await move(store, "C", "A", notifier=notifier) is True
    assert [n.title for n in notifier.drain()] == ["Reordered"]
    assert store.ids() == ["C", "A", "B"]
    assert {q.id: q.order for q in store.items} == {"C": 1, "A": 2, "B": 3}
    assert fake_gateway.calls[-1] == ("reorder", ["C", "A", "B"])


async def test_move_downwards(store):
    assert await move(store, "A", "C") is True
    assert store.ids() == ["B", "C", "A"]


async def test_move_noop_sends_nothing(store, fake_gateway):
    assert await move(store, "A", "A") is False
    assert await move(store, "A", "ghost") is False
    assert [c[0] for c in fake_gateway.calls] == ["list"]


async def test_move_failure_notifies(store, fake_gateway):
    fake_gateway.fail["reorder"] = ServerError("boom", operation="reorder", status=500)
    notifier = Notifier()
    assert await move(store, "B", "A", notifier=notifier) is False
    assert store.ids() == ["B", "A", "C"]
    assert notifier.drain()[0].title == "Error"
