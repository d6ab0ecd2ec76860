"""Functional test bootstrap.

Points the service at a file-backed SQLite database before any application
import, applies the packaged migrations once per session and empties the
tables before each test so every test starts from a known state.
"""

from __future__ import annotations

import os
import pathlib

import pytest

_ROOT = pathlib.Path(__file__).resolve().parents[2]
_DB_FILE = _ROOT / "tmp" / "functional_tests.db"
_DB_FILE.parent.mkdir(parents=True, exist_ok=True)
if _DB_FILE.exists():
    _DB_FILE.unlink()

os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{_DB_FILE}"
# Migrations are applied explicitly below, not by the startup hook
os.environ["AUTO_APPLY_MIGRATIONS"] = "0"


@pytest.fixture(scope="session", autouse=True)
def functional_sqlite_bootstrap() -> None:
    """Session-level bootstrap: apply migrations once for the shared DB."""
    from onboard_admin.db.base import get_engine
    from onboard_admin.db.migrations_runner import apply_migrations

    apply_migrations(get_engine(os.environ["DATABASE_URL"]))
    yield


@pytest.fixture(autouse=True)
def clean_tables(functional_sqlite_bootstrap) -> None:
    from sqlalchemy import text as sql_text

    from onboard_admin.db.base import get_engine

    with get_engine(os.environ["DATABASE_URL"]).begin() as conn:
        conn.execute(sql_text("DELETE FROM questions"))
        conn.execute(sql_text("DELETE FROM responses"))
    yield


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def app():
    from onboard_admin.main import create_app

    return create_app()


@pytest.fixture
def api(app):
    """Synchronous in-process client for route-level assertions."""
    from fastapi.testclient import TestClient

    with TestClient(app) as client:
        yield client


@pytest.fixture
async def asgi_http(app):
    """Async httpx client wired to the app, rooted at the ``/api`` prefix."""
    import httpx

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver/api") as client:
        yield client


class FakeQuestionGateway:
    """In-memory stand-in for ``QuestionGateway`` with scriptable failures.

    ``fail[operation]`` raises the given error for that operation; ``hold``
    makes an operation wait on an event so tests can observe in-flight state.
    """

    def __init__(self, records=()):
        from onboard_admin.logic.canonical import canonicalize_question

        self.records = {q.id: q for q in (canonicalize_question(r) for r in records)}
        self.calls = []
        self.fail = {}
        self.hold = {}

    async def _enter(self, operation, *args):
        self.calls.append((operation, *args))
        if operation in self.hold:
            await self.hold[operation].wait()
        if operation in self.fail:
            raise self.fail[operation]

    async def list(self):
        await self._enter("list")
        return sorted(self.records.values(), key=lambda q: q.order)

    async def get(self, question_id):
        from onboard_admin.client.errors import NotFound

        await self._enter("get", question_id)
        if question_id not in self.records:
            raise NotFound(f"question {question_id} not found", operation="get", status=404)
        return self.records[question_id]

    async def create(self, draft):
        from onboard_admin.logic.canonical import utc_now
        from onboard_admin.models.question import Question

        await self._enter("create", draft)
        now = utc_now()
        created = Question(
            **draft.model_dump(exclude={"id", "order"}),
            id=draft.id,
            order=draft.order or 1,
            created_at=now,
            updated_at=now,
        )
        self.records[created.id] = created
        return created

    async def update(self, question_id, patch):
        from onboard_admin.client.errors import NotFound
        from onboard_admin.logic.canonical import next_timestamp

        await self._enter("update", question_id, patch)
        current = self.records.get(question_id)
        if current is None:
            raise NotFound(f"question {question_id} not found", operation="update", status=404)
        saved = current.model_copy(update={**patch.changes(), "updated_at": next_timestamp(current.updated_at)})
        self.records[question_id] = saved
        return saved

    async def remove(self, question_id):
        from onboard_admin.client.errors import NotFound

        await self._enter("remove", question_id)
        if self.records.pop(question_id, None) is None:
            raise NotFound(f"question {question_id} not found", operation="remove", status=404)

    async def bulk_update(self, ids, patch):
        await self._enter("bulk_update", list(ids), patch)
        matched = 0
        for qid in ids:
            if qid in self.records:
                self.records[qid] = self.records[qid].model_copy(update=patch.changes())
                matched += 1
        return matched

    async def reorder(self, ordered_ids):
        from onboard_admin.logic.order_sequences import renumber

        await self._enter("reorder", list(ordered_ids))
        mapping = renumber(list(ordered_ids), sorted(self.records.values(), key=lambda q: q.order))
        for qid, order in mapping.items():
            self.records[qid] = self.records[qid].model_copy(update={"order": order})


def seed_records():
    return [
        {"id": "A", "text": "Alpha", "order": 1, "status": "active", "createdAt": "2025-01-10T10:00:00Z"},
        {"id": "B", "text": "Beta", "order": 2, "status": "active", "createdAt": "2025-01-10T11:00:00Z"},
        {"id": "C", "text": "Gamma", "order": 3, "status": "draft", "createdAt": "2025-01-10T12:00:00Z"},
    ]


@pytest.fixture
def fake_gateway():
    return FakeQuestionGateway(seed_records())


@pytest.fixture
async def store(fake_gateway):
    from onboard_admin.client.store import QuestionStore

    return await QuestionStore.open(fake_gateway)
