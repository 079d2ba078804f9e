import uuid

import pytest
import pytest_asyncio

from socialgraph.clients.memory_store import MemoryDocumentStore
from socialgraph.clients.sql_store import SqlDocumentStore
from socialgraph.engine import SocialGraph


@pytest.fixture
def store():
    """Fresh in-process document store."""
    return MemoryDocumentStore()


@pytest.fixture
def graph(store):
    return SocialGraph(store)


@pytest_asyncio.fixture
async def sql_store(tmp_path):
    """SQL adapter on a throwaway SQLite file."""
    store = SqlDocumentStore.from_url(f"sqlite+aiosqlite:///{tmp_path / 'graph.db'}")
    await store.init()
    yield store
    await store.close()


@pytest.fixture
def account_payload():
    """Build valid Account fields; keyword overrides replace or add fields."""

    def _payload(name: str = "alice", **overrides):
        data = {
            "external_id": f"ext_{name}",
            "email": f"{name}@example.com",
            "first_name": name.title(),
            "last_name": "Tester",
            "username": name,
        }
        data.update(overrides)
        return data

    return _payload


@pytest.fixture
def make_account(graph, account_payload):
    async def _make(name: str = "alice", **overrides):
        return await graph.register_account(account_payload(name, **overrides))

    return _make


@pytest.fixture
def make_post(graph):
    async def _make(user_id: str, content: str = "Hello graph"):
        return await graph.publish_post({"user": user_id, "content": content})

    return _make


@pytest.fixture
def new_id():
    return lambda: str(uuid.uuid4())
