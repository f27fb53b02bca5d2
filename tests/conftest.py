import copy

import pytest
from fastapi.testclient import TestClient

from database import DocumentStore, DocumentStoreError


class InMemoryStore(DocumentStore):
    """Dict-backed store; documents keep insertion order like a natural scan."""

    def __init__(self):
        self.collections = {}
        self.writes = []

    def seed(self, collection, doc_id, **fields):
        self.collections.setdefault(collection, {})[doc_id] = dict(fields)

    def docs(self, collection):
        return self.collections.get(collection, {})

    async def find_one_by_field(self, collection, field, value):
        for doc_id, doc in self.docs(collection).items():
            if doc.get(field) == value:
                out = copy.deepcopy(doc)
                out["id"] = doc_id
                return out
        return None

    async def merge_upsert_by_id(self, collection, doc_id, fields):
        self.collections.setdefault(collection, {}).setdefault(doc_id, {}).update(fields)
        self.writes.append((collection, doc_id, dict(fields)))

    async def list_collections(self):
        return list(self.collections)


class FailingStore(DocumentStore):
    async def find_one_by_field(self, collection, field, value):
        raise DocumentStoreError("connection refused")

    async def merge_upsert_by_id(self, collection, doc_id, fields):
        raise DocumentStoreError("connection refused")

    async def list_collections(self):
        raise DocumentStoreError("connection refused")


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def failing_store():
    return FailingStore()


@pytest.fixture
def make_client():
    from main import app, require_store

    def _make(backing_store):
        app.dependency_overrides[require_store] = lambda: backing_store
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()
