# backend/tests/conftest.py

import uuid
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.database import get_db
from app.main import app
from app.vector.manager import reset_collection_cache

LANGCHAIN_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
DOCS_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")


class FakeScalars:
    def __init__(self, values: List[Any]):
        self._values = values

    def all(self) -> List[Any]:
        return list(self._values)

    def first(self) -> Optional[Any]:
        return self._values[0] if self._values else None


class FakeResult:
    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None, scalars: Optional[List[Any]] = None):
        self._rows = rows or []
        self._scalars = scalars or []

    def scalars(self) -> FakeScalars:
        return FakeScalars(self._scalars)

    def mappings(self) -> FakeScalars:
        return FakeScalars(self._rows)


class FakeSession:
    """
    Stands in for a SQLAlchemy Session.

    Answers the three statements the service issues: the collection name
    list, the uuid lookup by name and the similarity search.
    """

    def __init__(self, collections: Dict[str, uuid.UUID], rows: List[Dict[str, Any]]):
        self.collections = dict(collections)
        self.rows = rows
        self.missing_ids: set = set()
        self.search_error: Optional[Exception] = None
        self.executed: List[tuple] = []

    def execute(self, statement, params=None):
        sql = str(statement)
        self.executed.append((sql, params))

        if '"_distance"' in sql:
            if self.search_error is not None:
                raise self.search_error
            return FakeResult(rows=self.rows)

        if ".uuid" in sql:
            wanted = list(statement.compile().params.values())[0]
            ids = [
                cid
                for name, cid in self.collections.items()
                if name == wanted and name not in self.missing_ids
            ]
            return FakeResult(scalars=ids)

        return FakeResult(scalars=list(self.collections))

    def statements_matching(self, fragment: str) -> List[tuple]:
        return [(sql, params) for sql, params in self.executed if fragment in sql]

    def close(self) -> None:
        pass


def make_row(row_id: str, document: Optional[str], distance: Optional[float], **metadata) -> Dict[str, Any]:
    return {
        "id": row_id,
        "collection_id": DOCS_ID,
        "embedding": "[0.1,0.2,0.3]",
        "document": document,
        "cmetadata": metadata or None,
        "_distance": distance,
    }


@pytest.fixture(autouse=True)
def clear_collection_cache():
    reset_collection_cache()
    yield
    reset_collection_cache()


@pytest.fixture
def fake_db() -> FakeSession:
    return FakeSession(
        collections={"langchain": LANGCHAIN_ID, "docs": DOCS_ID},
        rows=[
            make_row("a", "closest chunk", 0.05, lang="en"),
            make_row("b", "middle chunk", 0.2, lang="de"),
            make_row("c", None, 0.3),
            make_row("d", "far chunk", 0.7, lang="en"),
        ],
    )


@pytest.fixture
def client(fake_db):
    app.dependency_overrides[get_db] = lambda: fake_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
