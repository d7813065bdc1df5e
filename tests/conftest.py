"""In-memory stand-ins for the Supabase service client.

Helper unit tests run without a Supabase stack: queries are recorded and
answered from a `(table, operation)` -> data map.
"""
from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List, Tuple

import pytest


class FakeQuery:
    def __init__(self, client: "FakeSupabase", table: str) -> None:
        self.client = client
        self.table = table
        self.operation = "select"
        self.payload: Any = None
        self.filters: List[Tuple[str, str, Any]] = []

    def select(self, *columns: str) -> "FakeQuery":
        self.operation = "select"
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self.operation = "insert"
        self.payload = payload
        return self

    def update(self, payload: Any) -> "FakeQuery":
        self.operation = "update"
        self.payload = payload
        return self

    def delete(self) -> "FakeQuery":
        self.operation = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(("eq", column, value))
        return self

    def neq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(("neq", column, value))
        return self

    def in_(self, column: str, values: List[Any]) -> "FakeQuery":
        self.filters.append(("in", column, values))
        return self

    def single(self) -> "FakeQuery":
        return self

    def execute(self) -> SimpleNamespace:
        self.client.queries.append(self)
        return SimpleNamespace(data=self.client.answer((self.table, self.operation)))


class FakeRpc:
    def __init__(self, client: "FakeSupabase", name: str, params: Dict[str, Any]) -> None:
        self.client = client
        self.name = name
        self.params = params

    def execute(self) -> SimpleNamespace:
        self.client.rpc_calls.append((self.name, self.params))
        return SimpleNamespace(data=self.client.answer(("rpc", self.name)))


class FakeAuthAdmin:
    def __init__(self) -> None:
        self.created: List[Dict[str, Any]] = []
        self.deleted: List[str] = []
        self.pages: List[List[Any]] = []

    def create_user(self, attributes: Dict[str, Any]) -> SimpleNamespace:
        self.created.append(attributes)
        return SimpleNamespace(user=SimpleNamespace(id=f"user-{len(self.created)}"))

    def delete_user(self, user_id: str) -> None:
        self.deleted.append(user_id)

    def list_users(self, page: int = 1, per_page: int = 50) -> List[Any]:
        return self.pages.pop(0) if self.pages else []


class FakeSupabase:
    def __init__(self) -> None:
        self.results: Dict[Tuple[str, str], Any] = {}
        self.queries: List[FakeQuery] = []
        self.rpc_calls: List[Tuple[str, Dict[str, Any]]] = []
        self.auth = SimpleNamespace(admin=FakeAuthAdmin())

    def answer(self, key: Tuple[str, str]) -> Any:
        result = self.results.get(key, [])
        return result() if callable(result) else result

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: Dict[str, Any]) -> FakeRpc:
        return FakeRpc(self, name, params)

    def find(self, table: str, operation: str) -> List[FakeQuery]:
        return [query for query in self.queries if query.table == table and query.operation == operation]


@pytest.fixture
def supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def supabase_target():
    """Point settings at a local stack without touching the real environment."""
    from membership_e2e.config import settings

    with settings.use_target(
        supabase_url="http://127.0.0.1:54321",
        service_role_key="service-key",
        stripe_secret_key="sk_test_123",
    ) as target:
        yield target
