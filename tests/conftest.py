import copy
import uuid
from collections import defaultdict
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from homebase.core.dependencies import get_auth_service, get_store
from homebase.core.exceptions import Unauthorized, UniqueViolation
from homebase.database.store import Store
from homebase.main import app
from homebase.modules.auth.schemas import Identity
from homebase.modules.auth.service import clear_identity_cache


# (columns, partial-index condition)
UNIQUE_CONSTRAINTS = {
    "profiles": [(("user_id",), None)],
    "family_members": [
        (("family_id", "profile_id"), None),
        (("profile_id",), ("is_default", True)),
    ],
    "family_invites": [(("token",), None)],
}

# parent table -> (child table, foreign key column)
CASCADES = {
    "families": [
        ("family_members", "family_id"),
        ("family_invites", "family_id"),
        ("calendars", "family_id"),
        ("todo_lists", "family_id"),
    ],
    "todo_lists": [("todo_items", "list_id")],
}

EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _matches(row, filters):
    for column, value in filters.items():
        if value is None:
            if row.get(column) is not None:
                return False
        elif isinstance(value, (list, tuple)):
            if row.get(column) not in value:
                return False
        elif row.get(column) != value:
            return False
    return True


class InMemoryStore(Store):
    """
    Dict-backed Store with the same unique indexes and cascades as the database.

    `failures[(table, op)]` makes the next matching raw call raise; `hooks[(table, op)]`
    runs a callable once just before the matching raw call, which is how tests
    interleave a competing writer.
    """

    def __init__(self):
        self.tables = defaultdict(dict)
        self.failures = {}
        self.hooks = {}
        self._clock = 0

    def _before(self, table, op):
        hook = self.hooks.pop((table, op), None)
        if hook is not None:
            hook()
        error = self.failures.pop((table, op), None)
        if error is not None:
            raise error

    def _next_timestamp(self):
        self._clock += 1
        return (EPOCH + timedelta(seconds=self._clock)).isoformat()

    def _check_unique(self, table, candidate):
        for columns, condition in UNIQUE_CONSTRAINTS.get(table, []):
            if condition and candidate.get(condition[0]) != condition[1]:
                continue
            for other in self.tables[table].values():
                if other["id"] == candidate["id"]:
                    continue
                if condition and other.get(condition[0]) != condition[1]:
                    continue
                if all(other.get(c) == candidate.get(c) for c in columns):
                    raise UniqueViolation(f"{table}: duplicate key on {', '.join(columns)}")

    def rows(self, table):
        return [copy.deepcopy(r) for r in self.tables[table].values()]

    def _select(self, table, filters, order_by):
        self._before(table, "select")
        rows = [copy.deepcopy(r) for r in self.tables[table].values() if _matches(r, filters)]
        for column, desc in reversed(list(order_by)):
            present = [r for r in rows if r.get(column) is not None]
            missing = [r for r in rows if r.get(column) is None]
            present.sort(key=lambda r: r[column], reverse=desc)
            # Postgres: nulls last ascending, first descending
            rows = missing + present if desc else present + missing
        return rows

    def _insert(self, table, row):
        self._before(table, "insert")
        created = dict(row)
        created.setdefault("id", str(uuid.uuid4()))
        created.setdefault("created_at", self._next_timestamp())
        self._check_unique(table, created)
        self.tables[table][created["id"]] = created
        return copy.deepcopy(created)

    def _update(self, table, filters, patch):
        self._before(table, "update")
        updated = []
        for row in list(self.tables[table].values()):
            if not _matches(row, filters):
                continue
            candidate = {**row, **patch}
            self._check_unique(table, candidate)
            self.tables[table][row["id"]] = candidate
            updated.append(copy.deepcopy(candidate))
        return updated

    def _delete(self, table, filters):
        self._before(table, "delete")
        removed = [r for r in self.tables[table].values() if _matches(r, filters)]
        for row in removed:
            del self.tables[table][row["id"]]
            for child, column in CASCADES.get(table, []):
                self._delete(child, {column: row["id"]})
        return removed


class FakeAuthService:
    def __init__(self):
        self.identities = {}

    def add(self, token, user_id, email=None):
        identity = Identity(id=user_id, email=email, access_token=token)
        self.identities[token] = identity
        return identity

    def get_identity(self, token):
        identity = self.identities.get(token)
        if identity is None:
            raise Unauthorized("Invalid or expired token")
        return identity


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def auth():
    service = FakeAuthService()
    service.add("token-alice", "user-alice", "alice@example.com")
    service.add("token-bob", "user-bob", "bob@example.com")
    service.add("token-carol", "user-carol", "carol@example.com")
    return service


@pytest.fixture
def alice(auth):
    return auth.identities["token-alice"]


@pytest.fixture
def bob(auth):
    return auth.identities["token-bob"]


@pytest.fixture
def client(store, auth):
    clear_identity_cache()
    app.state.limiter.reset()
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_auth_service] = lambda: auth
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def alice_headers():
    return {"Authorization": "Bearer token-alice"}


@pytest.fixture
def bob_headers():
    return {"Authorization": "Bearer token-bob"}


@pytest.fixture
def carol_headers():
    return {"Authorization": "Bearer token-carol"}
