"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from types import SimpleNamespace
from uuid import uuid4

import pytest
from supabase import AuthApiError

from stash_tracker.adapters.supabase_cultivar_repository import (
    SupabaseCultivarRepository,
)
from stash_tracker.adapters.supabase_entry_repository import SupabaseEntryRepository
from stash_tracker.adapters.supabase_identity_provider import (
    SupabaseIdentityProvider,
)
from stash_tracker.adapters.supabase_legacy_row_repository import (
    SupabaseLegacyRowRepository,
)
from stash_tracker.adapters.supabase_purchase_repository import (
    SupabasePurchaseRepository,
)
from stash_tracker.services.auth import InvalidCredentialsError


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "insert": [], "update": [], "delete": []}
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        self.last_filters = []
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        self.last_filters = []
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        self.last_filters = []
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        self.last_filters = []
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def is_(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((f"{column}.is", value))
        return self

    def or_(self, filters: str) -> "FakeTable":
        self.last_filters.append(("or", filters))
        return self

    def gte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((f"{column}.gte", value))
        return self

    def lt(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((f"{column}.lt", value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _purchase_row(**values: object) -> dict[str, object]:
    row: dict[str, object] = {
        "id": str(uuid4()),
        "user_id": str(uuid4()),
        "strain_name": "Runtz",
        "total_grams": 3.5,
        "remaining_grams": 1.25,
        "total_cost_cents": 3000,
        "purchase_date": "2024-05-01",
        "status": "active",
        "updated_at": 100,
    }
    row.update(values)
    return row


def test_cultivar_repository_reads_legacy_name_key() -> None:
    client = FakeSupabaseClient()
    table = client.table("strains")
    user_id = uuid4()
    row = {"id": str(uuid4()), "user_id": str(user_id), "name": "Runtz", "name_lc": "runtz"}
    table.queue("select", [row])

    repository = SupabaseCultivarRepository(client)
    found = repository.find_cultivar(user_id, "name_lc", "runtz")

    assert found is not None
    assert found.name_lower == "runtz"
    assert found.type == "Hybrid"
    assert ("name_lc", "runtz") in table.last_filters
    assert ("user_id", str(user_id)) in table.last_filters


def test_cultivar_repository_create_raises_on_empty_response() -> None:
    repository = SupabaseCultivarRepository(FakeSupabaseClient())

    with pytest.raises(RuntimeError, match="Failed to create cultivar"):
        repository.create_cultivar(uuid4(), {"name": "Runtz"})


def test_entry_repository_roundtrip_with_snapshot() -> None:
    client = FakeSupabaseClient()
    table = client.table("entries")
    user_id = uuid4()
    purchase_id = uuid4()
    row = {
        "id": str(uuid4()),
        "user_id": str(user_id),
        "time": 1000,
        "method": "Purchase",
        "journal_type": "purchase-archive",
        "hidden_from_daily": True,
        "purchase_id": str(purchase_id),
        "purchase_snapshot": {
            "total_grams": 3.5,
            "remaining_grams": 0.5,
            "total_cost_cents": 3000,
            "purchase_date": "2024-05-01",
        },
    }
    table.queue("insert", [row])

    repository = SupabaseEntryRepository(client)
    entry = repository.create_entry(user_id, {"time": 1000, "method": "Purchase"})

    assert table.last_payload["user_id"] == str(user_id)
    assert entry.purchase_id == purchase_id
    assert entry.is_archive
    assert entry.purchase_snapshot.remaining_grams == 0.5


def test_entry_repository_filters() -> None:
    client = FakeSupabaseClient()
    table = client.table("entries")
    user_id = uuid4()
    repository = SupabaseEntryRepository(client)

    repository.list_entries(user_id, 10, 20)
    assert ("time.gte", 10) in table.last_filters
    assert ("time.lt", 20) in table.last_filters

    repository.list_entries_by(user_id, "hidden_from_daily", True)
    assert ("hidden_from_daily", "true") in table.last_filters


def test_entry_repository_update_requires_a_matched_row() -> None:
    repository = SupabaseEntryRepository(FakeSupabaseClient())

    with pytest.raises(RuntimeError, match="Failed to update entry"):
        repository.update_entry(uuid4(), uuid4(), {"notes": "x"})


def test_purchase_repository_compare_and_set() -> None:
    client = FakeSupabaseClient()
    table = client.table("purchases")
    repository = SupabasePurchaseRepository(client)
    user_id = uuid4()
    purchase_id = uuid4()
    table.queue("update", [_purchase_row(id=str(purchase_id))])

    applied = repository.compare_and_set(user_id, purchase_id, 100, {"remaining_grams": 1})
    assert applied is True
    assert ("updated_at", 100) in table.last_filters

    rejected = repository.compare_and_set(user_id, purchase_id, None, {"status": "active"})
    assert rejected is False
    assert ("updated_at.is", "null") in table.last_filters


def test_purchase_repository_parses_rows() -> None:
    client = FakeSupabaseClient()
    client.table("purchases").queue("select", [_purchase_row(status=None)])

    (purchase,) = SupabasePurchaseRepository(client).list_purchases(uuid4())

    assert purchase.strain_name_lower == "runtz"
    assert purchase.effective_status == "active"
    assert purchase.remaining_grams == 1.25


def test_legacy_row_repository_queries() -> None:
    client = FakeSupabaseClient()
    repository = SupabaseLegacyRowRepository(client)
    user_id = uuid4()

    repository.list_cultivars_missing_name_key(user_id)
    assert ("name_lower.is", "null") in client.table("strains").last_filters

    repository.list_untyped_archives(user_id)
    entries_filters = client.table("entries").last_filters
    assert ("journal_type.is", "null") in entries_filters
    assert ("hidden_from_daily", "true") in entries_filters

    repository.list_entries_missing_lower_keys(user_id)
    assert client.table("entries").last_filters[-1][0] == "or"


@dataclass
class FakeAuth:
    user_id: str
    signed_out: list[str] = field(default_factory=list)
    reject: bool = False

    def __post_init__(self) -> None:
        self.admin = SimpleNamespace(sign_out=self.signed_out.append)

    def _response(self) -> SimpleNamespace:
        if self.reject:
            raise AuthApiError("Invalid login credentials", 400, None)
        return SimpleNamespace(
            user=SimpleNamespace(id=self.user_id),
            session=SimpleNamespace(access_token="access", refresh_token="refresh"),
        )

    def sign_in_with_password(self, _credentials: dict[str, str]) -> SimpleNamespace:
        return self._response()

    def sign_up(self, _credentials: dict[str, str]) -> SimpleNamespace:
        return self._response()

    def get_user(self, _token: str) -> SimpleNamespace:
        return self._response()


def test_identity_provider_sign_in_and_resolve() -> None:
    user_id = uuid4()
    auth = FakeAuth(user_id=str(user_id))
    provider = SupabaseIdentityProvider(SimpleNamespace(auth=auth))

    session = provider.sign_in("me@example.com", "hunter22")
    provider.sign_out("access")

    assert session.user_id == user_id
    assert session.access_token == "access"
    assert provider.resolve_user("access") == user_id
    assert auth.signed_out == ["access"]


def test_identity_provider_maps_auth_errors() -> None:
    auth = FakeAuth(user_id=str(uuid4()), reject=True)
    provider = SupabaseIdentityProvider(SimpleNamespace(auth=auth))

    with pytest.raises(InvalidCredentialsError):
        provider.sign_in("me@example.com", "wrong")
    assert provider.resolve_user("expired") is None
