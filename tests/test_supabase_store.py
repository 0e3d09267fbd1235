"""Tests for the Supabase-backed row store using a fake PostgREST client."""

from types import SimpleNamespace

import pytest

from revshare.store import DuplicateRowError, StoreError, SupabaseRowStore


class FakeAPIError(Exception):
    def __init__(self, message, code):
        super().__init__(message)
        self.message = message
        self.code = code


class FakeQuery:
    """Records builder calls and returns canned data on execute()."""

    def __init__(self, calls, data=None, error=None):
        self.calls = calls
        self.data = data if data is not None else []
        self.error = error

    def __getattr__(self, name):
        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return method

    def execute(self):
        if self.error:
            raise self.error
        return SimpleNamespace(data=self.data)


class FakeClient:
    def __init__(self, data=None, error=None):
        self.calls = []
        self.data = data
        self.error = error

    def table(self, name):
        self.calls.append(("table", (name,), {}))
        return FakeQuery(self.calls, self.data, self.error)

    def rpc(self, name, params):
        self.calls.append(("rpc", (name, params), {}))
        return FakeQuery(self.calls, self.data, self.error)


class TestSupabaseRowStore:

    def test_select_builds_filters_order_and_limit(self):
        client = FakeClient(data=[{"id": "c1"}])
        store = SupabaseRowStore(client)

        rows = store.select("clients", filters={"email": "a@x.com"}, order_by="created_at", descending=True, limit=1)

        assert rows == [{"id": "c1"}]
        names = [call[0] for call in client.calls]
        assert names == ["table", "select", "eq", "order", "limit"]
        assert client.calls[2][1] == ("email", "a@x.com")
        assert client.calls[3][2] == {"desc": True}

    def test_find_one_returns_none_when_empty(self):
        store = SupabaseRowStore(FakeClient(data=[]))

        assert store.find_one("clients", contact="+1") is None

    def test_insert_returns_created_row(self):
        store = SupabaseRowStore(FakeClient(data=[{"id": "new"}]))

        assert store.insert("requests", {"name": "X"}) == {"id": "new"}

    def test_unique_violation_maps_to_duplicate_error(self):
        store = SupabaseRowStore(FakeClient(error=FakeAPIError("duplicate key", "23505")))

        with pytest.raises(DuplicateRowError):
            store.insert("clients", {"email": "a@x.com"})

    def test_other_errors_map_to_store_error(self):
        store = SupabaseRowStore(FakeClient(error=FakeAPIError("boom", "PGRST204")))

        with pytest.raises(StoreError) as exc_info:
            store.select("clients")

        assert exc_info.value.code == "PGRST204"
        assert not isinstance(exc_info.value, DuplicateRowError)

    def test_delete_filters_by_id(self):
        client = FakeClient(data=[])
        store = SupabaseRowStore(client)

        store.delete("requests", "r1")

        assert [call[0] for call in client.calls] == ["table", "delete", "eq"]
        assert client.calls[2][1] == ("id", "r1")

    def test_call_procedure_uses_rpc(self):
        client = FakeClient(data=None)
        store = SupabaseRowStore(client)

        store.call_procedure("assign_auto_tier", p_client_id="c1")

        assert client.calls[0] == ("rpc", ("assign_auto_tier", {"p_client_id": "c1"}), {})

    def test_missing_credentials(self):
        with pytest.raises(StoreError) as exc_info:
            SupabaseRowStore.from_credentials("", "")

        assert str(exc_info.value) == "Missing Supabase credentials"
