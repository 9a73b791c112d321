# tests/unit/datastore/test_client_factory.py - v1
"""Tests for datastore/client_factory.py and the unconfigured stand-in."""

from __future__ import annotations

import pytest

from silvererp.config.settings import Settings
from silvererp.datastore.base_client import BaseDataClient
from silvererp.datastore.client_factory import create_data_client
from silvererp.datastore.errors import DataClientError
from silvererp.datastore.models import Filter, eq, in_
from silvererp.datastore.unconfigured_client import UnconfiguredDataClient


class TestBaseDataClient:
    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            BaseDataClient()  # type: ignore[abstract]


class TestFilters:
    def test_eq(self):
        assert eq("id", 1) == Filter("id", "eq", 1)

    def test_in_copies_to_list(self):
        assert in_("id", ("a", "b")).value == ["a", "b"]


class TestDataClientError:
    def test_str_with_code(self):
        assert str(DataClientError("boom", code="42P01")) == "[42P01] boom"

    def test_str_without_code(self):
        assert str(DataClientError("boom")) == "boom"


class TestCreateDataClient:
    def test_unconfigured(self, caplog, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
        with caplog.at_level("WARNING"):
            client = create_data_client(Settings(_env_file=None))
        assert isinstance(client, UnconfiguredDataClient)
        assert "Missing Supabase environment variables" in caplog.text

    def test_configured(self):
        pytest.importorskip("supabase")
        from silvererp.datastore.supabase_client import SupabaseDataClient

        settings = Settings(
            _env_file=None, supabase_url="https://x.supabase.co", supabase_anon_key="anon"
        )
        assert isinstance(create_data_client(settings), SupabaseDataClient)


class TestUnconfiguredClient:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("call", [
        lambda c: c.select("orders"),
        lambda c: c.select_one("orders"),
        lambda c: c.count("orders"),
        lambda c: c.insert("orders", {}),
        lambda c: c.update("orders", {}, filters=[eq("id", 1)]),
        lambda c: c.delete("orders", filters=[eq("id", 1)]),
        lambda c: c.upsert("orders", {}, on_conflict="id"),
        lambda c: c.rpc("f", {}),
    ])
    async def test_every_call_fails(self, call):
        with pytest.raises(DataClientError) as exc_info:
            await call(UnconfiguredDataClient())
        assert exc_info.value.code == "unconfigured"

    @pytest.mark.asyncio
    async def test_close_is_noop(self):
        await UnconfiguredDataClient().close()
