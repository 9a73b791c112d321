# tests/unit/services/test_settings_service.py - v1
"""Tests for services/settings_service.py."""

from __future__ import annotations

import json

import pytest

from silvererp.cache import keys as K
from silvererp.datastore.errors import DataClientError
from silvererp.datastore.models import eq
from silvererp.services.errors import ServiceError
from silvererp.services.settings_service import (
    DEFAULT_SETTINGS,
    SETTINGS_CATEGORIES,
    SettingsService,
    default_settings,
)


@pytest.fixture
def service(mock_client, store) -> SettingsService:
    return SettingsService(mock_client, store, user_id="u1")


class TestDefaults:
    def test_every_category_has_defaults(self):
        assert set(SETTINGS_CATEGORIES) == set(DEFAULT_SETTINGS)
        assert len(SETTINGS_CATEGORIES) == 10

    def test_defaults_are_copies(self):
        d = default_settings("gst_settings")
        d["defaultGstRateSale"] = 99
        assert DEFAULT_SETTINGS["gst_settings"]["defaultGstRateSale"] == 3

    def test_unknown_category(self):
        with pytest.raises(ValueError, match="Unknown settings category"):
            default_settings("theme")


class TestReads:
    @pytest.mark.asyncio
    async def test_missing_row_returns_defaults(self, service, mock_client, store):
        result = await service.get_settings("invoice_settings")
        assert result == DEFAULT_SETTINGS["invoice_settings"]
        mock_client.select_one.assert_awaited_once_with(
            "settings", "settings",
            filters=[eq("user_id", "u1"), eq("category", "invoice_settings")],
        )
        assert store.keys() == ["settings_invoice_settings"]

    @pytest.mark.asyncio
    async def test_stored_document_overlays_defaults(self, service, mock_client):
        mock_client.select_one.return_value = {"settings": {"invoicePrefix": "SLV-"}}
        result = await service.get_settings("invoice_settings")
        assert result["invoicePrefix"] == "SLV-"
        assert result["startingNumber"] == 1

    @pytest.mark.asyncio
    async def test_cached_per_category(self, service, mock_client):
        await service.get_settings("gst_settings")
        await service.get_settings("gst_settings")
        assert mock_client.select_one.await_count == 1

    @pytest.mark.asyncio
    async def test_caller_cannot_mutate_cached_copy(self, service):
        first = await service.get_settings("user_settings")
        first["theme"] = "dark"
        assert (await service.get_settings("user_settings"))["theme"] == "light"

    @pytest.mark.asyncio
    async def test_get_all(self, service, mock_client):
        result = await service.get_all_settings()
        assert list(result) == list(SETTINGS_CATEGORIES)
        assert mock_client.select_one.await_count == len(SETTINGS_CATEGORIES)

    @pytest.mark.asyncio
    async def test_no_user_configured(self, mock_client, store):
        service = SettingsService(mock_client, store)
        with pytest.raises(ServiceError, match="SETTINGS_USER_ID"):
            await service.get_settings("gst_settings")
        mock_client.select_one.assert_not_awaited()
        assert store.keys() == []


class TestWrites:
    @pytest.mark.asyncio
    async def test_update_merges_and_writes_through(self, service, mock_client, store):
        mock_client.select_one.return_value = {"settings": {"defaultGstRateSale": 3}}
        await service.get_settings("pricing_settings")

        result = await service.update_settings("gst_settings", {"defaultGstRateSale": 5})

        assert result["defaultGstRateSale"] == 5
        assert result["taxCalculationMethod"] == "exclusive"
        mock_client.upsert.assert_awaited_once_with(
            "settings",
            {"user_id": "u1", "category": "gst_settings", "settings": result},
            on_conflict="user_id,category",
        )
        # The written category is cached; the others were busted.
        assert store.keys() == [K.settings_key("gst_settings")]
        reads = mock_client.select_one.await_count
        assert (await service.get_settings("gst_settings"))["defaultGstRateSale"] == 5
        assert mock_client.select_one.await_count == reads

    @pytest.mark.asyncio
    async def test_failed_update_keeps_cache(self, service, mock_client, store):
        await service.get_settings("gst_settings")
        mock_client.upsert.side_effect = DataClientError("rls violation")
        with pytest.raises(DataClientError):
            await service.update_settings("gst_settings", {"defaultGstRateSale": 5})
        assert (await service.get_settings("gst_settings"))["defaultGstRateSale"] == 3

    @pytest.mark.asyncio
    async def test_reset_stores_defaults(self, service, mock_client, store):
        mock_client.select_one.return_value = {"settings": {"theme": "dark", "legacy": 1}}
        await service.get_settings("user_settings")

        await service.reset_settings("user_settings")

        stored = mock_client.upsert.call_args.args[1]["settings"]
        assert stored == DEFAULT_SETTINGS["user_settings"]
        assert await service.get_settings("user_settings") == DEFAULT_SETTINGS["user_settings"]

    @pytest.mark.asyncio
    async def test_clear_one_category(self, service, store):
        await service.get_settings("gst_settings")
        await service.get_settings("user_settings")
        store.set(K.PL_REPORT, "pl")
        service.clear_settings_cache("gst_settings")
        assert sorted(store.keys()) == sorted([K.PL_REPORT, K.settings_key("user_settings")])

    @pytest.mark.asyncio
    async def test_clear_all_categories(self, service, store):
        await service.get_all_settings()
        store.set(K.PL_REPORT, "pl")
        service.clear_settings_cache()
        assert store.keys() == [K.PL_REPORT]


class TestImportExport:
    @pytest.mark.asyncio
    async def test_export(self, service):
        exported = json.loads(await service.export_settings())
        assert exported["business_profile"]["financialYearStart"] == 4

    @pytest.mark.asyncio
    async def test_import_updates_each_category(self, service, mock_client):
        await service.import_settings(json.dumps({
            "gst_settings": {"defaultGstRateSale": 5},
            "user_settings": {"theme": "dark"},
        }))
        categories = [c.args[1]["category"] for c in mock_client.upsert.call_args_list]
        assert categories == ["gst_settings", "user_settings"]

    @pytest.mark.asyncio
    async def test_import_unknown_category_writes_nothing(self, service, mock_client):
        with pytest.raises(ValueError):
            await service.import_settings(json.dumps({
                "gst_settings": {"defaultGstRateSale": 5},
                "themes": {},
            }))
        mock_client.upsert.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_import_rejects_non_object(self, service):
        with pytest.raises(ValueError, match="JSON object"):
            await service.import_settings("[1, 2]")


class TestFactoryReset:
    @pytest.mark.asyncio
    async def test_clears_every_cached_result(self, service, mock_client, store):
        for key in K.EXACT_KEYS:
            store.set(key, key)
        store.set(K.customer_statement_key("Ravi"), "c")
        await service.get_settings("gst_settings")

        await service.factory_reset()

        mock_client.rpc.assert_awaited_once_with("reset_app_data", {})
        assert store.keys() == []
