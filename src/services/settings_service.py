# src/services/settings_service.py - v1
"""Per-user business settings, one JSON document per category.

Rows live in the ``settings`` table keyed by ``(user_id, category)``.
Stored documents are laid over the category defaults on read, so keys
added to the defaults later show up for existing users too. Document keys
are kept as the backend stores them.

Writes go through the shared store: the mutation busts the ``settings_``
family, then the written document is put back for its own category.
"""

from __future__ import annotations

import json
import logging
from types import MappingProxyType
from typing import Any, Mapping, get_args

from silvererp.cache import keys as K
from silvererp.cache.base_cache_store import BaseCacheStore
from silvererp.cache.invalidation import Mutation, apply_invalidation, invalidates
from silvererp.datastore.base_client import BaseDataClient
from silvererp.datastore.models import eq
from silvererp.logging.context import operation_context
from silvererp.services.base import BaseService
from silvererp.services.errors import ServiceError
from silvererp.services.models import SettingsCategory

logger = logging.getLogger(__name__)

SETTINGS_CATEGORIES: tuple[str, ...] = get_args(SettingsCategory)

DEFAULT_SETTINGS: Mapping[str, Mapping[str, Any]] = MappingProxyType({
    "business_profile": {
        "businessName": "",
        "gstin": "",
        "pan": "",
        "address": "",
        "city": "",
        "state": "",
        "pincode": "",
        "phone": "",
        "email": "",
        "website": "",
        "logoUrl": "",
        "financialYearStart": 4,  # April
    },
    "invoice_settings": {
        "invoicePrefix": "INV-",
        "startingNumber": 1,
        "paymentTerms": "Net 30",
        "bankName": "",
        "accountNumber": "",
        "ifscCode": "",
        "branchName": "",
        "termsAndConditions": "",
        "showHsnCode": True,
        "autoGenerate": True,
    },
    "gst_settings": {
        "defaultGstRateJobWork": 5,
        "defaultGstRateSale": 3,
        "taxCalculationMethod": "exclusive",
        "itcOpeningBalance": 0,
        "enableReverseCharge": False,
        "compositionScheme": False,
    },
    "user_settings": {
        "theme": "light",
        "language": "en",
        "dateFormat": "DD/MM/YYYY",
        "numberFormat": "indian",
        "sessionTimeout": 60,
    },
    "inventory_settings": {
        "lowStockThreshold": 10,
        "stockValuationMethod": "FIFO",
        "autoDeductStock": True,
        "allowNegativeStock": False,
        "defaultUnit": "Gram",
        "autoCalculateWastage": True,
    },
    "pricing_settings": {
        "defaultProfitMargin": 15,
        "roundingRule": 1,
        "labourRateType": "per_gram",
        "defaultMakingCharge": 0,
    },
    "notification_settings": {
        "emailNotifications": True,
        "smsAlerts": False,
        "whatsappIntegration": False,
        "dashboardAlerts": True,
        "paymentReminders": True,
        "expenseAlerts": True,
        "dailySummary": False,
    },
    "karigar_settings": {
        "defaultRateType": "per_kg",
        "paymentCycle": "monthly",
        "allowAdvancePayment": True,
        "settlementTerms": "Net 7",
        "penaltyForDelay": False,
        "penaltyPercentage": 0,
    },
    "customer_settings": {
        "defaultCreditLimit": 100000,
        "defaultPaymentTerms": "Net 30",
        "interestOnOverdue": False,
        "interestRate": 0,
        "autoSendStatements": False,
        "statementFrequency": "monthly",
    },
    "system_settings": {
        "enableCache": True,
        "performanceMode": "balanced",
        "autoSyncFrequency": 5,
        "enableDebugMode": False,
        "enableOfflineMode": False,
    },
})


def default_settings(category: str) -> dict[str, Any]:
    """Fresh copy of a category's defaults.

    Raises:
        ValueError: If category is unknown.
    """
    if category not in DEFAULT_SETTINGS:
        raise ValueError(f"Unknown settings category: {category!r}")
    return dict(DEFAULT_SETTINGS[category])


class SettingsService(BaseService):
    """Business settings for one user.

    Args:
        client: Datastore client.
        cache: Shared cache store.
        user_id: Owner of the settings rows. Reads and writes that reach
            the backend fail with ``ServiceError`` while it is empty.
    """

    def __init__(self, client: BaseDataClient, cache: BaseCacheStore, user_id: str = "") -> None:
        super().__init__(client, cache)
        self.user_id = user_id

    def _require_user(self) -> str:
        if not self.user_id:
            raise ServiceError("No settings user configured (set SETTINGS_USER_ID)")
        return self.user_id

    async def get_settings(self, category: SettingsCategory) -> dict[str, Any]:
        defaults = default_settings(category)

        async def fetch() -> dict[str, Any]:
            row = await self.client.select_one(
                "settings", "settings",
                filters=[eq("user_id", self._require_user()), eq("category", category)],
            )
            stored = (row or {}).get("settings") or {}
            return {**defaults, **stored}

        document = await self.cache.get_or_fetch(K.settings_key(category), fetch)
        # Callers get a copy; the cached document stays as stored.
        return dict(document)

    async def get_all_settings(self) -> dict[str, dict[str, Any]]:
        return {c: await self.get_settings(c) for c in SETTINGS_CATEGORIES}

    async def update_settings(
        self, category: SettingsCategory, changes: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Merge changes into the category's document and store it."""
        with operation_context(Mutation.SETTINGS_UPDATE.value):
            merged = {**await self.get_settings(category), **changes}
            await self._store(category, merged)
            apply_invalidation(self.cache, Mutation.SETTINGS_UPDATE)
            self.cache.set(K.settings_key(category), merged)
        return dict(merged)

    async def reset_settings(self, category: SettingsCategory) -> dict[str, Any]:
        """Replace the category's document with its defaults."""
        defaults = default_settings(category)
        with operation_context(Mutation.SETTINGS_RESET.value):
            await self._store(category, defaults)
            apply_invalidation(self.cache, Mutation.SETTINGS_RESET)
            self.cache.set(K.settings_key(category), defaults)
        return dict(defaults)

    def clear_settings_cache(self, category: SettingsCategory | None = None) -> None:
        """Drop cached settings locally. The backend is not touched."""
        if category is None:
            self.cache.invalidate_pattern(K.SETTINGS)
        else:
            self.cache.invalidate(K.settings_key(category))

    async def export_settings(self) -> str:
        return json.dumps(await self.get_all_settings(), indent=2)

    async def import_settings(self, json_data: str) -> None:
        """Apply an ``export_settings`` document category by category.

        Raises:
            ValueError: If the document is not a JSON object or names an
                unknown category. Nothing is written in that case.
        """
        payload = json.loads(json_data)
        if not isinstance(payload, dict):
            raise ValueError("Settings import must be a JSON object")
        for category in payload:
            default_settings(category)
        for category, changes in payload.items():
            await self.update_settings(category, changes)

    @invalidates(Mutation.FACTORY_RESET)
    async def factory_reset(self) -> None:
        """Wipe all business data and settings on the backend."""
        logger.warning("Factory reset requested")
        await self.client.rpc("reset_app_data", {})

    async def _store(self, category: str, document: dict[str, Any]) -> None:
        await self.client.upsert(
            "settings",
            {"user_id": self._require_user(), "category": category, "settings": document},
            on_conflict="user_id,category",
        )
