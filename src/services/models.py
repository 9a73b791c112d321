# src/services/models.py - v1
"""Domain models returned by the services.

Rows from the backend are validated into these models. Unknown columns
are ignored so schema additions on the backend do not break the client.
"""

from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MaterialType = Literal["CLIENT", "OWN"]
OrderStatus = Literal["Pending", "In Progress", "Completed", "Cancelled"]
StockType = Literal[
    "RAW_IN", "RAW_OUT", "PRODUCTION", "WASTAGE", "ORDER_DEDUCTION", "ADJUSTMENT"
]
StockItemType = Literal["RAW_SILVER", "FINISHED_GOODS", "WASTAGE"]
RateSource = Literal["MCX", "Local Dealer"]
SettingsCategory = Literal[
    "business_profile",
    "invoice_settings",
    "gst_settings",
    "user_settings",
    "inventory_settings",
    "pricing_settings",
    "notification_settings",
    "karigar_settings",
    "customer_settings",
    "system_settings",
]
LedgerType = Literal["ASSET", "LIABILITY", "EXPENSE", "INCOME"]
PaymentDirection = Literal["IN", "OUT"]


class _Row(BaseModel):
    model_config = ConfigDict(extra="ignore")


# === Orders ===


class OrderItem(_Row):
    id: str | None = None
    order_id: str | None = None
    description: str
    quantity: float
    unit: str = "pcs"
    rate: float
    amount: float | None = None
    product_id: str | None = None
    weight: float | None = None
    wastage_percent: float | None = None
    labour_cost: float | None = None
    karigar_id: str | None = None
    karigar_rate: float | None = None
    karigar_quantity: float | None = None


class Order(_Row):
    id: str
    order_number: int | None = None
    order_date: dt.date
    customer_name: str
    material_type: MaterialType
    user_id: str | None = None
    gst_enabled: bool = False
    gst_rate: float = 0.0
    gst_amount: float = 0.0
    subtotal: float = 0.0
    total_amount: float = 0.0
    status: OrderStatus = "Pending"
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None
    items: list[OrderItem] = Field(default_factory=list)


class NewOrder(_Row):
    """Header fields a caller supplies when creating an order."""

    customer_name: str
    order_date: dt.date
    material_type: MaterialType


# === Catalog ===


class JobWorkItem(_Row):
    id: str | None = None
    name: str
    unit: str
    default_rate: float
    is_active: bool = True


class Product(_Row):
    id: str | None = None
    name: str
    category: str
    size: str | None = None
    default_weight: float = 0.0
    wastage_percent: float = 0.0
    labour_cost: float = 0.0
    current_stock: float = 0.0
    gst_rate: float | None = None
    is_active: bool = True


# === Inventory ===


class StockTransaction(_Row):
    id: str | None = None
    date: dt.date
    type: StockType
    item_type: StockItemType
    product_id: str | None = None
    quantity: float
    weight_gm: float | None = None
    note: str | None = None
    source: str | None = None
    rate_at_time: float | None = None
    wastage_percent: float | None = None
    order_id: str | None = None
    created_at: dt.datetime | None = None
    user_id: str | None = None


class StockPayment(_Row):
    """Payment recorded alongside a stock purchase."""

    amount: float
    mode: str
    notes: str | None = None
    vendor_id: str | None = None


class StockSummary(_Row):
    raw_silver: float = 0.0
    wastage: float = 0.0
    finished_goods_count: float = 0.0
    finished_goods_weight: float = 0.0
    total_value: float = 0.0


class MetalInventory(_Row):
    id: str
    name: str
    weight_gm: float


# === Rates ===


class SilverRate(_Row):
    id: str | None = None
    rate_date: dt.date
    source: RateSource
    rate_10g: float
    rate_1g: float | None = None
    notes: str | None = None


# === Expenses ===


class Expense(_Row):
    id: str | None = None
    date: dt.date
    head: str
    amount: float
    notes: str | None = None
    gst_enabled: bool = False
    gst_rate: float | None = None
    gst_amount: float | None = None
    invoice_number: str | None = None
    vendor_name: str | None = None
    created_at: dt.datetime | None = None


# === Karigars ===


class Karigar(_Row):
    id: str | None = None
    name: str
    work_type: Literal["Cutting", "Choti", "Half Belt", "General"] = "General"
    rate_type: Literal["Per KG", "Per Piece", "Fixed"] = "Per Piece"
    default_rate: float = 0.0
    status: Literal["ACTIVE", "INACTIVE"] = "ACTIVE"
    current_balance: float | None = None


class KarigarWorkRecord(_Row):
    id: str
    karigar_id: str
    order_id: str | None = None
    description: str = ""
    quantity: float = 0.0
    rate: float = 0.0
    amount: float = 0.0
    payment_status: Literal["PENDING", "PAID"] = "PENDING"
    payment_date: dt.date | None = None
    payment_mode: str | None = None
    work_date: dt.date
    karigar_name: str | None = None


class KarigarStats(_Row):
    pending_work: float = 0.0
    advance: float = 0.0


# === Accounting ===


class Ledger(_Row):
    id: str
    name: str
    type: LedgerType | None = None
    gst_number: str | None = None
    state: str | None = None


class LedgerTransaction(_Row):
    id: str | None = None
    ledger_id: str
    date: dt.date
    debit: float = 0.0
    credit: float = 0.0
    description: str | None = None
    order_id: str | None = None


class PLData(_Row):
    job_work_income: float = 0.0
    product_sales_income: float = 0.0
    general_expenses: float = 0.0
    karigar_expenses: float = 0.0
    total_expenses: float = 0.0
    net_profit: float = 0.0


class DashboardStats(_Row):
    total_orders: int = 0
    orders_by_status: dict[str, int] = Field(default_factory=dict)
    pending_orders: int = 0
    total_revenue: float = 0.0
    total_expenses: float = 0.0


# === GST ===


class GSTSummaryItem(_Row):
    rate: float
    taxable_value: float = 0.0
    gst_amount: float = 0.0
    total_amount: float = 0.0
    type: Literal["output", "input"]
