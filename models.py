"""
models.py
---------
Value types shared by the categorization and spending-analytics engine.

All models are frozen pydantic models.  Field names are snake_case in Python
and serialise with camelCase aliases so the JSON shapes returned by the API
match what the dashboard client already consumes.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Period(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class InsightKind(str, Enum):
    TREND_UP = "trend-up"
    TREND_DOWN = "trend-down"
    CATEGORY_SPIKE = "category-spike"
    TOP_CATEGORIES = "top-categories"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"
    ERROR = "error"


class FrozenModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Transaction(FrozenModel):
    """A raw bank transaction as delivered by the aggregation API.

    ``amount`` follows the aggregator's sign convention: positive means money
    leaving the account (spend), zero or negative means income or transfer.
    """

    id: str
    account_id: str = ""
    date: dt.date
    amount: float
    merchant_name: Optional[str] = None
    name: str = ""
    category_hierarchy: Tuple[str, ...] = ()


class CategorizedTransaction(Transaction):
    category: str
    display_color: str


class Account(FrozenModel):
    """A linked bank account with its latest balances."""

    account_id: str
    item_id: str = ""
    name: str = ""
    official_name: Optional[str] = None
    type: Optional[str] = None
    subtype: Optional[str] = None
    mask: Optional[str] = None
    current_balance: Optional[float] = None
    available_balance: Optional[float] = None
    iso_currency_code: Optional[str] = None


class CategoryBucket(FrozenModel):
    category: str
    total_amount: float = 0.0
    transaction_count: int = Field(0, ge=0)
    display_color: str


class Window(FrozenModel):
    """Inclusive datetime bounds used to select transactions."""

    start: dt.datetime
    end: dt.datetime


class WindowSummary(FrozenModel):
    start: dt.datetime
    end: dt.datetime
    total: float
    buckets: List[CategoryBucket]


class Delta(FrozenModel):
    amount: float
    percentage: float


class Insight(FrozenModel):
    kind: InsightKind
    severity: Severity
    title: str
    message: str


class ComparisonResult(FrozenModel):
    period: Period
    current_window: WindowSummary
    previous_window: WindowSummary
    delta: Delta
    insights: List[Insight]


class SpendingAnalytics(FrozenModel):
    category_spending: List[CategoryBucket]
    total_spending: float
    transaction_count: int
    average_transaction: float
    start: dt.datetime
    end: dt.datetime


class BudgetStatus(FrozenModel):
    id: Optional[int] = None
    category: str
    budget_amount: float
    current_spent: float
    remaining: float
    usage_ratio: float
    is_over_budget: bool
    is_near_limit: bool
    period: Period
    alert_threshold: float
    is_active: bool = True
    window_start: Optional[dt.date] = None
    window_end: Optional[dt.date] = None


class Alert(FrozenModel):
    severity: Severity
    category: str
    message: str


class BudgetAnalysis(FrozenModel):
    budgets: List[BudgetStatus]
    total_budget: float
    total_spent: float
    overall_usage: float
    alerts: List[Alert]
