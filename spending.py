"""
spending.py
-----------
Spending aggregation and period-over-period comparison.

Transactions are loaded into a pandas frame (one row per transaction, with
its resolved category) and grouped by category, in the same way the
dashboard summarises statement data.  Only positive amounts count as spend;
income and transfers never reach a bucket.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Iterable, List, Sequence, Union

import pandas as pd

from categorizer import category_color, resolve_category
from insights import generate_insights
from logging_setup import get_logger
from models import (
    CategoryBucket,
    ComparisonResult,
    Delta,
    Period,
    Transaction,
    Window,
    WindowSummary,
)
from periods import period_windows

logger = get_logger(__name__)

FRAME_COLUMNS = ["Date", "Amount", "Category"]

DateLike = Union[date, datetime, pd.Timestamp]


def as_timestamp(value: DateLike) -> pd.Timestamp:
    ts = pd.Timestamp(value)
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts


def transactions_to_df(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Frame of spend rows only; non-positive amounts are dropped up front."""
    rows = [
        {"Date": t.date, "Amount": float(t.amount), "Category": resolve_category(t)}
        for t in transactions
        if t.amount > 0
    ]
    if not rows:
        return pd.DataFrame(columns=FRAME_COLUMNS)
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    df["Date"] = pd.to_datetime(df["Date"])
    return df


def aggregate_spending(
    transactions: Iterable[Transaction],
    start: DateLike,
    end: DateLike,
) -> List[CategoryBucket]:
    """Group spend inside ``[start, end]`` (inclusive) by normalised category.

    Buckets are sorted by absolute total, largest first, with ties broken by
    category label.  No matching transactions yields an empty list.
    """
    df = transactions_to_df(transactions)
    if df.empty:
        return []

    in_window = (df["Date"] >= as_timestamp(start)) & (df["Date"] <= as_timestamp(end))
    df = df[in_window]
    if df.empty:
        return []

    by_cat = df.groupby("Category")["Amount"].agg(Total="sum", Count="count").reset_index()
    by_cat["AbsTotal"] = by_cat["Total"].abs()
    by_cat = by_cat.sort_values(["AbsTotal", "Category"], ascending=[False, True])

    return [
        CategoryBucket(
            category=row.Category,
            total_amount=float(row.Total),
            transaction_count=int(row.Count),
            display_color=category_color(row.Category),
        )
        for row in by_cat.itertuples(index=False)
    ]


def aggregate_window(transactions: Sequence[Transaction], window: Window) -> List[CategoryBucket]:
    return aggregate_spending(transactions, window.start, window.end)


def zero_bucket(category: str) -> CategoryBucket:
    return CategoryBucket(
        category=category,
        total_amount=0.0,
        transaction_count=0,
        display_color=category_color(category),
    )


def reconcile_buckets(current: List[CategoryBucket], previous: List[CategoryBucket]):
    """Zero-fill both sides so they cover the same categories in the same order.

    Order is the current period's categories followed by categories only seen
    in the previous period.
    """
    current_by_cat: Dict[str, CategoryBucket] = {b.category: b for b in current}
    previous_by_cat: Dict[str, CategoryBucket] = {b.category: b for b in previous}

    order = list(current_by_cat)
    order.extend(c for c in previous_by_cat if c not in current_by_cat)

    complete_current = [current_by_cat.get(c) or zero_bucket(c) for c in order]
    complete_previous = [previous_by_cat.get(c) or zero_bucket(c) for c in order]
    return complete_current, complete_previous


def bucket_total(buckets: Iterable[CategoryBucket]) -> float:
    return float(sum(abs(b.total_amount) for b in buckets))


def compare_periods(
    transactions: Sequence[Transaction],
    period: Period,
    now: datetime,
) -> ComparisonResult:
    """Compare the in-progress period with the whole previous period."""
    period = Period(period)
    current_window, previous_window = period_windows(period, now)
    logger.debug(
        "Spending comparison %s: current %s..%s previous %s..%s",
        period.value,
        current_window.start,
        current_window.end,
        previous_window.start,
        previous_window.end,
    )

    transactions = list(transactions)
    current, previous = reconcile_buckets(
        aggregate_window(transactions, current_window),
        aggregate_window(transactions, previous_window),
    )

    current_total = bucket_total(current)
    previous_total = bucket_total(previous)
    change_amount = current_total - previous_total
    change_percentage = (change_amount / previous_total) * 100 if previous_total > 0 else 0.0

    return ComparisonResult(
        period=period,
        current_window=WindowSummary(
            start=current_window.start,
            end=current_window.end,
            total=current_total,
            buckets=current,
        ),
        previous_window=WindowSummary(
            start=previous_window.start,
            end=previous_window.end,
            total=previous_total,
            buckets=previous,
        ),
        delta=Delta(amount=change_amount, percentage=change_percentage),
        insights=generate_insights(current, previous, change_amount, change_percentage),
    )
