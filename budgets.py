"""
budgets.py
----------
Budget-vs-actual tracking.

``evaluate_budget`` matches a stored budget against aggregated spend and
derives usage figures; ``budget_alerts`` turns those figures into at most one
alert per budget.  Nothing here touches storage; persisting the recomputed
spend is the caller's job (see ``analytics.get_budget_analysis``).
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional, Sequence

from models import Alert, BudgetStatus, CategoryBucket, Period, Severity

DEFAULT_ALERT_THRESHOLD = 0.80


class BudgetError(ValueError):
    """A budget request the caller can correct."""


class InvalidAmount(BudgetError):
    pass


class InvalidThreshold(BudgetError):
    pass


class OverlappingBudget(BudgetError):
    def __init__(self, category: str):
        super().__init__(f"A budget for {category} already exists for this period")
        self.category = category


class BudgetNotFound(LookupError):
    pass


def validate_budget_amount(amount: float) -> None:
    if amount is None or amount <= 0:
        raise InvalidAmount("Budget amount must be greater than 0")


def validate_alert_threshold(threshold: float) -> None:
    if threshold is None or threshold < 0 or threshold > 1:
        raise InvalidThreshold("Alert threshold must be between 0 and 1")


def windows_overlap(new_start: date, new_end: date, existing_start: date, existing_end: date) -> bool:
    """Overlap test for half-open ``[start, end)`` windows.

    Ends are exclusive, so a window starting on another's end date only
    touches it and does not overlap.
    """
    return new_start < existing_end and new_end > existing_start


def find_bucket(category: str, buckets: Iterable[CategoryBucket]) -> Optional[CategoryBucket]:
    wanted = category.lower()
    for bucket in buckets:
        if bucket.category.lower() == wanted:
            return bucket
    return None


def evaluate_budget(budget, buckets: Sequence[CategoryBucket]) -> BudgetStatus:
    """Compute spend, remaining amount and limit flags for one budget.

    ``budget`` is any object exposing ``category``, ``budget_amount``,
    ``alert_threshold`` and ``period`` (the ORM row or an equivalent record).
    """
    bucket = find_bucket(budget.category, buckets)
    actual_spent = abs(bucket.total_amount) if bucket else 0.0
    budget_amount = float(budget.budget_amount)
    threshold = float(budget.alert_threshold)

    usage_ratio = actual_spent / budget_amount if budget_amount > 0 else 0.0
    return BudgetStatus(
        id=getattr(budget, "id", None),
        category=budget.category,
        budget_amount=budget_amount,
        current_spent=actual_spent,
        remaining=max(0.0, budget_amount - actual_spent),
        usage_ratio=usage_ratio,
        is_over_budget=actual_spent > budget_amount,
        is_near_limit=usage_ratio >= threshold,
        period=Period(budget.period),
        alert_threshold=threshold,
        is_active=bool(getattr(budget, "is_active", True)),
        window_start=getattr(budget, "window_start", None),
        window_end=getattr(budget, "window_end", None),
    )


def budget_alerts(statuses: Iterable[BudgetStatus]) -> List[Alert]:
    """Over budget -> error, else near limit -> warning, else nothing."""
    alerts = []
    for status in statuses:
        if status.is_over_budget:
            overage = status.current_spent - status.budget_amount
            alerts.append(
                Alert(
                    severity=Severity.ERROR,
                    category=status.category,
                    message=f"You've exceeded your {status.category} budget by ${overage:,.2f}",
                )
            )
        elif status.is_near_limit:
            alerts.append(
                Alert(
                    severity=Severity.WARNING,
                    category=status.category,
                    message=f"You've used {status.usage_ratio * 100:.0f}% of your {status.category} budget",
                )
            )
    return alerts
