"""
analytics.py
------------
Entry points used by the API layer.  Each takes an in-memory sequence of
transactions plus the caller's ``now`` and returns a response model; an
empty transaction list yields all-zero analytics rather than an error.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from budget_store import record_spent
from budgets import budget_alerts, evaluate_budget
from categorizer import category_color, resolve_category
from logging_setup import get_logger
from models import (
    BudgetAnalysis,
    BudgetStatus,
    CategorizedTransaction,
    CategoryBucket,
    ComparisonResult,
    Period,
    SpendingAnalytics,
    Transaction,
)
from periods import budget_spend_window
from spending import aggregate_spending, as_timestamp, bucket_total, compare_periods

logger = get_logger(__name__)


def get_spending_analytics(
    transactions: Sequence[Transaction],
    start: datetime,
    end: datetime,
) -> SpendingAnalytics:
    buckets = aggregate_spending(transactions, start, end)
    total = bucket_total(buckets)
    count = sum(b.transaction_count for b in buckets)
    average = total / count if count > 0 else 0.0
    logger.debug("Spending analytics %s..%s: %d categories, total %.2f", start, end, len(buckets), total)

    return SpendingAnalytics(
        category_spending=buckets,
        total_spending=total,
        transaction_count=count,
        average_transaction=average,
        start=as_timestamp(start).to_pydatetime(),
        end=as_timestamp(end).to_pydatetime(),
    )


def get_spending_comparison(
    transactions: Sequence[Transaction],
    period: Period,
    now: datetime,
) -> ComparisonResult:
    return compare_periods(transactions, period, now)


def evaluate_budgets(
    budgets: Sequence,
    transactions: Sequence[Transaction],
    now: datetime,
    db: Optional[Session] = None,
) -> List[BudgetStatus]:
    """Recompute spend for each budget over its own window, capped at ``now``.

    The stored ``current_spent`` is never trusted.  When ``db`` is given the
    recomputed value is written back over it.
    """
    transactions = list(transactions)
    by_window: Dict[Tuple[date, date], List[CategoryBucket]] = {}
    statuses = []

    for budget in budgets:
        key = (budget.window_start, budget.window_end)
        if key not in by_window:
            window = budget_spend_window(budget.window_start, budget.window_end, now)
            by_window[key] = aggregate_spending(transactions, window.start, window.end)
        status = evaluate_budget(budget, by_window[key])
        logger.debug("Budget %r matched spend %.2f", budget.category, status.current_spent)
        statuses.append(status)

    if db is not None:
        record_spent(db, statuses)
    return statuses


def get_budget_analysis(
    budgets: Sequence,
    transactions: Sequence[Transaction],
    now: datetime,
    db: Optional[Session] = None,
) -> BudgetAnalysis:
    """Budget-vs-actual for the active budgets, with totals and alerts.

    Budgets whose window has already ended stay in the analysis until they
    are deactivated.
    """
    active = [b for b in budgets if b.is_active]
    statuses = evaluate_budgets(active, transactions, now, db=db)

    total_budget = sum(s.budget_amount for s in statuses)
    total_spent = sum(s.current_spent for s in statuses)
    return BudgetAnalysis(
        budgets=statuses,
        total_budget=float(total_budget),
        total_spent=float(total_spent),
        overall_usage=total_spent / total_budget if total_budget > 0 else 0.0,
        alerts=budget_alerts(statuses),
    )


def list_transactions(
    transactions: Sequence[Transaction],
    start: date,
    end: date,
    account_id: Optional[str] = None,
) -> List[CategorizedTransaction]:
    """Transactions dated within ``[start, end]``, newest first, each with its
    resolved category and display color.

    Unlike the spending views this keeps income and transfers.
    """
    selected = [
        t for t in transactions
        if start <= t.date <= end and (not account_id or t.account_id == account_id)
    ]
    selected.sort(key=lambda t: t.date, reverse=True)

    listed = []
    for txn in selected:
        category = resolve_category(txn)
        listed.append(
            CategorizedTransaction(
                **txn.model_dump(),
                category=category,
                display_color=category_color(category),
            )
        )
    return listed
