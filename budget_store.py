"""
budget_store.py
---------------
Persistence for budgets and linked Plaid items.

Creation validates the amount and threshold, derives the budget window from
the period and ``now``, and refuses a second active budget for the same
category whose window overlaps an existing one for the same owner.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from budgets import (
    DEFAULT_ALERT_THRESHOLD,
    BudgetNotFound,
    OverlappingBudget,
    validate_alert_threshold,
    validate_budget_amount,
)
from database import Budget, PlaidItem
from logging_setup import get_logger
from models import BudgetStatus, Period
from periods import budget_window

logger = get_logger(__name__)


def find_overlapping_budget(db: Session, owner_id: str, category: str, start, end) -> Optional[Budget]:
    # Windows are half-open, see budgets.windows_overlap
    return db.query(Budget).filter(
        Budget.owner_id == owner_id,
        func.lower(Budget.category) == category.lower(),
        Budget.is_active.is_(True),
        Budget.window_start < end,
        Budget.window_end > start,
    ).first()


def create_budget(
    db: Session,
    owner_id: str,
    category: str,
    budget_amount: float,
    now: datetime,
    period: Period = Period.MONTHLY,
    alert_threshold: float = DEFAULT_ALERT_THRESHOLD,
) -> Budget:
    validate_budget_amount(budget_amount)
    validate_alert_threshold(alert_threshold)
    period = Period(period)
    start, end = budget_window(period, now)

    if find_overlapping_budget(db, owner_id, category, start, end):
        raise OverlappingBudget(category)

    budget = Budget(
        owner_id=owner_id,
        category=category,
        budget_amount=float(budget_amount),
        period=period.value,
        window_start=start,
        window_end=end,
        alert_threshold=float(alert_threshold),
        current_spent=0.0,
        is_active=True,
    )
    db.add(budget)
    db.commit()
    db.refresh(budget)
    logger.info("Created %s budget %s for %s (%s..%s)", period.value, budget.id, category, start, end)
    return budget


def list_budgets(
    db: Session,
    owner_id: str,
    active: Optional[bool] = True,
    period: Optional[Period] = None,
) -> List[Budget]:
    query = db.query(Budget).filter(Budget.owner_id == owner_id)
    if active is not None:
        query = query.filter(Budget.is_active.is_(active))
    if period is not None:
        query = query.filter(Budget.period == Period(period).value)
    return query.order_by(Budget.created_at.desc(), Budget.id.desc()).all()


def get_budget(db: Session, owner_id: str, budget_id: int) -> Budget:
    budget = db.query(Budget).filter(Budget.id == budget_id, Budget.owner_id == owner_id).first()
    if budget is None:
        raise BudgetNotFound(f"Budget {budget_id} not found")
    return budget


def update_budget(
    db: Session,
    owner_id: str,
    budget_id: int,
    budget_amount: Optional[float] = None,
    alert_threshold: Optional[float] = None,
    is_active: Optional[bool] = None,
) -> Budget:
    """Only the amount, alert threshold and active flag can change."""
    budget = get_budget(db, owner_id, budget_id)
    if budget_amount is not None:
        validate_budget_amount(budget_amount)
        budget.budget_amount = float(budget_amount)
    if alert_threshold is not None:
        validate_alert_threshold(alert_threshold)
        budget.alert_threshold = float(alert_threshold)
    if is_active is not None:
        budget.is_active = is_active
    db.commit()
    db.refresh(budget)
    return budget


def delete_budget(db: Session, owner_id: str, budget_id: int) -> None:
    budget = get_budget(db, owner_id, budget_id)
    category = budget.category
    db.delete(budget)
    db.commit()
    logger.info("Deleted budget %s (%s)", budget_id, category)


def record_spent(db: Session, statuses: Iterable[BudgetStatus]) -> None:
    """Overwrite the cached ``current_spent`` with freshly computed values."""
    changed = False
    for status in statuses:
        if status.id is None:
            continue
        budget = db.get(Budget, status.id)
        if budget is not None:
            budget.current_spent = status.current_spent
            changed = True
    if changed:
        db.commit()


def link_item(db: Session, owner_id: str, item_id: str, access_token: str) -> PlaidItem:
    """Store an already exchanged Plaid item, replacing the token if it exists."""
    item = db.query(PlaidItem).filter(PlaidItem.item_id == item_id).first()
    if item is None:
        item = PlaidItem(owner_id=owner_id, item_id=item_id, access_token=access_token)
        db.add(item)
    else:
        item.owner_id = owner_id
        item.access_token = access_token
    db.commit()
    db.refresh(item)
    return item


def list_items(db: Session, owner_id: str) -> List[PlaidItem]:
    return db.query(PlaidItem).filter(PlaidItem.owner_id == owner_id).all()
