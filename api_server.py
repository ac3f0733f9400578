"""REST API over the spending-analytics engine and budget storage."""

from contextlib import asynccontextmanager
from datetime import date, datetime, time, timedelta
from typing import Callable, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

import budget_store
from analytics import (
    evaluate_budgets,
    get_budget_analysis,
    get_spending_analytics,
    get_spending_comparison,
    list_transactions,
)
from budgets import DEFAULT_ALERT_THRESHOLD, BudgetError, BudgetNotFound
from categories import BUDGET_CATEGORY_SUGGESTIONS
from database import get_db, init_db
from logging_setup import configure_logging, get_logger
from models import (
    Account,
    BudgetAnalysis,
    BudgetStatus,
    CategorizedTransaction,
    ComparisonResult,
    Period,
    SpendingAnalytics,
    Transaction,
)
from periods import current_period_start, period_windows
from plaid_integration import fetch_owner_accounts, fetch_owner_transactions

logger = get_logger(__name__)

TransactionLoader = Callable[[list, date, date], List[Transaction]]
AccountLoader = Callable[[list], List[Account]]

TRANSACTION_LOOKBACK_DAYS = 30


@asynccontextmanager
async def lifespan(_app: FastAPI):
    configure_logging()
    init_db()
    yield


app = FastAPI(title="Finance Tracker API", version="0.2.0", lifespan=lifespan)


# --- Dependencies ---

def get_owner_id(x_user_id: Optional[str] = Header(None, alias="x-user-id")) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="User not authenticated")
    return x_user_id


def get_now() -> datetime:
    return datetime.now()


def get_transaction_loader() -> TransactionLoader:
    return fetch_owner_transactions


def get_account_loader() -> AccountLoader:
    return fetch_owner_accounts


def _from_linked_items(db: Session, owner_id: str, fetch: Callable[[list], list]) -> list:
    items = budget_store.list_items(db, owner_id)
    if not items:
        return []
    try:
        return fetch(items)
    except ValueError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


def load_transactions(
    db: Session,
    owner_id: str,
    loader: TransactionLoader,
    start: date,
    end: date,
) -> List[Transaction]:
    return _from_linked_items(db, owner_id, lambda items: loader(items, start, end))


def load_accounts(db: Session, owner_id: str, loader: AccountLoader) -> List[Account]:
    return _from_linked_items(db, owner_id, loader)


# --- Schemas ---

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BudgetCreateRequest(CamelModel):
    category: str = Field(..., min_length=1)
    budget_amount: float
    period: Period = Period.MONTHLY
    alert_threshold: float = DEFAULT_ALERT_THRESHOLD


class BudgetUpdateRequest(CamelModel):
    budget_amount: Optional[float] = None
    alert_threshold: Optional[float] = None
    is_active: Optional[bool] = None


class BudgetRecord(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    category: str
    budget_amount: float
    current_spent: float
    period: Period
    window_start: date
    window_end: date
    alert_threshold: float
    is_active: bool


class BudgetCreateResponse(CamelModel):
    message: str
    budget: BudgetRecord


class BudgetListResponse(CamelModel):
    budgets: List[BudgetStatus]
    total_budgets: int
    active_budgets: int


class BudgetCategory(CamelModel):
    name: str
    average_amount: float


class BudgetCategoriesResponse(CamelModel):
    categories: List[BudgetCategory]


class LinkItemRequest(CamelModel):
    item_id: str = Field(..., min_length=1)
    access_token: str = Field(..., min_length=1)


class LinkedItem(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    item_id: str
    created_at: Optional[datetime] = None


class TransactionListResponse(CamelModel):
    transactions: List[CategorizedTransaction]
    total_transactions: int
    start: date
    end: date


class AccountListResponse(CamelModel):
    accounts: List[Account]


class MessageResponse(BaseModel):
    message: str


# --- Analytics ---

@app.get("/analytics/spending", response_model=SpendingAnalytics)
def spending_analytics(
    period: Period = Period.MONTHLY,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    owner_id: str = Depends(get_owner_id),
    now: datetime = Depends(get_now),
    loader: TransactionLoader = Depends(get_transaction_loader),
    db: Session = Depends(get_db),
):
    # A missing bound falls back to the period window
    end = datetime.combine(end_date, time.max) if end_date else now
    if start_date:
        start = datetime.combine(start_date, time.min)
    else:
        start = current_period_start(period, end)
    if start > end:
        raise HTTPException(status_code=422, detail="startDate must not be after endDate")
    logger.debug("Analytics period %s: %s..%s", period.value, start, end)

    transactions = load_transactions(db, owner_id, loader, start.date(), end.date())
    return get_spending_analytics(transactions, start, end)


@app.get("/analytics/spending/comparison", response_model=ComparisonResult)
def spending_comparison(
    period: Period = Period.MONTHLY,
    owner_id: str = Depends(get_owner_id),
    now: datetime = Depends(get_now),
    loader: TransactionLoader = Depends(get_transaction_loader),
    db: Session = Depends(get_db),
):
    _, previous = period_windows(period, now)
    transactions = load_transactions(db, owner_id, loader, previous.start.date(), now.date())
    return get_spending_comparison(transactions, period, now)


def _budget_transactions(db, owner_id, loader, budgets, now) -> List[Transaction]:
    if not budgets:
        return []
    earliest = min(b.window_start for b in budgets)
    return load_transactions(db, owner_id, loader, earliest, now.date())


@app.get("/analytics/budget-analysis", response_model=BudgetAnalysis)
def budget_analysis(
    owner_id: str = Depends(get_owner_id),
    now: datetime = Depends(get_now),
    loader: TransactionLoader = Depends(get_transaction_loader),
    db: Session = Depends(get_db),
):
    budgets = budget_store.list_budgets(db, owner_id, active=True)
    transactions = _budget_transactions(db, owner_id, loader, budgets, now)
    return get_budget_analysis(budgets, transactions, now, db=db)


# --- Budgets ---

@app.get("/budgets/categories", response_model=BudgetCategoriesResponse)
def budget_categories():
    return BudgetCategoriesResponse(
        categories=[
            BudgetCategory(name=name, average_amount=amount)
            for name, amount in BUDGET_CATEGORY_SUGGESTIONS
        ]
    )


@app.post("/budgets", response_model=BudgetCreateResponse, status_code=201)
def create_budget(
    req: BudgetCreateRequest,
    owner_id: str = Depends(get_owner_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    try:
        budget = budget_store.create_budget(
            db,
            owner_id,
            req.category,
            req.budget_amount,
            now,
            period=req.period,
            alert_threshold=req.alert_threshold,
        )
    except BudgetError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return BudgetCreateResponse(
        message="Budget created successfully",
        budget=BudgetRecord.model_validate(budget),
    )


@app.get("/budgets", response_model=BudgetListResponse)
def list_budgets(
    active: Optional[bool] = True,
    period: Optional[Period] = None,
    owner_id: str = Depends(get_owner_id),
    now: datetime = Depends(get_now),
    loader: TransactionLoader = Depends(get_transaction_loader),
    db: Session = Depends(get_db),
):
    budgets = budget_store.list_budgets(db, owner_id, active=active, period=period)
    transactions = _budget_transactions(db, owner_id, loader, budgets, now)
    statuses = evaluate_budgets(budgets, transactions, now, db=db)
    return BudgetListResponse(
        budgets=statuses,
        total_budgets=len(statuses),
        active_budgets=sum(1 for s in statuses if s.is_active),
    )


@app.put("/budgets/{budget_id}", response_model=BudgetRecord)
def update_budget(
    budget_id: int,
    req: BudgetUpdateRequest,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    try:
        budget = budget_store.update_budget(
            db,
            owner_id,
            budget_id,
            budget_amount=req.budget_amount,
            alert_threshold=req.alert_threshold,
            is_active=req.is_active,
        )
    except BudgetNotFound as exc:
        raise HTTPException(status_code=404, detail="Budget not found") from exc
    except BudgetError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return BudgetRecord.model_validate(budget)


@app.delete("/budgets/{budget_id}", response_model=MessageResponse)
def delete_budget(
    budget_id: int,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    try:
        budget_store.delete_budget(db, owner_id, budget_id)
    except BudgetNotFound as exc:
        raise HTTPException(status_code=404, detail="Budget not found") from exc
    return MessageResponse(message="Budget deleted successfully")


# --- Linked items ---

@app.post("/items", response_model=LinkedItem, status_code=201)
def link_item(
    req: LinkItemRequest,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    item = budget_store.link_item(db, owner_id, req.item_id, req.access_token)
    return LinkedItem.model_validate(item)


@app.get("/items", response_model=List[LinkedItem])
def list_items(owner_id: str = Depends(get_owner_id), db: Session = Depends(get_db)):
    return [LinkedItem.model_validate(item) for item in budget_store.list_items(db, owner_id)]


@app.get("/accounts", response_model=AccountListResponse)
def accounts(
    owner_id: str = Depends(get_owner_id),
    loader: AccountLoader = Depends(get_account_loader),
    db: Session = Depends(get_db),
):
    return AccountListResponse(accounts=load_accounts(db, owner_id, loader))


@app.get("/transactions", response_model=TransactionListResponse)
def transactions(
    account_id: Optional[str] = Query(None, alias="accountId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    owner_id: str = Depends(get_owner_id),
    now: datetime = Depends(get_now),
    loader: TransactionLoader = Depends(get_transaction_loader),
    db: Session = Depends(get_db),
):
    """Categorised transactions, newest first; defaults to the last 30 days."""
    end = end_date or now.date()
    start = start_date or end - timedelta(days=TRANSACTION_LOOKBACK_DAYS)
    if start > end:
        raise HTTPException(status_code=422, detail="startDate must not be after endDate")

    listed = list_transactions(load_transactions(db, owner_id, loader, start, end), start, end, account_id=account_id)
    return TransactionListResponse(
        transactions=listed,
        total_transactions=len(listed),
        start=start,
        end=end,
    )


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api_server:app", host="0.0.0.0", port=8001, reload=True)
