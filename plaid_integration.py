import os
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Callable, Iterable, List, Optional

import plaid
from plaid.exceptions import ApiException
from plaid.api import plaid_api
from plaid.model.accounts_balance_get_request import AccountsBalanceGetRequest
from plaid.model.transactions_get_request import TransactionsGetRequest
from plaid.model.transactions_get_request_options import TransactionsGetRequestOptions
from dotenv import load_dotenv

from logging_setup import get_logger
from models import Account, Transaction

load_dotenv()

logger = get_logger(__name__)

# --- Plaid Client Setup ---
PLAID_CLIENT_ID = os.getenv('PLAID_CLIENT_ID')
PLAID_SECRET = os.getenv('PLAID_SECRET')
PLAID_ENV = os.getenv('PLAID_ENV', 'sandbox')
PLAID_PAGE_SIZE = int(os.getenv('PLAID_PAGE_SIZE', '500'))
MAX_FETCH_WORKERS = 4

host = plaid.Environment.Sandbox
if PLAID_ENV == 'production':
    host = plaid.Environment.Production


if not PLAID_CLIENT_ID or not PLAID_SECRET:
    # Calls fail with a clear error until credentials are configured
    client = None
else:
    configuration = plaid.Configuration(
        host=host,
        api_key={
            'clientId': PLAID_CLIENT_ID,
            'secret': PLAID_SECRET,
        }
    )
    api_client = plaid.ApiClient(configuration)
    client = plaid_api.PlaidApi(api_client)


def to_transaction(raw: dict) -> Transaction:
    """
    Converts one Plaid transaction dict into the engine's Transaction record.

    Plaid already uses positive amounts for money leaving the account, so the
    amount is kept as-is.  ``account_owner`` stands in when Plaid has no
    merchant name.
    """
    return Transaction(
        id=raw.get('transaction_id') or '',
        account_id=raw.get('account_id') or '',
        date=raw['date'],
        amount=float(raw.get('amount') or 0),
        merchant_name=raw.get('merchant_name') or raw.get('account_owner'),
        name=raw.get('name') or '',
        category_hierarchy=tuple(raw.get('category') or ()),
    )


def fetch_transactions(access_token: str, start_date: date, end_date: date) -> List[Transaction]:
    """
    Fetches every transaction between two dates using /transactions/get,
    paging until Plaid's reported total has been read.
    """
    if not client:
        raise ValueError("Plaid credentials not set in .env")

    raw_transactions = []
    total = None
    while total is None or len(raw_transactions) < total:
        request = TransactionsGetRequest(
            access_token=access_token,
            start_date=start_date,
            end_date=end_date,
            options=TransactionsGetRequestOptions(
                count=PLAID_PAGE_SIZE,
                offset=len(raw_transactions),
            ),
        )
        response = client.transactions_get(request).to_dict()
        page = response.get('transactions', [])
        total = response.get('total_transactions', len(page))
        raw_transactions.extend(page)
        if not page:
            break

    return [to_transaction(t) for t in raw_transactions]


def to_account(raw: dict, item_id: str = '') -> Account:
    """Converts one Plaid account dict, flattening its ``balances``."""
    balances = raw.get('balances') or {}
    return Account(
        account_id=raw.get('account_id') or '',
        item_id=item_id,
        name=raw.get('name') or '',
        official_name=raw.get('official_name'),
        type=_enum_text(raw.get('type')),
        subtype=_enum_text(raw.get('subtype')),
        mask=raw.get('mask'),
        current_balance=balances.get('current'),
        available_balance=balances.get('available'),
        iso_currency_code=balances.get('iso_currency_code'),
    )


def _enum_text(value) -> Optional[str]:
    # Plaid enum models keep the wire string in ``value``
    if value is None:
        return None
    return str(getattr(value, 'value', value))


def fetch_accounts(access_token: str, item_id: str = '') -> List[Account]:
    """Fetches live balances for every account of one item via /accounts/balance/get."""
    if not client:
        raise ValueError("Plaid credentials not set in .env")

    request = AccountsBalanceGetRequest(access_token=access_token)
    response = client.accounts_balance_get(request).to_dict()
    return [to_account(a, item_id) for a in response.get('accounts', [])]


def _fan_out(items: Iterable, fetch: Callable, what: str) -> list:
    """
    Runs ``fetch(item)`` for each linked item in parallel and merges the
    results in item order.  An item whose request fails is logged and
    skipped so the remaining accounts still produce results.
    """
    items = list(items)
    if not items:
        return []

    def _run(item) -> list:
        try:
            results = fetch(item)
        except ApiException as exc:
            logger.warning("Error fetching %s for item %s: %s", what, item.item_id, exc)
            return []
        logger.info("Found %d %s for item %s", len(results), what, item.item_id)
        return results

    with ThreadPoolExecutor(max_workers=min(MAX_FETCH_WORKERS, len(items))) as pool:
        batches = list(pool.map(_run, items))

    return [result for batch in batches for result in batch]


def fetch_owner_transactions(items: Iterable, start_date: date, end_date: date) -> List[Transaction]:
    """Fetches and merges transactions for all of an owner's linked items."""
    logger.debug("Fetching transactions %s..%s", start_date, end_date)
    return _fan_out(
        items,
        lambda item: fetch_transactions(item.access_token, start_date, end_date),
        "transactions",
    )


def fetch_owner_accounts(items: Iterable) -> List[Account]:
    """Fetches balances for all of an owner's linked items."""
    return _fan_out(items, lambda item: fetch_accounts(item.access_token, item.item_id), "accounts")
