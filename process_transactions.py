"""
process_transactions.py
-----------------------
Offline spending reports over exported transaction files.

Reads one or more CSV/Excel exports, infers the date, name, merchant, amount
and category columns, resolves categories and prints either a spending
breakdown or a period comparison as JSON.

Usage:

    python process_transactions.py spending exports/*.csv [--start 2024-05-01] [--end 2024-05-31]
    python process_transactions.py compare exports/*.csv --period monthly [--now 2024-05-20T12:00]

Amounts are expected to be positive for spend (the aggregator convention).
Pass ``--spend-negative`` for statements that record spend as negative
numbers.
"""

from __future__ import annotations

import argparse
import glob
import re
import sys
from datetime import datetime, time
from pathlib import Path
from typing import Iterable, List, Optional

import pandas as pd

from analytics import get_spending_analytics, get_spending_comparison
from logging_setup import configure_logging, get_logger
from models import Period, Transaction

logger = get_logger(__name__)

# Patterns used to identify columns.
MERCHANT_PATTERNS = ["merchant", "payee", "counterparty"]
NAME_PATTERNS = ["description", "details", "name", "memo", "narrative"]
DATE_PATTERNS = ["date", "posted", "value date"]
AMOUNT_PATTERNS = ["amount", "amt", "value"]
CATEGORY_PATTERNS = ["category"]
ID_PATTERNS = ["transaction_id", "transaction id", "id", "reference"]
ACCOUNT_PATTERNS = ["account_id", "account id", "account"]

OUTPUT_COLUMNS = ["Id", "Account", "Date", "Name", "Merchant", "Amount", "Category", "Source", "HasId"]
CONTENT_COLUMNS = ["Date", "Name", "Merchant", "Amount"]


def infer_column(df: pd.DataFrame, patterns: list[str], exclude: Iterable[Optional[str]] = ()) -> Optional[str]:
    skip = {c for c in exclude if c}
    for pattern in patterns:
        for col in df.columns:
            if col in skip:
                continue
            if pattern in str(col).lower():
                return col
    return None


def parse_amounts(series: pd.Series) -> pd.Series:
    text = series.astype(str).str.replace(r"[\$,]", "", regex=True)
    text = text.str.replace(r"\((.*?)\)", r"-\1", regex=True)
    return pd.to_numeric(text, errors="coerce").fillna(0)


def parse_statement(path: Path, spend_negative: bool = False) -> Optional[pd.DataFrame]:
    try:
        if path.suffix.lower() == ".csv":
            df = pd.read_csv(path)
        elif path.suffix.lower() in (".xls", ".xlsx"):
            df = pd.read_excel(path)
        else:
            return None
    except (OSError, ValueError) as exc:
        logger.warning("Failed to read %s: %s", path, exc)
        return None

    if df.empty:
        return None

    date_col = infer_column(df, DATE_PATTERNS)
    merchant_col = infer_column(df, MERCHANT_PATTERNS, exclude=[date_col])
    name_col = infer_column(df, NAME_PATTERNS, exclude=[date_col, merchant_col])
    category_col = infer_column(df, CATEGORY_PATTERNS)
    used = [date_col, merchant_col, name_col, category_col]
    account_col = infer_column(df, ACCOUNT_PATTERNS, exclude=used)
    id_col = infer_column(df, ID_PATTERNS, exclude=used + [account_col])

    if not date_col or not (name_col or merchant_col):
        logger.warning("Skipping %s: no date or description column", path)
        return None

    debit_col = None
    credit_col = None
    for c in df.columns:
        lc = str(c).lower()
        if "debit" in lc or "withdrawal" in lc:
            debit_col = c
        if "credit" in lc or "deposit" in lc:
            credit_col = c

    out = pd.DataFrame()
    out["Date"] = pd.to_datetime(df[date_col], errors="coerce")
    out["Name"] = df[name_col].fillna("").astype(str) if name_col else ""
    out["Merchant"] = df[merchant_col].fillna("").astype(str) if merchant_col else ""
    out["Category"] = df[category_col].fillna("").astype(str) if category_col else ""
    out["Account"] = df[account_col].fillna("").astype(str) if account_col else path.stem
    out["Id"] = (
        df[id_col].astype(str)
        if id_col
        else [f"{path.stem}-{i}" for i in range(len(df))]
    )
    out["Source"] = str(path)
    out["HasId"] = id_col is not None

    if debit_col is not None and credit_col is not None:
        # Money out is positive
        out["Amount"] = parse_amounts(df[debit_col]) - parse_amounts(df[credit_col])
    else:
        amount_col = infer_column(df, AMOUNT_PATTERNS, exclude=used)
        if amount_col is None:
            logger.warning("Skipping %s: no amount column", path)
            return None
        out["Amount"] = parse_amounts(df[amount_col])
        if spend_negative:
            out["Amount"] = -out["Amount"]

    out = out.dropna(subset=["Date"])
    return out[OUTPUT_COLUMNS]


def split_hierarchy(value: str, separator: str) -> tuple:
    return tuple(part.strip() for part in re.split(re.escape(separator), value) if part.strip())


def frame_to_transactions(df: pd.DataFrame, category_separator: str = ",") -> List[Transaction]:
    return [
        Transaction(
            id=str(row.Id),
            account_id=str(row.Account),
            date=row.Date.date(),
            amount=float(row.Amount),
            merchant_name=row.Merchant or None,
            name=row.Name,
            category_hierarchy=split_hierarchy(row.Category, category_separator),
        )
        for row in df.itertuples(index=False)
    ]


def drop_duplicate_rows(df: pd.DataFrame) -> pd.DataFrame:
    """Drop rows exported more than once.

    Rows with a statement id repeat when account and id match.  Rows without
    one repeat only when an earlier file holds the same date, description,
    merchant and amount; identical rows within one file are separate purchases.
    """
    has_id = df["HasId"].astype(bool)
    keep = pd.Series(True, index=df.index)
    keep[has_id] = ~df[has_id].duplicated(subset=["Account", "Id"])
    rest = df[~has_id]
    keep[~has_id] = rest["Source"] == rest.groupby(CONTENT_COLUMNS)["Source"].transform("first")
    return df[keep]


def load_transactions(files: List[Path], spend_negative: bool = False, category_separator: str = ",") -> List[Transaction]:
    """Parse every readable file and return de-duplicated transactions sorted by date."""
    frames = []
    for file in files:
        df = parse_statement(file, spend_negative=spend_negative)
        if df is not None:
            frames.append(df)

    if not frames:
        return []

    combined = pd.concat(frames, ignore_index=True)
    combined = drop_duplicate_rows(combined)
    combined = combined.sort_values("Date", kind="mergesort")
    return frame_to_transactions(combined, category_separator)


def expand_paths(patterns: List[str]) -> List[Path]:
    paths = []
    for pattern in patterns:
        matches = sorted(glob.glob(pattern))
        paths.extend(Path(m) for m in (matches or [pattern]))
    return paths


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Spending reports from exported transaction files")
    parser.add_argument("--spend-negative", action="store_true",
                        help="Statements record spend as negative amounts.")
    parser.add_argument("--category-sep", default=",",
                        help="Separator between category hierarchy levels (default ',').")
    parser.add_argument("--log-level", default=None, help="Logging level, e.g. DEBUG.")
    sub = parser.add_subparsers(dest="command", required=True)

    spending = sub.add_parser("spending", help="Spending by category for a date range")
    spending.add_argument("files", nargs="+")
    spending.add_argument("--start", type=datetime.fromisoformat, default=None)
    spending.add_argument("--end", type=datetime.fromisoformat, default=None)

    compare = sub.add_parser("compare", help="Current vs previous period")
    compare.add_argument("files", nargs="+")
    compare.add_argument("--period", type=Period, choices=list(Period), default=Period.MONTHLY)
    compare.add_argument("--now", type=datetime.fromisoformat, default=None)

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    transactions = load_transactions(expand_paths(args.files), args.spend_negative, args.category_sep)
    logger.info("Loaded %d transactions", len(transactions))

    if args.command == "spending":
        dates = [t.date for t in transactions]
        start = args.start or (datetime.combine(min(dates), time.min) if dates else datetime.now())
        end = args.end or (datetime.combine(max(dates), time.max) if dates else datetime.now())
        result = get_spending_analytics(transactions, start, end)
    else:
        result = get_spending_comparison(transactions, args.period, args.now or datetime.now())

    sys.stdout.write(result.model_dump_json(by_alias=True, indent=2) + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
