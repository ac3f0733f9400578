"""
categorizer.py
--------------
Resolve a raw transaction to one normalised spending category.

Rules are applied in strict precedence, first match wins:

1. merchant name contains a curated merchant fragment
2. transaction name contains a curated merchant fragment
3. aggregator-supplied category hierarchy, most specific level first; an
   unmapped hierarchy passes its broadest level through unchanged
4. keyword groups over merchant name + transaction name
5. ``"Other"``
"""

from __future__ import annotations

from typing import Optional

from categories import (
    CATEGORY_COLORS,
    HIERARCHY_CATEGORIES,
    KEYWORD_RULES,
    MERCHANT_CATEGORIES,
    OTHER,
)
from models import Transaction


def match_merchant(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    lowered = text.lower()
    for fragment, category in MERCHANT_CATEGORIES:
        if fragment in lowered:
            return category
    return None


def match_hierarchy(hierarchy) -> Optional[str]:
    """Map an aggregator category hierarchy (broad -> narrow).

    Blank levels are ignored.  When no level is mapped the broadest raw level
    is returned verbatim so new upstream categories stay visible.
    """
    levels = [level for level in hierarchy or () if level]
    if not levels:
        return None
    for level in reversed(levels):
        mapped = HIERARCHY_CATEGORIES.get(level)
        if mapped:
            return mapped
    return levels[0]


def match_keywords(text: str) -> Optional[str]:
    for pattern, category in KEYWORD_RULES:
        if pattern.search(text):
            return category
    return None


def resolve_category(txn: Transaction) -> str:
    """Return the normalised category for ``txn``; never fails."""
    merchant = txn.merchant_name or ""
    name = txn.name or ""

    category = (
        match_merchant(merchant)
        or match_merchant(name)
        or match_hierarchy(txn.category_hierarchy)
        or match_keywords(f"{merchant} {name}")
    )
    return category or OTHER


def category_color(category: str) -> str:
    return CATEGORY_COLORS.get(category, CATEGORY_COLORS[OTHER])
