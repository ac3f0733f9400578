"""Tests for spending aggregation and period comparison."""

from datetime import date, datetime, timezone

import pytest

from categories import CATEGORY_COLORS
from conftest import NOW
from models import InsightKind, Period, Severity
from spending import aggregate_spending, compare_periods, reconcile_buckets, zero_bucket

D1 = date(2024, 5, 15)


class TestAggregateSpending:

    def test_empty_input_returns_empty(self):
        assert aggregate_spending([], D1, D1) == []

    def test_non_positive_amounts_excluded(self, make_txn):
        assert aggregate_spending([make_txn(-5, merchant_name="Kroger")], D1, D1) == []
        assert aggregate_spending([make_txn(0, merchant_name="Kroger")], D1, D1) == []

    def test_mixed_income_and_spend_scenario(self, make_txn):
        txns = [
            make_txn(50, day=D1, merchant_name="Starbucks"),
            make_txn(30, day=D1, name="Shell Gas"),
            make_txn(-20, day=D1, merchant_name="Payroll"),
        ]
        buckets = aggregate_spending(txns, D1, D1)

        assert [(b.category, b.total_amount, b.transaction_count) for b in buckets] == [
            ("Food & Dining", 50.0, 1),
            ("Transportation", 30.0, 1),
        ]
        assert sum(b.total_amount for b in buckets) == 80.0

    def test_sums_and_counts_per_category(self, make_txn):
        txns = [
            make_txn(10.5, merchant_name="Kroger"),
            make_txn(4.25, merchant_name="Safeway"),
            make_txn(12, merchant_name="Lyft"),
        ]
        buckets = aggregate_spending(txns, D1, D1)
        food = buckets[0]
        assert food.category == "Food & Dining"
        assert food.total_amount == pytest.approx(14.75)
        assert food.transaction_count == 2
        assert food.display_color == CATEGORY_COLORS["Food & Dining"]

    def test_ties_sorted_by_category_label(self, make_txn):
        txns = [
            make_txn(40, merchant_name="Target"),
            make_txn(40, merchant_name="Kroger"),
            make_txn(90, merchant_name="Lyft"),
        ]
        assert [b.category for b in aggregate_spending(txns, D1, D1)] == [
            "Transportation",
            "Food & Dining",
            "Shopping",
        ]

    def test_window_bounds_are_inclusive(self, make_txn):
        txns = [
            make_txn(1, day=date(2024, 5, 9), merchant_name="Kroger"),
            make_txn(2, day=date(2024, 5, 10), merchant_name="Kroger"),
            make_txn(4, day=date(2024, 5, 20), merchant_name="Kroger"),
            make_txn(8, day=date(2024, 5, 21), merchant_name="Kroger"),
        ]
        (bucket,) = aggregate_spending(txns, date(2024, 5, 10), date(2024, 5, 20))
        assert bucket.total_amount == 6.0
        assert bucket.transaction_count == 2

    def test_datetime_bounds(self, make_txn):
        txns = [make_txn(7, day=D1, merchant_name="Kroger")]
        buckets = aggregate_spending(txns, datetime(2024, 5, 15), datetime(2024, 5, 15, 9, 30))
        assert buckets[0].total_amount == 7.0

    def test_timezone_aware_bounds(self, make_txn):
        txns = [make_txn(7, day=D1, merchant_name="Kroger")]
        start = datetime(2024, 5, 1, tzinfo=timezone.utc)
        end = datetime(2024, 5, 31, tzinfo=timezone.utc)
        assert len(aggregate_spending(txns, start, end)) == 1

    def test_unmapped_category_gets_other_color(self, make_txn):
        txns = [make_txn(5, name="POS 991", hierarchy=["Pet Supplies"])]
        (bucket,) = aggregate_spending(txns, D1, D1)
        assert bucket.category == "Pet Supplies"
        assert bucket.display_color == CATEGORY_COLORS["Other"]


class TestReconcileBuckets:

    def test_zero_fills_both_sides(self):
        current = [zero_bucket("Shopping").model_copy(update={"total_amount": 5.0, "transaction_count": 1})]
        previous = [zero_bucket("Travel").model_copy(update={"total_amount": 9.0, "transaction_count": 1})]

        cur, prev = reconcile_buckets(current, previous)

        assert [b.category for b in cur] == ["Shopping", "Travel"]
        assert [b.category for b in prev] == ["Shopping", "Travel"]
        assert cur[1].total_amount == 0 and cur[1].transaction_count == 0
        assert prev[0].total_amount == 0 and prev[0].transaction_count == 0
        assert cur[1].display_color == CATEGORY_COLORS["Travel"]


class TestComparePeriods:

    @pytest.fixture
    def history(self, make_txn):
        return [
            make_txn(100, day=date(2024, 5, 10), merchant_name="Kroger"),
            make_txn(20, day=date(2024, 5, 12), merchant_name="Lyft"),
            make_txn(-500, day=date(2024, 5, 1), name="Payroll"),
            make_txn(50, day=date(2024, 4, 10), merchant_name="Kroger"),
            make_txn(30, day=date(2024, 4, 30), merchant_name="Target"),
            make_txn(999, day=date(2024, 3, 31), merchant_name="Target"),
        ]

    def test_monthly_windows(self, history):
        result = compare_periods(history, Period.MONTHLY, NOW)
        assert result.current_window.start == datetime(2024, 5, 1)
        assert result.current_window.end == NOW
        assert result.previous_window.start == datetime(2024, 4, 1)
        assert result.previous_window.end.date() == date(2024, 4, 30)

    def test_category_sets_are_symmetric(self, history):
        result = compare_periods(history, Period.MONTHLY, NOW)
        current = [b.category for b in result.current_window.buckets]
        previous = [b.category for b in result.previous_window.buckets]
        assert current == previous
        assert set(current) == {"Food & Dining", "Transportation", "Shopping"}

    def test_totals_and_delta(self, history):
        result = compare_periods(history, Period.MONTHLY, NOW)
        assert result.current_window.total == 120.0
        assert result.previous_window.total == 80.0
        assert result.delta.amount == 40.0
        assert result.delta.percentage == pytest.approx(50.0)

    def test_insights_attached(self, history):
        result = compare_periods(history, Period.MONTHLY, NOW)
        kinds = [i.kind for i in result.insights]
        assert kinds == [InsightKind.TREND_UP, InsightKind.CATEGORY_SPIKE, InsightKind.TOP_CATEGORIES]
        assert result.insights[0].severity is Severity.WARNING
        assert "Food & Dining" in result.insights[1].message
        assert result.insights[2].message.endswith("Food & Dining, Transportation")

    def test_no_previous_spend_gives_zero_percentage(self, make_txn):
        txns = [make_txn(25, day=date(2024, 5, 2), merchant_name="Kroger")]
        result = compare_periods(txns, Period.MONTHLY, NOW)
        assert result.delta.amount == 25.0
        assert result.delta.percentage == 0
        assert [i.kind for i in result.insights] == [InsightKind.TOP_CATEGORIES]

    def test_no_transactions(self):
        result = compare_periods([], Period.WEEKLY, NOW)
        assert result.current_window.buckets == []
        assert result.previous_window.buckets == []
        assert result.delta.amount == 0
        assert result.insights == []

    def test_weekly_comparison_uses_previous_seven_days(self, make_txn):
        txns = [
            make_txn(10, day=date(2024, 5, 20), merchant_name="Kroger"),
            make_txn(20, day=date(2024, 5, 19), merchant_name="Kroger"),
            make_txn(40, day=date(2024, 5, 13), merchant_name="Kroger"),
            make_txn(80, day=date(2024, 5, 12), merchant_name="Kroger"),
        ]
        result = compare_periods(txns, "weekly", NOW)
        assert result.period is Period.WEEKLY
        assert result.current_window.total == 10.0
        assert result.previous_window.total == 60.0
