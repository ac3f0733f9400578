"""Tests for budget and linked-item persistence."""

from datetime import date, datetime

import pytest

import budget_store
from budgets import BudgetNotFound, InvalidAmount, InvalidThreshold, OverlappingBudget, evaluate_budget
from conftest import NOW
from database import Budget
from models import CategoryBucket, Period


class TestCreateBudget:

    def test_create_monthly(self, db_session):
        budget = budget_store.create_budget(db_session, "u1", "Food & Dining", 400, NOW)
        assert budget.id is not None
        assert budget.period == "monthly"
        assert budget.window_start == date(2024, 5, 1)
        assert budget.window_end == date(2024, 6, 1)
        assert budget.alert_threshold == pytest.approx(0.8)
        assert budget.current_spent == 0
        assert budget.is_active

    def test_overlapping_budget_rejected(self, db_session):
        budget_store.create_budget(db_session, "u1", "Food & Dining", 400, NOW)
        with pytest.raises(OverlappingBudget, match="A budget for Food & Dining already exists for this period"):
            budget_store.create_budget(db_session, "u1", "Food & Dining", 250, NOW)

    def test_overlap_check_ignores_case(self, db_session):
        budget_store.create_budget(db_session, "u1", "Food & Dining", 400, NOW)
        with pytest.raises(OverlappingBudget):
            budget_store.create_budget(db_session, "u1", "FOOD & DINING", 400, NOW)

    def test_overlap_across_periods(self, db_session):
        budget_store.create_budget(db_session, "u1", "Travel", 1200, NOW, period=Period.YEARLY)
        with pytest.raises(OverlappingBudget):
            budget_store.create_budget(db_session, "u1", "Travel", 100, NOW, period=Period.WEEKLY)

    def test_other_category_and_other_owner_allowed(self, db_session):
        budget_store.create_budget(db_session, "u1", "Food & Dining", 400, NOW)
        budget_store.create_budget(db_session, "u1", "Shopping", 300, NOW)
        budget_store.create_budget(db_session, "u2", "Food & Dining", 400, NOW)
        assert db_session.query(Budget).count() == 3

    def test_inactive_budget_does_not_block(self, db_session):
        first = budget_store.create_budget(db_session, "u1", "Food & Dining", 400, NOW)
        budget_store.update_budget(db_session, "u1", first.id, is_active=False)
        second = budget_store.create_budget(db_session, "u1", "Food & Dining", 450, NOW)
        assert second.id != first.id

    def test_renew_next_month(self, db_session):
        may = budget_store.create_budget(db_session, "u1", "Food & Dining", 400, NOW)
        june = budget_store.create_budget(db_session, "u1", "Food & Dining", 400, datetime(2024, 6, 2))
        assert may.window_end == june.window_start == date(2024, 6, 1)
        assert len(budget_store.list_budgets(db_session, "u1")) == 2

    def test_renew_next_year(self, db_session):
        budget_store.create_budget(db_session, "u1", "Travel", 1200, NOW, period=Period.YEARLY)
        renewed = budget_store.create_budget(db_session, "u1", "Travel", 1500, datetime(2025, 1, 3), period=Period.YEARLY)
        assert renewed.window_start == date(2025, 1, 1)

    def test_back_to_back_weeks_allowed(self, db_session):
        budget_store.create_budget(db_session, "u1", "Shopping", 50, NOW, period=Period.WEEKLY)
        next_week = budget_store.create_budget(db_session, "u1", "Shopping", 50, datetime(2024, 5, 27, 9, 0), period=Period.WEEKLY)
        assert next_week.window_start == date(2024, 5, 27)

    def test_weeks_sharing_a_day_overlap(self, db_session):
        budget_store.create_budget(db_session, "u1", "Shopping", 50, NOW, period=Period.WEEKLY)
        with pytest.raises(OverlappingBudget):
            budget_store.create_budget(db_session, "u1", "Shopping", 50, datetime(2024, 5, 26), period=Period.WEEKLY)

    def test_disjoint_weekly_windows_allowed(self, db_session):
        budget_store.create_budget(db_session, "u1", "Shopping", 50, NOW, period=Period.WEEKLY)
        later = budget_store.create_budget(db_session, "u1", "Shopping", 50, datetime(2024, 5, 28), period=Period.WEEKLY)
        assert later.window_start == date(2024, 5, 28)

    @pytest.mark.parametrize("amount", [0, -10])
    def test_invalid_amount(self, db_session, amount):
        with pytest.raises(InvalidAmount):
            budget_store.create_budget(db_session, "u1", "Shopping", amount, NOW)
        assert db_session.query(Budget).count() == 0

    def test_invalid_threshold(self, db_session):
        with pytest.raises(InvalidThreshold):
            budget_store.create_budget(db_session, "u1", "Shopping", 100, NOW, alert_threshold=1.5)


class TestListBudgets:

    def test_filters(self, db_session):
        monthly = budget_store.create_budget(db_session, "u1", "Food & Dining", 400, NOW)
        weekly = budget_store.create_budget(db_session, "u1", "Shopping", 50, NOW, period=Period.WEEKLY)
        budget_store.update_budget(db_session, "u1", monthly.id, is_active=False)

        assert [b.id for b in budget_store.list_budgets(db_session, "u1")] == [weekly.id]
        assert [b.id for b in budget_store.list_budgets(db_session, "u1", active=False)] == [monthly.id]
        assert len(budget_store.list_budgets(db_session, "u1", active=None)) == 2
        assert budget_store.list_budgets(db_session, "u1", period=Period.MONTHLY) == []
        assert budget_store.list_budgets(db_session, "u2") == []

    def test_newest_first(self, db_session):
        first = budget_store.create_budget(db_session, "u1", "Food & Dining", 400, NOW)
        second = budget_store.create_budget(db_session, "u1", "Shopping", 300, NOW)
        assert [b.id for b in budget_store.list_budgets(db_session, "u1")] == [second.id, first.id]


class TestUpdateAndDelete:

    def test_update_fields(self, db_session):
        budget = budget_store.create_budget(db_session, "u1", "Shopping", 300, NOW)
        updated = budget_store.update_budget(db_session, "u1", budget.id, budget_amount=350, alert_threshold=0.9)
        assert updated.budget_amount == 350
        assert updated.alert_threshold == pytest.approx(0.9)
        assert updated.category == "Shopping"

    def test_update_validates(self, db_session):
        budget = budget_store.create_budget(db_session, "u1", "Shopping", 300, NOW)
        with pytest.raises(InvalidAmount):
            budget_store.update_budget(db_session, "u1", budget.id, budget_amount=0)

    def test_other_owner_cannot_see_budget(self, db_session):
        budget = budget_store.create_budget(db_session, "u1", "Shopping", 300, NOW)
        with pytest.raises(BudgetNotFound):
            budget_store.get_budget(db_session, "u2", budget.id)
        with pytest.raises(BudgetNotFound):
            budget_store.delete_budget(db_session, "u2", budget.id)

    def test_delete(self, db_session):
        budget = budget_store.create_budget(db_session, "u1", "Shopping", 300, NOW)
        budget_store.delete_budget(db_session, "u1", budget.id)
        assert db_session.query(Budget).count() == 0
        with pytest.raises(BudgetNotFound):
            budget_store.update_budget(db_session, "u1", budget.id, budget_amount=10)


class TestRecordSpent:

    def test_overwrites_cached_value(self, db_session):
        budget = budget_store.create_budget(db_session, "u1", "Shopping", 300, NOW)
        bucket = CategoryBucket(category="Shopping", total_amount=123.45, transaction_count=2, display_color="#4ECDC4")
        budget_store.record_spent(db_session, [evaluate_budget(budget, [bucket])])
        db_session.expire_all()
        assert db_session.get(Budget, budget.id).current_spent == pytest.approx(123.45)


class TestLinkedItems:

    def test_link_and_list(self, db_session):
        budget_store.link_item(db_session, "u1", "item-a", "access-sandbox-a")
        budget_store.link_item(db_session, "u2", "item-b", "access-sandbox-b")
        items = budget_store.list_items(db_session, "u1")
        assert [i.item_id for i in items] == ["item-a"]
        assert items[0].access_token == "access-sandbox-a"

    def test_relink_replaces_token(self, db_session):
        budget_store.link_item(db_session, "u1", "item-a", "old")
        budget_store.link_item(db_session, "u1", "item-a", "new")
        items = budget_store.list_items(db_session, "u1")
        assert len(items) == 1
        assert items[0].access_token == "new"
