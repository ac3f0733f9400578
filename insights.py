"""Rule-based spending insights derived from a period comparison."""

from typing import List, Sequence

from models import CategoryBucket, Insight, InsightKind, Severity

TREND_THRESHOLD_PCT = 5
CATEGORY_SPIKE_PCT = 25
TOP_CATEGORY_COUNT = 3


def generate_insights(
    current: Sequence[CategoryBucket],
    previous: Sequence[CategoryBucket],
    change_amount: float,
    change_percentage: float,
) -> List[Insight]:
    """
    Build observations in a fixed order: overall trend, per-category spikes,
    then the top spending categories.

    A category only counts as a spike when it had spend in the previous
    period; a category that is new this period never triggers one.
    """
    insights = []

    # 1. Overall trend
    if abs(change_percentage) > TREND_THRESHOLD_PCT:
        if change_amount > 0:
            insights.append(
                Insight(
                    kind=InsightKind.TREND_UP,
                    severity=Severity.WARNING,
                    title="Increased Spending",
                    message=f"Your spending increased by {abs(change_percentage):.1f}% compared to last period",
                )
            )
        else:
            insights.append(
                Insight(
                    kind=InsightKind.TREND_DOWN,
                    severity=Severity.SUCCESS,
                    title="Reduced Spending",
                    message=f"Great job! You reduced spending by {abs(change_percentage):.1f}% compared to last period",
                )
            )

    # 2. Category spikes
    previous_by_cat = {b.category: b for b in previous}
    for bucket in current:
        prior = previous_by_cat.get(bucket.category)
        if prior is None or prior.total_amount == 0:
            continue
        prior_spend = abs(prior.total_amount)
        category_change = (abs(bucket.total_amount) - prior_spend) / prior_spend * 100
        if category_change > CATEGORY_SPIKE_PCT:
            insights.append(
                Insight(
                    kind=InsightKind.CATEGORY_SPIKE,
                    severity=Severity.INFO,
                    title=f"{bucket.category} Spending Up",
                    message=f"{bucket.category} spending increased by {category_change:.0f}% this period",
                )
            )

    # 3. Top categories
    spending = [b for b in current if b.total_amount != 0]
    top = sorted(spending, key=lambda b: abs(b.total_amount), reverse=True)[:TOP_CATEGORY_COUNT]
    if top:
        insights.append(
            Insight(
                kind=InsightKind.TOP_CATEGORIES,
                severity=Severity.INFO,
                title="Top Spending Categories",
                message=f"Your top spending categories are: {', '.join(b.category for b in top)}",
            )
        )

    return insights
