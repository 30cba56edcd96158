"""Rule-based insights computed from a financial snapshot.

These run locally with no external service, so a dashboard always has
something to say even when AI-generated advice is unavailable.
"""

from __future__ import annotations

from typing import List

from .dates import round_half_up
from .models import FinancialSnapshot

TARGET_SAVINGS_RATE = 20
EXCELLENT_SAVINGS_RATE = 30
WEEKEND_DAYS = {'Sat', 'Sun'}


def local_insights(snapshot: FinancialSnapshot) -> List[str]:
    insights: List[str] = []
    totals = snapshot.totals
    rate = totals.savings_rate

    if rate >= EXCELLENT_SAVINGS_RATE:
        insights.append(
            f"Excellent! Your {rate}% savings rate is above the recommended {TARGET_SAVINGS_RATE}%. Keep it up!"
        )
    elif rate >= TARGET_SAVINGS_RATE:
        insights.append(f"Good job! Your {rate}% savings rate meets the recommended target.")
    elif rate > 0:
        insights.append(
            f"Your savings rate is {rate}%. Try to reach {TARGET_SAVINGS_RATE}% by cutting discretionary spending."
        )
    else:
        insights.append("You're spending more than you earn. Review your expenses to find areas to cut.")

    if snapshot.highest_category and totals.expenses > 0:
        share = round_half_up(snapshot.highest_category.amount / totals.expenses * 100)
        insights.append(
            f"{snapshot.highest_category.category} is your biggest expense ({share}% of total). "
            "Is this aligned with your priorities?"
        )

    if snapshot.top_day and snapshot.top_day.day in WEEKEND_DAYS:
        insights.append("You spend most on weekends. Consider planning weekend activities that cost less.")

    if totals.income > 0:
        ratio = totals.expenses / totals.income
        if ratio > 0.9:
            insights.append(
                f"You're using {round_half_up(ratio * 100)}% of income on expenses. Build an emergency buffer."
            )
        elif ratio > 0.7:
            insights.append(
                f"{round_half_up(ratio * 100)}% of income goes to expenses. Good, but there's room to save more."
            )

    return insights
