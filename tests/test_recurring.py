import copy

import pandas as pd
import pytest

from finance_insights.models import RecurringPattern, Transaction
from finance_insights.recurring import (
    RecurringSettings,
    RecurringSummary,
    amount_bucket,
    classify_frequency,
    detect_recurring,
    find_patterns,
    load_recurring_settings,
    match_keywords,
    monthly_recurring_total,
    upcoming_payments,
)

NOW = pd.Timestamp('2025-01-20')


def _build_rows(rows):
    return [
        {'id': idx, 'type': 'Wants', 'category': 'Entertainment', **row}
        for idx, row in enumerate(rows, start=1)
    ]


def _netflix_rows():
    return _build_rows([
        {'name': 'Netflix', 'amount': -649, 'date': '2024-10-24'},
        {'name': 'Netflix', 'amount': -649, 'date': '2024-11-24'},
        {'name': 'Netflix', 'amount': -659, 'date': '2024-12-24'},
    ])


def _pattern(name, amount, frequency, next_expected='2025-02-01', category='Other'):
    return RecurringPattern(
        name=name,
        category=category,
        amount=amount,
        frequency=frequency,
        occurrences=2,
        last_date='2025-01-01',
        next_expected_date=next_expected,
        avg_days_between=30,
    )


def test_detects_monthly_subscription():
    summary = detect_recurring(_netflix_rows(), now=NOW)

    assert len(summary.patterns) == 1, "expected the three netflix charges to form one pattern"
    netflix = summary.patterns[0]
    assert netflix.name == 'Netflix'
    assert netflix.frequency == 'monthly'
    assert netflix.occurrences == 3
    assert netflix.amount == 652
    assert netflix.last_date == '2024-12-24'
    # last charge plus the 30.5 day mean gap
    assert netflix.next_expected_date == '2025-01-23'
    assert netflix.avg_days_between == 31


def test_netflix_summary_aggregates():
    summary = detect_recurring(_netflix_rows(), now=NOW)

    assert summary.monthly_recurring_total == 652
    assert [p.name for p in summary.upcoming_this_week] == ['Netflix']
    assert [p.name for p in summary.subscriptions] == ['Netflix']


def test_single_transaction_is_never_a_pattern():
    rows = _build_rows([{'name': 'Rent', 'amount': -25000, 'date': '2024-12-01'}])
    assert find_patterns(rows) == []


def test_income_is_not_considered_recurring():
    rows = _build_rows([
        {'name': 'Salary', 'amount': 85000, 'date': '2024-10-01', 'category': 'Income'},
        {'name': 'Salary', 'amount': 85000, 'date': '2024-11-01', 'category': 'Income'},
        {'name': 'Salary', 'amount': 85000, 'date': '2024-12-01', 'category': 'Income'},
    ])
    assert find_patterns(rows) == []


def test_gaps_outside_acceptance_band_are_discarded():
    too_close = _build_rows([
        {'name': 'Coffee', 'amount': -120, 'date': '2024-12-01'},
        {'name': 'Coffee', 'amount': -120, 'date': '2024-12-03'},
    ])
    too_far = _build_rows([
        {'name': 'Passport', 'amount': -1500, 'date': '2022-01-01'},
        {'name': 'Passport', 'amount': -1500, 'date': '2023-06-01'},
    ])
    assert find_patterns(too_close) == []
    assert find_patterns(too_far) == []


def test_small_price_changes_group_together():
    rows = _build_rows([
        {'name': 'Spotify', 'amount': -199, 'date': '2024-10-05'},
        {'name': 'Spotify ', 'amount': -209, 'date': '2024-11-05'},
        {'name': 'SPOTIFY', 'amount': -199, 'date': '2024-12-05'},
    ])
    patterns = find_patterns(rows)
    assert len(patterns) == 1
    assert patterns[0].occurrences == 3


def test_different_amount_buckets_stay_separate():
    rows = _build_rows([
        {'name': 'Cafe', 'amount': -120, 'date': '2024-10-05'},
        {'name': 'Cafe', 'amount': -180, 'date': '2024-11-05'},
    ])
    assert find_patterns(rows) == []


def test_name_and_category_come_from_most_recent_transaction():
    rows = _build_rows([
        {'name': 'Jio Fiber', 'amount': -999, 'date': '2024-12-10', 'category': 'Bills & Utilities'},
        {'name': 'jio fiber', 'amount': -999, 'date': '2024-10-10', 'category': 'Other'},
        {'name': 'JIO FIBER', 'amount': -999, 'date': '2024-11-10', 'category': 'Other'},
    ])
    pattern = find_patterns(rows)[0]
    assert pattern.name == 'Jio Fiber'
    assert pattern.category == 'Bills & Utilities'
    assert pattern.last_date == '2024-12-10'


def test_patterns_sorted_by_amount_descending():
    rows = _build_rows([
        {'name': 'Spotify', 'amount': -119, 'date': '2024-10-05'},
        {'name': 'Spotify', 'amount': -119, 'date': '2024-11-05'},
        {'name': 'House Rent', 'amount': -15000, 'date': '2024-10-01', 'category': 'Housing'},
        {'name': 'House Rent', 'amount': -15000, 'date': '2024-11-01', 'category': 'Housing'},
    ])
    names = [p.name for p in find_patterns(rows)]
    assert names == ['House Rent', 'Spotify']


def test_weekly_and_yearly_patterns():
    rows = _build_rows([
        {'name': 'Yoga Class', 'amount': -300, 'date': '2024-12-02'},
        {'name': 'Yoga Class', 'amount': -300, 'date': '2024-12-09'},
        {'name': 'Yoga Class', 'amount': -300, 'date': '2024-12-16'},
        {'name': 'Car Insurance', 'amount': -12000, 'date': '2023-03-15'},
        {'name': 'Car Insurance', 'amount': -12000, 'date': '2024-03-15'},
    ])
    by_name = {p.name: p for p in find_patterns(rows)}
    assert by_name['Yoga Class'].frequency == 'weekly'
    assert by_name['Car Insurance'].frequency == 'yearly'


def test_classify_frequency_breakpoints():
    assert classify_frequency(7) == 'weekly'
    assert classify_frequency(10) == 'weekly'
    assert classify_frequency(10.5) == 'monthly'
    assert classify_frequency(40) == 'monthly'
    assert classify_frequency(91) == 'quarterly'
    assert classify_frequency(100) == 'quarterly'
    assert classify_frequency(365) == 'yearly'


def test_amount_bucket_rounds_half_up_to_tolerance():
    assert amount_bucket(-649) == 650
    assert amount_bucket(-659) == 650
    assert amount_bucket(25) == 50
    assert amount_bucket(24.9) == 0


def test_monthly_recurring_total_normalizes_frequencies():
    patterns = [
        _pattern('Gym', 100, 'weekly'),
        _pattern('Phone', 50, 'monthly'),
        _pattern('Water', 300, 'quarterly'),
        _pattern('Domain', 1200, 'yearly'),
    ]
    assert monthly_recurring_total(patterns) == 400 + 50 + 100 + 100


def test_upcoming_payments_window():
    patterns = [
        _pattern('Due soon', 100, 'monthly', next_expected='2025-01-27'),
        _pattern('Overdue', 100, 'monthly', next_expected='2025-01-19'),
        _pattern('Later', 100, 'monthly', next_expected='2025-01-28'),
    ]
    assert [p.name for p in upcoming_payments(patterns, days=7, now=NOW)] == ['Due soon']


def test_keyword_matching_checks_name_and_category():
    patterns = [
        _pattern('State Electricity Board', 1800, 'monthly', category='Bills & Utilities'),
        _pattern('Policy Bazaar', 900, 'monthly', category='Insurance'),
        _pattern('Bookstore', 400, 'monthly', category='Shopping'),
    ]
    settings = load_recurring_settings()
    bills = match_keywords(patterns, settings.bill_keywords)
    assert [p.name for p in bills] == ['State Electricity Board', 'Policy Bazaar']


def test_pattern_may_be_both_subscription_and_bill():
    patterns = [_pattern('Airtel Postpaid', 599, 'monthly', category='Mobile')]
    settings = load_recurring_settings()
    assert match_keywords(patterns, settings.subscription_keywords) == patterns
    assert match_keywords(patterns, settings.bill_keywords) == patterns


def test_custom_keywords_are_configurable():
    rows = _build_rows([
        {'name': 'Chess Club Dues', 'amount': -500, 'date': '2024-10-01'},
        {'name': 'Chess Club Dues', 'amount': -500, 'date': '2024-11-01'},
    ])
    settings = RecurringSettings(subscription_keywords=('chess club',))
    summary = detect_recurring(rows, now=NOW, settings=settings)
    assert [p.name for p in summary.subscriptions] == ['Chess Club Dues']
    assert summary.bills == []


def test_empty_input_yields_empty_summary():
    assert detect_recurring([], now=NOW) == RecurringSummary()
    assert detect_recurring(None, now=NOW).monthly_recurring_total == 0


def test_accepts_dataclasses_and_dataframes():
    rows = _netflix_rows()
    records = [Transaction.from_dict(row) for row in rows]
    from_records = detect_recurring(records, now=NOW)
    from_frame = detect_recurring(pd.DataFrame(rows), now=NOW)
    assert from_records == from_frame
    assert from_records.patterns[0].name == 'Netflix'


def test_detection_is_idempotent_and_does_not_mutate_input():
    rows = _netflix_rows()
    original = copy.deepcopy(rows)
    first = detect_recurring(rows, now=NOW)
    second = detect_recurring(rows, now=NOW)
    assert first == second
    assert rows == original


def test_invalid_settings_are_rejected():
    with pytest.raises(ValueError):
        RecurringSettings(amount_tolerance=0)
    with pytest.raises(ValueError):
        RecurringSettings(min_avg_days=50, max_avg_days=10)
    with pytest.raises(ValueError):
        RecurringSettings(min_occurrences=1)


def test_packaged_settings_match_defaults():
    settings = load_recurring_settings()
    assert settings.amount_tolerance == 50
    assert settings.min_avg_days == 5
    assert settings.max_avg_days == 400
    assert 'netflix' in settings.subscription_keywords
    assert 'rent' in settings.bill_keywords


def test_monthly_equivalent_per_pattern():
    assert _pattern('Gym', 100, 'weekly').monthly_equivalent == 400
    assert _pattern('Water', 300, 'quarterly').monthly_equivalent == 100
    assert _pattern('Odd', 300, 'fortnightly').monthly_equivalent == 0
