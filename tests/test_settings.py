import json
import logging

import pytest

from finance_insights import config
from finance_insights.recurring import load_recurring_settings
from finance_insights.settings import get_budget_config, get_config_value, get_recurring_config, load_config


def test_packaged_configs_load():
    assert get_recurring_config()['detection']['amount_tolerance'] == 50
    assert get_budget_config()['alerts'] == {'warning': 80, 'critical': 90, 'exceeded': 100}


def test_get_config_value_walks_nested_keys():
    assert get_config_value('recurring', 'frequency_breakpoints', 'monthly') == 40
    assert get_config_value('recurring', 'missing', 'key', default='fallback') == 'fallback'
    assert get_config_value('does_not_exist', 'anything', default=7) == 7


def test_load_config_missing_file_raises():
    with pytest.raises(FileNotFoundError):
        load_config('does_not_exist')


def test_settings_dir_can_be_overridden(tmp_path, monkeypatch):
    (tmp_path / 'recurring.json').write_text(
        json.dumps({
            'detection': {'amount_tolerance': 10, 'max_avg_days': 60},
            'keywords': {'subscriptions': ['club'], 'bills': []},
        }),
        encoding='utf-8',
    )
    monkeypatch.setenv('FININSIGHTS_SETTINGS_DIR', str(tmp_path))

    settings = load_recurring_settings()
    assert settings.amount_tolerance == 10
    assert settings.max_avg_days == 60
    assert settings.min_avg_days == 5
    assert settings.subscription_keywords == ('club',)
    assert settings.months_per_cycle['quarterly'] == 3


def test_invalid_json_propagates(tmp_path, monkeypatch):
    (tmp_path / 'budgets.json').write_text('{not json', encoding='utf-8')
    monkeypatch.setenv('FININSIGHTS_SETTINGS_DIR', str(tmp_path))
    with pytest.raises(json.JSONDecodeError):
        load_config('budgets')


@pytest.mark.parametrize('raw,expected', [(None, 20), ('5', 5), ('zero', 20), ('-3', 20)])
def test_recent_limit(monkeypatch, raw, expected):
    if raw is None:
        monkeypatch.delenv('FININSIGHTS_RECENT_LIMIT', raising=False)
    else:
        monkeypatch.setenv('FININSIGHTS_RECENT_LIMIT', raw)
    assert config.get_recent_limit() == expected


def test_configure_logging_accepts_level_names(monkeypatch):
    calls = {}
    monkeypatch.setattr(logging, 'basicConfig', lambda **kwargs: calls.update(kwargs))

    config.configure_logging('debug')
    assert calls['level'] == logging.DEBUG

    config.configure_logging('nonsense')
    assert calls['level'] == logging.WARNING
