# tests/test_care.py
import pytest

from engine.care import benchmark_from_profile, care_targets_from_profile, parse_benchmark_days
from engine.comfort import DEFAULT_CARE_TARGETS


@pytest.mark.parametrize('value, unit, expected', [
    (7, None, 7.0),
    (2.5, 'days', 2.5),
    ('7', None, 7.0),
    ('5.5', 'days', 5.5),
    ('7-10', 'days', 8.5),
    ('5 - 7', None, 6.0),
    ('1', 'week', 7.0),
    ('1-2', 'Weeks', 10.5),
])
def test_parse_benchmark_days(value, unit, expected):
    assert parse_benchmark_days(value, unit) == pytest.approx(expected)


@pytest.mark.parametrize('value', [None, '', 'often', True, float('nan')])
def test_parse_benchmark_days_nothing_numeric(value):
    assert parse_benchmark_days(value) is None


def test_care_targets_from_profile():
    care = care_targets_from_profile({'min_temp': '16', 'max_temp': 29, 'min_soil_moist': None,
                                      'max_env_humid': 'n/a'})
    assert care.min_temp == 16.0
    assert care.max_temp == 29.0
    assert care.min_soil_moist == DEFAULT_CARE_TARGETS.min_soil_moist
    assert care.max_env_humid == DEFAULT_CARE_TARGETS.max_env_humid


def test_empty_profile_gives_defaults():
    assert care_targets_from_profile(None) == DEFAULT_CARE_TARGETS
    assert benchmark_from_profile({}) is None


def test_benchmark_from_profile():
    profile = {'watering_general_benchmark': {'value': '"7-10"', 'unit': 'days'}}
    assert benchmark_from_profile(profile) == pytest.approx(8.5)
    assert benchmark_from_profile({'watering_general_benchmark': '3'}) == 3.0
