# engine/care.py
"""
Helpers for species care profiles returned by external plant lookups.

A profile is a plain dict. Care bounds use the plant-book key names
(min_temp, max_env_humid, ...); the watering cadence comes from a
`watering_general_benchmark` entry shaped like {'value': '7-10', 'unit': 'days'}.
"""

import math
import re
from typing import Optional

from engine.comfort import DEFAULT_CARE_TARGETS
from engine.models import CareTargets

_NUMBER = re.compile(r'\d+(?:\.\d+)?')


def parse_benchmark_days(value, unit=None) -> Optional[float]:
    """
    Turn a watering benchmark into days.

    Accepts a number, a single number in a string ("7"), or a range ("7-10",
    averaged). A unit mentioning weeks multiplies by 7. Returns None when
    nothing numeric is found.
    """
    days = None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if math.isfinite(value):
            days = float(value)
    elif isinstance(value, str):
        nums = [float(n) for n in _NUMBER.findall(value)]
        if len(nums) == 1:
            days = nums[0]
        elif len(nums) >= 2:
            days = (nums[0] + nums[1]) / 2.0
    if days is None:
        return None
    if 'week' in str(unit or '').lower():
        return days * 7.0
    return days


def care_targets_from_profile(profile) -> CareTargets:
    """Read care bounds out of a profile dict, defaulting anything missing."""
    profile = profile or {}
    values = {}
    for name in DEFAULT_CARE_TARGETS.__dataclass_fields__:
        raw = profile.get(name)
        try:
            values[name] = float(raw) if raw is not None else getattr(DEFAULT_CARE_TARGETS, name)
        except (TypeError, ValueError):
            values[name] = getattr(DEFAULT_CARE_TARGETS, name)
    return CareTargets(**values)


def benchmark_from_profile(profile) -> Optional[float]:
    bench = (profile or {}).get('watering_general_benchmark') or {}
    if not isinstance(bench, dict):
        return parse_benchmark_days(bench)
    return parse_benchmark_days(bench.get('value'), bench.get('unit'))
