# engine/comfort.py
"""
Comfort aggregator
------------------
Combines per-sensor scores into composite scores (comfort, overall health) and
computes the 0..1 comfort indices measured against the species care targets.

The indices feed the multiplicative plant comfort score (PCS); the
additive overall-health blend is the legacy composite and is kept alongside.
"""

from dataclasses import replace
from typing import Optional, Tuple

import numpy as np

from engine.models import CareTargets, ComfortMetrics, RawSample, ScoreSet
from engine import scoring

DEFAULT_CARE_TARGETS = CareTargets(
    min_temp=10.0,
    max_temp=32.0,
    min_env_humid=30.0,
    max_env_humid=85.0,
    min_soil_moist=15.0,
    max_soil_moist=60.0,
)

# soil ADC calibration: reading when bone dry / fully wet
SOIL_CAL_DRY = 850.0
SOIL_CAL_WET = 400.0

# overall health weights: soil is the most survival-critical signal
HEALTH_WEIGHTS = {
    'hydration': 0.4,
    'temperature': 0.3,
    'humidity': 0.2,
    'air_quality': 0.1,
}


def comfort_score(temp_score: int, hum_score: int) -> int:
    """Mean of the temperature and humidity scores."""
    return scoring.round_half_up((temp_score + hum_score) / 2.0)


def score_sample(sample: RawSample, gas_baseline: float = scoring.DEFAULT_GAS_BASELINE) -> ScoreSet:
    """Score every channel of one sample and fold in the comfort blend."""
    t = scoring.temperature_score(sample.temperature)
    h = scoring.humidity_score(sample.humidity)
    return ScoreSet(
        hydration=scoring.hydration_score(sample.soil_moisture, sample.wetness_contact),
        comfort=comfort_score(t, h),
        air_quality=scoring.air_quality_score(sample.gas_level, gas_baseline),
        bio_signal=scoring.bio_signal_score(sample.bio_signal),
        temperature=t,
        humidity=h,
    )


def overall_health(scores: ScoreSet) -> int:
    """Fixed weighted blend: hydration 40%, temperature 30%, humidity 20%, air 10%."""
    w = HEALTH_WEIGHTS
    total = (
        w['hydration'] * scores.hydration
        + w['temperature'] * scores.temperature
        + w['humidity'] * scores.humidity
        + w['air_quality'] * scores.air_quality
    )
    return int(np.clip(scoring.round_half_up(total), 0, 100))


def resolve_care_targets(targets: Optional[CareTargets]) -> CareTargets:
    """Fill every missing bound from the defaults."""
    if targets is None:
        return DEFAULT_CARE_TARGETS
    filled = {}
    for name in DEFAULT_CARE_TARGETS.__dataclass_fields__:
        value = getattr(targets, name)
        filled[name] = getattr(DEFAULT_CARE_TARGETS, name) if value is None else float(value)
    return replace(DEFAULT_CARE_TARGETS, **filled)


def soil_percent(soil_adc: float) -> float:
    """Soil ADC to 0..100 % using the dry/wet calibration points."""
    if np.isnan(soil_adc):
        return 0.0
    pct = (soil_adc - SOIL_CAL_DRY) / (SOIL_CAL_WET - SOIL_CAL_DRY) * 100.0
    return float(np.clip(pct, 0.0, 100.0))


def _midpoint_index(value: float, lo: float, hi: float) -> float:
    """1 at the midpoint of [lo, hi], falling linearly to 0 at either bound."""
    if np.isnan(value):
        return 0.0
    mid = (lo + hi) / 2.0
    half = (hi - lo) / 2.0 or 1.0
    return float(np.clip(1.0 - abs(value - mid) / abs(half), 0.0, 1.0))


def moisture_index(pct: float, targets: CareTargets) -> float:
    lo, hi = targets.min_soil_moist, targets.max_soil_moist
    if hi == lo:
        return 1.0 if pct >= lo else 0.0
    return float(np.clip((pct - lo) / (hi - lo), 0.0, 1.0))


def comfort_indices(sample: RawSample, targets: Optional[CareTargets] = None) -> Tuple[float, float, float, float]:
    """(soil_percent, moisture_index, temp_comfort_index, humidity_comfort_index)"""
    care = resolve_care_targets(targets)
    pct = soil_percent(sample.soil_moisture)
    return (
        pct,
        moisture_index(pct, care),
        _midpoint_index(sample.temperature, care.min_temp, care.max_temp),
        _midpoint_index(sample.humidity, care.min_env_humid, care.max_env_humid),
    )


def plant_comfort_score(moisture_idx, temp_idx, hum_idx, wi, gi):
    """
    PCS = base * waterFactor * gasFactor, clamped to 0..1.

    Multiplicative so a deficiency in watering or air quality discounts an
    otherwise good base instead of being averaged away.
    """
    base = 0.5 * moisture_idx + 0.25 * temp_idx + 0.25 * hum_idx
    water_factor = 0.90 + 0.10 * min(wi, moisture_idx)
    gas_factor = 0.70 + 0.30 * gi
    return float(np.clip(base * water_factor * gas_factor, 0.0, 1.0))


def instant_metrics(sample: RawSample, targets: Optional[CareTargets] = None) -> ComfortMetrics:
    """
    Unsmoothed metrics for a single sample, with no watering/gas history.

    Freshness is taken as what the soil supports (Wi = moisture index) and the
    air as calm (Gi = 1).
    """
    pct, mi, ti, hi = comfort_indices(sample, targets)
    return ComfortMetrics(
        soil_percent=pct,
        moisture_index=mi,
        temp_comfort_index=ti,
        humidity_comfort_index=hi,
        pcs=plant_comfort_score(mi, ti, hi, wi=mi, gi=1.0),
    )
