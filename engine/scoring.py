# engine/scoring.py
"""
Score normalizer
----------------
Maps one raw sensor value to an integer score in 0..100.

Every sensor is described by a ScoreCurve: breakpoints walking outward from a
flat deadzone (score 100) through an ideal band, an acceptable band and a hazard
band. Scores are linear between breakpoints and flat past the outermost ones, so
each curve is continuous and never increases as the reading moves away from the
deadzone.

Deadzones span tens of ADC units or several °C, so sensor
noise and watering-timing jitter do not move the score.
"""

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

SCORE_CURVES_VERSION = 'birkin-v3'

# wetness-contact reading below this means water on the surface right now
WETNESS_CONTACT_THRESHOLD = 400.0
HYDRATION_CUSHION = 15.0
HYDRATION_CUSHION_CAP = 60.0

DEFAULT_GAS_BASELINE = 200.0
NO_BASELINE_AIR_SCORE = 50


@dataclass(frozen=True)
class ScoreCurve:
    """Piecewise-linear raw -> score table. xp must be increasing."""
    name: str
    xp: Tuple[float, ...]
    fp: Tuple[float, ...]

    def __post_init__(self):
        if len(self.xp) != len(self.fp) or len(self.xp) < 2:
            raise ValueError(f"{self.name}: breakpoints and scores must pair up")
        if any(b <= a for a, b in zip(self.xp, self.xp[1:])):
            raise ValueError(f"{self.name}: breakpoints must be strictly increasing")

    @property
    def deadzone(self) -> Tuple[float, float]:
        """(low, high) raw range that scores exactly 100."""
        full = [x for x, f in zip(self.xp, self.fp) if f >= 100]
        return (min(full), max(full))

    def raw(self, value: float) -> float:
        """Un-rounded score; non-finite input is clamped (inf) or scored 0 (NaN)."""
        if math.isnan(value):
            return 0.0
        # np.interp holds the end values outside [xp[0], xp[-1]]
        return float(np.interp(value, self.xp, self.fp))

    def __call__(self, value: float) -> int:
        return round_half_up(self.raw(value))


# Soil sensor: higher ADC = drier. Deadzone 480-620.
SOIL_CURVE = ScoreCurve(
    'soil',
    xp=(250, 350, 450, 480, 620, 700, 850),
    fp=(0, 20, 60, 100, 100, 60, 0),
)

# Deadzone 21-25 °C, ideal 20-26, acceptable 18-29.
TEMPERATURE_CURVE = ScoreCurve(
    'temperature',
    xp=(10, 18, 20, 21, 25, 26, 29, 35),
    fp=(0, 40, 70, 100, 100, 70, 40, 0),
)

# Deadzone 55-68 %RH, ideal 50-70, acceptable 40-80.
HUMIDITY_CURVE = ScoreCurve(
    'humidity',
    xp=(20, 40, 50, 55, 68, 70, 80, 90),
    fp=(0, 40, 70, 100, 100, 70, 40, 0),
)

# Gas is scored on reading / baseline; clean air sits at or under 1.15x.
GAS_RATIO_CURVE = ScoreCurve(
    'gas_ratio',
    xp=(0.0, 1.15, 1.5, 2.0, 4.0, 6.0),
    fp=(100, 100, 70, 40, 20, 0),
)

# Bio amplitude: <2 flat / disconnected electrodes, >60 interference.
BIO_CURVE = ScoreCurve(
    'bio',
    xp=(0, 2, 3, 4, 22, 35, 60, 140),
    fp=(0, 20, 60, 100, 100, 75, 40, 0),
)


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def hydration_score(soil: float, wetness_contact: float) -> int:
    """
    Soil score, cushioned while the surface is visibly wet.

    Right after watering the soil probe lags behind the surface contact sensor;
    a low score is lifted by a capped boost so a just-watered plant does not
    read as failing.
    """
    score = SOIL_CURVE.raw(soil)
    if wetness_contact < WETNESS_CONTACT_THRESHOLD and score < HYDRATION_CUSHION_CAP:
        score = min(HYDRATION_CUSHION_CAP, score + HYDRATION_CUSHION)
    return max(0, min(100, round_half_up(score)))


def temperature_score(temp: float) -> int:
    return TEMPERATURE_CURVE(temp)


def humidity_score(hum: float) -> int:
    return HUMIDITY_CURVE(hum)


def air_quality_score(gas_level: float, baseline: float = DEFAULT_GAS_BASELINE) -> int:
    """MQ-2 score relative to a calibrated clean-air baseline."""
    if not baseline > 0:
        return NO_BASELINE_AIR_SCORE
    if math.isnan(gas_level):
        return 0
    return GAS_RATIO_CURVE(max(0.0, gas_level) / baseline)


def bio_signal_score(bio: float) -> int:
    return BIO_CURVE(bio)


def curves() -> Sequence[ScoreCurve]:
    return (SOIL_CURVE, TEMPERATURE_CURVE, HUMIDITY_CURVE, GAS_RATIO_CURVE, BIO_CURVE)
