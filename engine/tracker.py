# engine/tracker.py
"""
Temporal tracker
----------------
The only long-lived, mutable part of the engine. One update() per sample, in
arrival order, advances:

- the watering index Wi: freshness since the last detected watering, decaying
  linearly over `benchmark_days` and never above the current moisture index
- the gas index Gi: pulled down to <= 0.2 by a *sustained* z-score anomaly over
  a rolling window of MQ-2 readings, then recovering slowly toward 1
- the multiplicative plant comfort score (PCS)
- exponential smoothing of the composite metrics, plus a hysteresis gate that
  decides when the smoothed values are worth publishing
"""

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from engine.comfort import comfort_indices, plant_comfort_score
from engine.models import CareTargets, ComfortMetrics, RawSample

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60

DEFAULTS = {
    'partial_contact_threshold': 400.0,  # raindrop ADC; <150 is fully wet
    'required_wet_streak': 3,
    'benchmark_days': 8.5,
    'min_benchmark_days': 0.1,
    'gas_window': 60,
    'z_trigger': 3.0,
    'required_spike_hits': 3,
    'max_spike_hits': 5,
    'spike_ceiling': 0.2,
    'recovery_rate': 0.01,
    'variance_floor': 1e-6,
    'alpha': 0.2,
    'delta_index': 0.03,
    'delta_soil_percent': 2.0,
}


@dataclass
class TemporalState:
    """Everything the tracker carries from one sample to the next."""
    ema: Optional[ComfortMetrics] = None        # smoothed, updated every sample
    published: Optional[ComfortMetrics] = None  # last value let through the gate
    last_watered_at: Optional[float] = None     # epoch seconds
    wet_streak: int = 0
    benchmark_days: float = DEFAULTS['benchmark_days']
    gas_window: deque = field(default_factory=lambda: deque(maxlen=DEFAULTS['gas_window']))
    high_z_hits: int = 0
    wi: float = 0.0
    gi: float = 1.0


@dataclass(frozen=True)
class TrackerUpdate:
    current: ComfortMetrics           # this sample, unsmoothed, multiplicative PCS
    published: ComfortMetrics
    changed: bool
    watering_index: float
    gas_index: float
    watering_detected: bool = False
    spike_confirmed: bool = False


def _blend(prev: ComfortMetrics, new: ComfortMetrics, alpha: float) -> ComfortMetrics:
    def ema(a, b):
        return a * (1.0 - alpha) + b * alpha
    return ComfortMetrics(
        soil_percent=ema(prev.soil_percent, new.soil_percent),
        moisture_index=ema(prev.moisture_index, new.moisture_index),
        temp_comfort_index=ema(prev.temp_comfort_index, new.temp_comfort_index),
        humidity_comfort_index=ema(prev.humidity_comfort_index, new.humidity_comfort_index),
        pcs=ema(prev.pcs, new.pcs),
    )


class TemporalTracker:
    """
    Owns a TemporalState and advances it once per sample.

    cfg: optional dict overriding any key of DEFAULTS.
    """

    def __init__(self, cfg=None, state=None):
        cfg = cfg or {}
        p = dict(DEFAULTS)
        p.update({k: v for k, v in cfg.items() if k in DEFAULTS})

        self.partial_contact_threshold = float(p['partial_contact_threshold'])
        self.required_wet_streak = int(p['required_wet_streak'])
        self.min_benchmark_days = float(p['min_benchmark_days'])
        self.z_trigger = float(p['z_trigger'])
        self.required_spike_hits = int(p['required_spike_hits'])
        self.max_spike_hits = int(p['max_spike_hits'])
        self.spike_ceiling = float(p['spike_ceiling'])
        self.recovery_rate = float(p['recovery_rate'])
        self.variance_floor = float(p['variance_floor'])
        self.alpha = float(p['alpha'])
        self.delta_index = float(p['delta_index'])
        self.delta_soil_percent = float(p['delta_soil_percent'])

        if state is None:
            state = TemporalState(
                benchmark_days=float(p['benchmark_days']),
                gas_window=deque(maxlen=int(p['gas_window'])),
            )
        self.state = state

    # Watering ------------------------------------------------------------
    def _update_watering(self, sample: RawSample) -> bool:
        """Advance the wet streak; True when a watering is recorded this sample."""
        s = self.state
        if sample.wetness_contact < self.partial_contact_threshold:
            s.wet_streak += 1
        else:
            s.wet_streak = 0

        if s.wet_streak >= self.required_wet_streak:
            s.last_watered_at = sample.timestamp
            s.wet_streak = 0
            logger.info("Watering detected at %.0f", sample.timestamp)
            return True

        if s.last_watered_at is None or not math.isfinite(s.last_watered_at):
            # nothing known yet: start the decay clock from the first sample
            s.last_watered_at = sample.timestamp
        return False

    def _watering_index(self, now: float, moisture_idx: float) -> float:
        s = self.state
        if s.last_watered_at is None or not math.isfinite(s.last_watered_at):
            return 0.0
        days = (now - s.last_watered_at) / SECONDS_PER_DAY
        bench = max(self.min_benchmark_days, s.benchmark_days)
        wi = float(np.clip(1.0 - days / bench, 0.0, 1.0))
        # soil gating: freshness can't exceed what the soil sensor supports
        return min(wi, moisture_idx)

    # Gas -----------------------------------------------------------------
    def _update_gas(self, gas_level: float) -> bool:
        """Advance Gi; True when a sustained spike was confirmed this sample."""
        s = self.state
        if not math.isfinite(gas_level):
            # unusable reading: keep it out of the statistics, count it as calm
            s.high_z_hits = max(0, s.high_z_hits - 1)
            s.gi = min(1.0, s.gi + (1.0 - s.gi) * self.recovery_rate)
            return False

        s.gas_window.append(float(gas_level))
        window = np.asarray(s.gas_window, dtype=float)
        mean = window.mean()
        var = window.var(ddof=1) if window.size > 1 else 0.0
        std = math.sqrt(max(var, self.variance_floor))
        z = (gas_level - mean) / std

        if z >= self.z_trigger:
            s.high_z_hits = min(s.high_z_hits + 1, self.max_spike_hits)
        elif s.high_z_hits > 0:
            s.high_z_hits -= 1

        if s.high_z_hits >= self.required_spike_hits:
            s.gi = min(s.gi, self.spike_ceiling)
            s.high_z_hits = 0
            logger.info("Gas spike confirmed (z=%.2f), Gi=%.2f", z, s.gi)
            return True

        s.gi = min(1.0, s.gi + (1.0 - s.gi) * self.recovery_rate)
        return False

    # Smoothing / publish gate ----------------------------------------------
    def _is_major(self, new: ComfortMetrics, old: ComfortMetrics) -> bool:
        d = self.delta_index
        return (
            abs(new.moisture_index - old.moisture_index) > d
            or abs(new.temp_comfort_index - old.temp_comfort_index) > d
            or abs(new.humidity_comfort_index - old.humidity_comfort_index) > d
            or abs(new.pcs - old.pcs) > d
            or abs(new.soil_percent - old.soil_percent) > self.delta_soil_percent
        )

    # Step ------------------------------------------------------------------
    def update(self, sample: RawSample, targets: Optional[CareTargets] = None,
               realtime: bool = False) -> TrackerUpdate:
        s = self.state
        pct, mi, ti, hi = comfort_indices(sample, targets)

        if math.isfinite(sample.timestamp):
            watered = self._update_watering(sample)
            s.wi = self._watering_index(sample.timestamp, mi)
        else:
            # no usable clock: hold Wi, still capped by the soil
            watered = False
            s.wi = min(s.wi, mi)
            logger.debug("Non-finite timestamp %r, watering index held", sample.timestamp)
        spiked = self._update_gas(sample.gas_level)

        current = ComfortMetrics(
            soil_percent=pct,
            moisture_index=mi,
            temp_comfort_index=ti,
            humidity_comfort_index=hi,
            pcs=plant_comfort_score(mi, ti, hi, s.wi, s.gi),
        )

        s.ema = current if s.ema is None else _blend(s.ema, current, self.alpha)

        changed = False
        if s.published is None or realtime or self._is_major(s.ema, s.published):
            s.published = s.ema
            changed = True

        return TrackerUpdate(
            current=current,
            published=s.published,
            changed=changed,
            watering_index=s.wi,
            gas_index=s.gi,
            watering_detected=watered,
            spike_confirmed=spiked,
        )
