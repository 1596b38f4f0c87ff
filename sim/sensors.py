# sim/sensors.py
"""
SensorModel
-----------
Simulates the plant's sensor board with configurable noise, drift, and occasional spikes.

Stands in for the hardware feed during demos and tests: `read` returns a
RawSample around a base state that scenarios can move over time.
"""

import random

from engine.models import RawSample

ADC_MAX = 1023.0

# nominal room, freshly watered Birkin
DEFAULT_STATE = {
    'soil': 550.0,
    'temp': 23.0,
    'hum': 60.0,
    'mq2': 200.0,
    'rain': 900.0,
    'bio': 8.0,
}


def _nominal(model, step):
    pass


def _drying(model, step):
    # soil climbs toward bone dry over ~100 steps
    model.state['soil'] = min(950.0, 550.0 + 4.0 * step)


def _watering(model, step):
    # dry plant, water lands on the surface from step 5
    model.state['soil'] = 780.0 if step < 10 else max(500.0, 780.0 - 20.0 * (step - 10))
    model.state['rain'] = 900.0 if step < 5 else 250.0


def _heatwave(model, step):
    model.state['temp'] = min(34.0, 23.0 + 0.2 * step)
    model.state['hum'] = max(35.0, 60.0 - 0.3 * step)


def _gas_spike(model, step):
    # clean air for one window, then a sustained burst
    model.state['mq2'] = 600.0 if 70 <= step < 76 else 200.0


SCENARIOS = {
    'nominal': _nominal,
    'drying': _drying,
    'watering': _watering,
    'heatwave': _heatwave,
    'gas_spike': _gas_spike,
}


class SensorModel:
    def __init__(self, cfg=None, seed=None):
        cfg = cfg or {}
        # noise standard deviations
        self.sigma_soil = cfg.get('sigma_soil', 4.0)
        self.sigma_temp = cfg.get('sigma_temp', 0.2)
        self.sigma_hum = cfg.get('sigma_hum', 0.5)
        self.sigma_mq2 = cfg.get('sigma_mq2', 3.0)
        self.sigma_rain = cfg.get('sigma_rain', 5.0)
        self.sigma_bio = cfg.get('sigma_bio', 0.5)
        # sensor drift terms, added per read
        self.drift_soil = cfg.get('drift_soil', 0.0)
        self.drift_temp = cfg.get('drift_temp', 0.0)
        self.drift_mq2 = cfg.get('drift_mq2', 0.0)
        # spike probability
        self.spike_prob = cfg.get('spike_prob', 0.001)

        self.state = dict(DEFAULT_STATE)
        self.state.update(cfg.get('initial_state', {}) or {})
        self._drift_acc = {'soil': 0.0, 'temp': 0.0, 'mq2': 0.0}
        self.rng = random.Random(cfg.get('seed', seed))

    def set_state(self, **fields):
        """Override base values, e.g. set_state(soil=900, rain=200)."""
        for k, v in fields.items():
            if k not in self.state:
                raise KeyError(f"Unknown sensor channel: {k}")
            self.state[k] = float(v)

    def apply_scenario(self, name, step):
        try:
            SCENARIOS[name](self, step)
        except KeyError:
            raise ValueError(f"Unknown scenario '{name}'. Choose from {sorted(SCENARIOS)}") from None

    def _maybe_spike(self, base, sigma):
        if self.rng.random() < self.spike_prob:
            return base + self.rng.gauss(0, 4 * sigma)
        return base

    def _channel(self, name, sigma, drift=0.0):
        self._drift_acc[name] = self._drift_acc.get(name, 0.0) + drift
        value = self.state[name] + self.rng.gauss(0, sigma) + self._drift_acc[name]
        return self._maybe_spike(value, sigma)

    def read(self, timestamp=0.0):
        soil = self._channel('soil', self.sigma_soil, self.drift_soil)
        temp = self._channel('temp', self.sigma_temp, self.drift_temp)
        hum = self._channel('hum', self.sigma_hum)
        mq2 = self._channel('mq2', self.sigma_mq2, self.drift_mq2)
        rain = self._channel('rain', self.sigma_rain)
        bio = self._channel('bio', self.sigma_bio)

        # clip sensible ranges
        return RawSample(
            soil_moisture=float(max(0.0, min(ADC_MAX, soil))),
            temperature=float(temp),
            humidity=float(max(0.0, min(100.0, hum))),
            gas_level=float(max(0.0, min(ADC_MAX, mq2))),
            wetness_contact=float(max(0.0, min(ADC_MAX, rain))),
            bio_signal=float(max(0.0, bio)),
            timestamp=float(timestamp),
        )
