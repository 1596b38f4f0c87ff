# tests/test_pipeline.py
import logging

import pytest

from engine.models import CareTargets, EmotionState, PlantMood
from engine.pipeline import PlantEngine
from engine.storage import MemoryStore, benchmark_days_key, last_watered_key
from tests.conftest import DAY, T0, make_sample


class BrokenStore:
    def get(self, key):
        raise OSError("disk gone")

    def set(self, key, value):
        raise OSError("disk gone")


def test_nominal_sample_feels_great(engine):
    out = engine.ingest(make_sample())
    assert out.emotion_state == EmotionState.FEELS_GREAT
    assert out.is_new_event
    assert out.event.state == EmotionState.FEELS_GREAT
    assert out.reminder is None
    assert out.mood == PlantMood.THRIVING
    assert out.overall_health == 100
    assert out.comfort_metrics is not None
    assert out.timestamp == T0


def test_second_identical_sample_is_not_an_event(engine):
    engine.ingest(make_sample())
    out = engine.ingest(make_sample())
    assert not out.is_new_event
    assert out.event is None
    assert len(engine.events) == 1


def test_dry_plant_is_nearly_dead_with_urgent_reminder(engine):
    out = engine.ingest(make_sample(soil_moisture=950.0))
    assert out.scores.hydration == 0
    assert out.emotion_state == EmotionState.NEARLY_DEAD
    assert out.reminder.is_urgent
    assert out.reminder.due_at == T0 + 2 * 3600
    assert engine.reminder == out.reminder


def test_reminder_cleared_after_recovery(engine):
    engine.ingest(make_sample(soil_moisture=800.0))
    assert engine.reminder is not None
    out = engine.ingest(make_sample(timestamp=T0 + 60))
    assert out.reminder is None


def test_repeated_sample_converges():
    engine = PlantEngine()
    outs = [engine.ingest(make_sample()) for _ in range(30)]
    assert outs[-1] == outs[-2]
    assert not outs[-1].changed


def test_watering_detected_and_persisted(engine, store):
    outs = [engine.ingest(make_sample(soil_moisture=750.0, wetness_contact=300.0, timestamp=T0 + i * 60))
            for i in range(3)]
    assert all(o.emotion_state == EmotionState.BEING_WATERED for o in outs)
    assert outs[0].is_new_event and outs[0].event.kind == 'watered'
    assert engine.last_watered_at == T0 + 120
    assert float(store.get(last_watered_key())) == T0 + 120
    # Wi is gated by the (still low) moisture index
    assert outs[-1].watering_index == pytest.approx(outs[-1].comfort_metrics.moisture_index)
    assert outs[-1].watering_index < 0.2


def test_restores_persisted_watering_state():
    store = MemoryStore({
        last_watered_key(): str(T0 - 2 * DAY),
        benchmark_days_key(): '5',
    })
    engine = PlantEngine(store=store)
    assert engine.last_watered_at == T0 - 2 * DAY
    assert engine.benchmark_days == 5.0
    out = engine.ingest(make_sample())
    assert out.watering_index == pytest.approx(1 - 2 / 5)


def test_ignores_tiny_or_garbled_persisted_values():
    store = MemoryStore({
        last_watered_key(): 'yesterday',
        benchmark_days_key(): '0.05',
    })
    engine = PlantEngine(store=store)
    assert engine.last_watered_at is None
    assert engine.benchmark_days == 8.5


def test_store_failures_are_logged_not_raised(caplog):
    with caplog.at_level(logging.WARNING, logger='engine.pipeline'):
        engine = PlantEngine(store=BrokenStore())
        out = engine.ingest(make_sample())
    assert out.emotion_state == EmotionState.FEELS_GREAT
    assert engine.last_watered_at == T0
    assert any('Store' in r.getMessage() for r in caplog.records)


def test_set_benchmark_days(engine, store):
    assert engine.set_benchmark_days(6.0)
    assert engine.benchmark_days == 6.0
    assert store.get(benchmark_days_key()) == '6.0'
    assert not engine.set_benchmark_days(0.1)
    assert not engine.set_benchmark_days(None)
    assert engine.benchmark_days == 6.0


def test_apply_care_profile(engine):
    engine.ingest(make_sample())
    watered = engine.last_watered_at
    engine.apply_care_profile({
        'min_temp': 18,
        'max_temp': 28,
        'watering_general_benchmark': {'value': '1-2', 'unit': 'weeks'},
    })
    assert engine.care_targets.min_temp == 18.0
    assert engine.care_targets.max_env_humid == 85.0
    assert engine.benchmark_days == pytest.approx(10.5)
    # history survives
    assert engine.last_watered_at == watered


def test_set_care_targets_changes_indices(engine):
    a = engine.ingest(make_sample())
    engine.set_care_targets(CareTargets(min_temp=22.0, max_temp=24.0))
    b = engine.ingest(make_sample(temperature=24.0))
    assert a.comfort_metrics.temp_comfort_index > 0.5
    assert b.comfort_metrics.temp_comfort_index < a.comfort_metrics.temp_comfort_index


def test_gas_baseline_setter(engine):
    engine.set_gas_baseline(0)
    out = engine.ingest(make_sample())
    assert out.scores.air_quality == 50


def test_realtime_mode_publishes_every_sample(engine):
    engine.set_realtime_mode(True)
    engine.ingest(make_sample())
    out = engine.ingest(make_sample(soil_moisture=555.0))
    assert out.changed


def test_sessions_are_independent():
    a, b = PlantEngine(), PlantEngine()
    a.ingest(make_sample(soil_moisture=950.0))
    out = b.ingest(make_sample())
    assert out.reminder is None
    assert b.emotion == EmotionState.FEELS_GREAT
    assert a.emotion == EmotionState.NEARLY_DEAD
    assert len(a.events) == len(b.events) == 1


def test_config_overrides_reach_components():
    engine = PlantEngine({
        'species': 'Monstera',
        'gas_baseline': 100,
        'states': {'too_hot': 22.0},
        'reminders': {'water_below': 50},
        'tracker': {'benchmark_days': 3},
    })
    out = engine.ingest(make_sample())
    assert out.scores.air_quality == 40
    assert out.emotion_state == EmotionState.TOO_HOT
    assert engine.benchmark_days == 3.0


@pytest.mark.parametrize('raw', ['nan', 'inf', '-inf'])
def test_ignores_non_finite_persisted_last_watered(raw):
    engine = PlantEngine(store=MemoryStore({last_watered_key(): raw}))
    assert engine.last_watered_at is None
    out = engine.ingest(make_sample())
    assert 0.0 <= out.watering_index <= 1.0
    assert engine.last_watered_at == T0


@pytest.mark.parametrize('raw', ['nan', 'inf'])
def test_ignores_non_finite_persisted_benchmark(raw):
    engine = PlantEngine(store=MemoryStore({benchmark_days_key(): raw}))
    assert engine.benchmark_days == 8.5
    assert not engine.set_benchmark_days(float(raw))
    assert engine.benchmark_days == 8.5
