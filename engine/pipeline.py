# engine/pipeline.py
"""
PlantEngine: the single ingest(sample) entry point.

Each sample flows strictly downstream:
    raw -> scores -> aggregates -> temporal indices -> state -> event/reminder

Persistence is best effort. A store that fails to read or write is logged and
ignored; the in-memory state stays authoritative for the next sample.
"""

import logging
import math
from typing import List, Optional

from engine import care
from engine.comfort import overall_health, resolve_care_targets, score_sample
from engine.events import EventManager
from engine.models import CareTargets, EmotionState, EngineOutput, PlantEvent, RawSample, Reminder
from engine.scoring import DEFAULT_GAS_BASELINE
from engine.states import derive_mood, derive_state
from engine.storage import DEFAULT_SPECIES, benchmark_days_key, last_watered_key
from engine.tracker import TemporalTracker

logger = logging.getLogger(__name__)


class PlantEngine:
    """
    Derivation pipeline for one plant session.

    All mutable state (tracker, event log, reminder, gas baseline, care
    targets) lives on the instance, so independent sessions never interfere.

    Not thread-safe. ingest() must be called from one producer at a time, in
    arrival order; callers mixing feeds (e.g. simulated + live) serialize them
    before handing samples over.

    cfg keys: species, gas_baseline, care_targets (dict), realtime, tracker
    (dict), states (dict of guard thresholds), reminders (dict), max_events.
    """

    def __init__(self, cfg=None, store=None):
        cfg = cfg or {}
        self.species = cfg.get('species') or DEFAULT_SPECIES
        self.gas_baseline = float(cfg.get('gas_baseline', DEFAULT_GAS_BASELINE))
        self.realtime = bool(cfg.get('realtime', False))
        self.state_thresholds = cfg.get('states') or None
        targets = cfg.get('care_targets')
        self.care_targets = care.care_targets_from_profile(targets) if targets else resolve_care_targets(None)

        self.store = store
        self.tracker = TemporalTracker(cfg.get('tracker'))
        self.manager = EventManager({
            'max_events': cfg.get('max_events', 20),
            'reminders': cfg.get('reminders') or {},
        })
        self._restore()

    # Persistence -----------------------------------------------------------
    def _store_get(self, key):
        if self.store is None:
            return None
        try:
            return self.store.get(key)
        except Exception as e:
            logger.warning("Store read failed for %s: %s", key, e)
            return None

    def _store_set(self, key, value):
        if self.store is None:
            return
        try:
            self.store.set(key, str(value))
        except Exception as e:
            logger.warning("Store write failed for %s: %s", key, e)

    def _restore(self):
        state = self.tracker.state
        raw_last = self._store_get(last_watered_key(self.species))
        if raw_last is not None:
            try:
                last = float(raw_last)
            except ValueError:
                last = None
            if last is not None and math.isfinite(last):
                state.last_watered_at = last
            else:
                logger.warning("Ignoring unreadable last-watered value %r", raw_last)
        raw_bench = self._store_get(benchmark_days_key(self.species))
        if raw_bench is not None:
            try:
                days = float(raw_bench)
            except ValueError:
                days = None
            if self._valid_benchmark(days):
                state.benchmark_days = days

    def _valid_benchmark(self, days):
        return days is not None and math.isfinite(days) and days > self.tracker.min_benchmark_days

    # Configuration surface ---------------------------------------------------
    def set_realtime_mode(self, enabled: bool):
        """Publish every smoothed update, bypassing the change threshold."""
        self.realtime = bool(enabled)

    def set_care_targets(self, targets: Optional[CareTargets]):
        """Swap care targets; temporal history is kept."""
        self.care_targets = resolve_care_targets(targets)

    def set_gas_baseline(self, baseline: float):
        self.gas_baseline = float(baseline)

    def set_benchmark_days(self, days: float) -> bool:
        if not self._valid_benchmark(days):
            return False
        self.tracker.state.benchmark_days = float(days)
        self._store_set(benchmark_days_key(self.species), days)
        return True

    def apply_care_profile(self, profile):
        """Apply a looked-up species profile: care bounds plus watering cadence."""
        self.set_care_targets(care.care_targets_from_profile(profile))
        days = care.benchmark_from_profile(profile)
        if days is not None and self.set_benchmark_days(days):
            logger.info("Watering benchmark set to %.1f days", days)

    # Read-only views -----------------------------------------------------------
    @property
    def events(self) -> List[PlantEvent]:
        return self.manager.events

    @property
    def reminder(self) -> Optional[Reminder]:
        return self.manager.reminder

    @property
    def emotion(self) -> EmotionState:
        return self.manager.previous_state

    @property
    def last_watered_at(self) -> Optional[float]:
        return self.tracker.state.last_watered_at

    @property
    def benchmark_days(self) -> float:
        return self.tracker.state.benchmark_days

    # Ingest ----------------------------------------------------------------------
    def ingest(self, sample: RawSample) -> EngineOutput:
        scores = score_sample(sample, self.gas_baseline)

        watered_before = self.tracker.state.last_watered_at
        update = self.tracker.update(sample, self.care_targets, realtime=self.realtime)
        if self.tracker.state.last_watered_at != watered_before:
            self._store_set(last_watered_key(self.species), self.tracker.state.last_watered_at)

        emotion = derive_state(scores, sample, self.state_thresholds)
        event = self.manager.record(emotion, sample.timestamp)
        reminder = self.manager.update_reminder(scores, sample.timestamp)

        return EngineOutput(
            scores=scores,
            comfort_metrics=update.published,
            emotion_state=emotion,
            is_new_event=event is not None,
            reminder=reminder,
            changed=update.changed,
            event=event,
            mood=derive_mood(scores),
            overall_health=overall_health(scores),
            watering_index=update.watering_index,
            gas_index=update.gas_index,
            timestamp=sample.timestamp,
        )
