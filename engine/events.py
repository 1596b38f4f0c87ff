# engine/events.py
"""
Event log and care reminder bookkeeping.

- an event is appended only when the emotion state changes; the log keeps the
  most recent `max_events` entries, oldest first
- the water reminder is recomputed on every sample regardless of transitions
"""

import itertools
import logging
from collections import deque
from typing import List, Optional

from engine.models import EmotionState, PlantEvent, Reminder, ScoreSet
from engine.states import emotion_message

logger = logging.getLogger(__name__)

REMINDER_DEFAULTS = {
    'water_below': 30,        # hydration < this creates/refreshes the reminder
    'urgent_at_or_below': 10,
    'due_in_hours': 2.0,
    # all four must hold to clear it
    'clear_hydration': 60,
    'clear_comfort': 60,
    'clear_air_quality': 50,
    'clear_bio_signal': 30,
}


class EventManager:
    def __init__(self, cfg=None, initial_state=EmotionState.OKAY):
        cfg = cfg or {}
        self.max_events = int(cfg.get('max_events', 20))
        self.reminder_cfg = dict(REMINDER_DEFAULTS)
        self.reminder_cfg.update(cfg.get('reminders', {}) or {})

        self.previous_state = initial_state
        self.reminder: Optional[Reminder] = None
        self._log = deque(maxlen=self.max_events)
        self._ids = itertools.count(1)

    @property
    def events(self) -> List[PlantEvent]:
        return list(self._log)

    def record(self, state: EmotionState, timestamp: float) -> Optional[PlantEvent]:
        """Append an event if `state` differs from the last one seen."""
        if state == self.previous_state:
            return None
        event = PlantEvent(
            id=f"event-{next(self._ids)}",
            kind='watered' if state == EmotionState.BEING_WATERED else 'warning',
            message=emotion_message(state),
            timestamp=timestamp,
            state=state,
        )
        logger.debug("State %s -> %s", self.previous_state.value, state.value)
        self._log.append(event)
        self.previous_state = state
        return event

    def update_reminder(self, scores: ScoreSet, timestamp: float) -> Optional[Reminder]:
        c = self.reminder_cfg
        if scores.hydration < c['water_below']:
            self.reminder = Reminder(
                id='reminder-water',
                kind='water',
                message='Time to water your plant!',
                due_at=timestamp + float(c['due_in_hours']) * 3600.0,
                is_urgent=scores.hydration <= c['urgent_at_or_below'],
            )
        elif (scores.hydration >= c['clear_hydration']
              and scores.comfort >= c['clear_comfort']
              and scores.air_quality >= c['clear_air_quality']
              and scores.bio_signal >= c['clear_bio_signal']):
            if self.reminder is not None:
                logger.debug("Water reminder cleared")
            self.reminder = None
        return self.reminder
