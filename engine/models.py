# engine/models.py
"""
Plain data records passed between the engine stages.

RawSample -> ScoreSet -> ComfortMetrics -> EmotionState -> PlantEvent / Reminder,
with EngineOutput bundling everything the presentation side is allowed to see.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class EmotionState(str, Enum):
    """Discrete state label shown to the user (one per sample)."""
    FEELS_GREAT = 'FEELS_GREAT'
    OKAY = 'OKAY'
    NEEDS_WATER = 'NEEDS_WATER'
    BEING_WATERED = 'BEING_WATERED'
    NEARLY_DEAD = 'NEARLY_DEAD'
    TOO_HOT = 'TOO_HOT'
    TOO_COLD = 'TOO_COLD'
    TOO_HUMID = 'TOO_HUMID'
    AIR_BAD = 'AIR_BAD'
    CHECK_CONNECTION = 'CHECK_CONNECTION'


class PlantMood(str, Enum):
    """Coarse legacy mood, kept for consumers that still read it."""
    CRITICAL = 'critical'
    THIRSTY = 'thirsty'
    STRESSED = 'stressed'
    THRIVING = 'thriving'
    OK = 'ok'


@dataclass(frozen=True)
class RawSample:
    """One reading of every sensor, stamped at arrival (epoch seconds)."""
    soil_moisture: float    # ADC-like, lower = wetter
    temperature: float      # °C
    humidity: float         # % RH
    gas_level: float        # MQ-2 ADC-like, higher = worse air
    wetness_contact: float  # raindrop ADC-like, lower = wetter
    bio_signal: float       # electrode signal amplitude
    timestamp: float = 0.0


@dataclass(frozen=True)
class ScoreSet:
    """Per-sensor 0..100 scores. temperature/humidity feed the comfort blend."""
    hydration: int
    comfort: int
    air_quality: int
    bio_signal: int
    temperature: int = 100
    humidity: int = 100


@dataclass(frozen=True)
class CareTargets:
    """Species care bounds; any bound left as None falls back to the default."""
    min_temp: Optional[float] = None
    max_temp: Optional[float] = None
    min_env_humid: Optional[float] = None
    max_env_humid: Optional[float] = None
    min_soil_moist: Optional[float] = None
    max_soil_moist: Optional[float] = None


@dataclass(frozen=True)
class ComfortMetrics:
    soil_percent: float           # 0..100
    moisture_index: float         # 0..1
    temp_comfort_index: float     # 0..1
    humidity_comfort_index: float # 0..1
    pcs: float                    # 0..1, plant comfort score


@dataclass(frozen=True)
class PlantEvent:
    id: str
    kind: str       # 'watered' | 'warning'
    message: str
    timestamp: float
    state: Optional[EmotionState] = None


@dataclass(frozen=True)
class Reminder:
    id: str
    kind: str       # only 'water' is produced
    message: str
    due_at: float
    is_urgent: bool = False


@dataclass(frozen=True)
class EngineOutput:
    """Everything one ingest() call exposes downstream."""
    scores: ScoreSet
    comfort_metrics: Optional[ComfortMetrics]
    emotion_state: EmotionState
    is_new_event: bool
    reminder: Optional[Reminder]
    changed: bool = False
    event: Optional[PlantEvent] = None
    mood: PlantMood = PlantMood.OK
    overall_health: int = 0
    watering_index: float = 0.0
    gas_index: float = 1.0
    timestamp: float = 0.0
