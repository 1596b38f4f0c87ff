# engine/states.py
"""
State derivation: scores + raw sample -> one EmotionState.

The guards are checked top to bottom and the first match wins. The order is
the behaviour: an actively watered plant that is also cold and breathing bad
air reports BEING_WATERED, because watering is transient and dominates what the
user sees. Reordering the guards changes observable output.
"""

from engine.models import EmotionState, PlantMood, RawSample, ScoreSet

THRESHOLDS = {
    'watering_contact': 400.0,   # raw wetness contact below this = water present
    'watering_hydration': 60,    # ...and hydration still below this
    'nearly_dead': 10,           # hydration <=
    'needs_water': 30,           # hydration <
    'too_hot': 30.0,             # °C >=
    'too_cold': 15.0,            # °C <=
    'too_humid': 80.0,           # %RH >=
    'air_bad': 40,               # air score <
    'check_connection': 20,      # bio score <
    'great_hydration': 80,
    'great_comfort': 80,
    'great_air': 70,
    'great_bio': 40,
}

MESSAGES = {
    EmotionState.NEEDS_WATER: "I'm thirsty, please water me soon.",
    EmotionState.BEING_WATERED: "Ahh, thank you for the water.",
    EmotionState.TOO_HOT: "It's too hot here.",
    EmotionState.TOO_HUMID: "Too humid, I can't breathe.",
    EmotionState.AIR_BAD: "Air quality feels off.",
    EmotionState.CHECK_CONNECTION: "Check my clips/electrodes.",
    EmotionState.NEARLY_DEAD: "I need water urgently!",
    EmotionState.TOO_COLD: "It's too cold here.",
    EmotionState.FEELS_GREAT: "I feel amazing!",
    EmotionState.OKAY: "I am doing okay.",
}


def derive_state(scores: ScoreSet, sample: RawSample, thresholds=None) -> EmotionState:
    th = dict(THRESHOLDS)
    if thresholds:
        th.update(thresholds)

    hydration = scores.hydration

    if sample.wetness_contact < th['watering_contact'] and hydration < th['watering_hydration']:
        return EmotionState.BEING_WATERED
    if hydration <= th['nearly_dead']:
        return EmotionState.NEARLY_DEAD
    if hydration < th['needs_water']:
        return EmotionState.NEEDS_WATER
    if sample.temperature >= th['too_hot']:
        return EmotionState.TOO_HOT
    if sample.temperature <= th['too_cold']:
        return EmotionState.TOO_COLD
    if sample.humidity >= th['too_humid']:
        return EmotionState.TOO_HUMID
    if scores.air_quality < th['air_bad']:
        return EmotionState.AIR_BAD
    if scores.bio_signal < th['check_connection']:
        return EmotionState.CHECK_CONNECTION
    if (hydration >= th['great_hydration']
            and scores.comfort >= th['great_comfort']
            and scores.air_quality >= th['great_air']
            and scores.bio_signal >= th['great_bio']):
        return EmotionState.FEELS_GREAT
    return EmotionState.OKAY


def derive_mood(scores: ScoreSet) -> PlantMood:
    """Legacy five-level mood from scores alone."""
    if scores.hydration < 10:
        return PlantMood.CRITICAL
    if scores.hydration < 30:
        return PlantMood.THIRSTY
    if scores.comfort < 30 or scores.air_quality < 30 or scores.bio_signal < 20:
        return PlantMood.STRESSED
    if (scores.hydration > 80 and scores.comfort > 80
            and scores.air_quality > 70 and scores.bio_signal > 40):
        return PlantMood.THRIVING
    return PlantMood.OK


def emotion_message(state: EmotionState) -> str:
    return MESSAGES.get(state, "Status update.")
