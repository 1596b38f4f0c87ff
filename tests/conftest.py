# tests/conftest.py
import pytest

from engine.models import RawSample
from engine.pipeline import PlantEngine
from engine.storage import MemoryStore

T0 = 1_700_000_000.0
DAY = 24 * 60 * 60


def make_sample(**overrides):
    """Nominal healthy reading; override any RawSample field."""
    values = dict(
        soil_moisture=550.0,
        temperature=23.0,
        humidity=60.0,
        gas_level=200.0,
        wetness_contact=900.0,
        bio_signal=8.0,
        timestamp=T0,
    )
    values.update(overrides)
    return RawSample(**values)


@pytest.fixture
def sample():
    return make_sample


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def engine(store):
    return PlantEngine(store=store)
