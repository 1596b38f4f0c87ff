# tests/test_storage.py
import pytest

from engine.storage import (
    DEFAULT_SPECIES,
    JsonFileStore,
    MemoryStore,
    StoreError,
    benchmark_days_key,
    last_watered_key,
)


def test_keys_use_normalized_species():
    assert last_watered_key() == 'watering:last:philodendron birkin'
    assert benchmark_days_key('  Philodendron   BIRKIN ') == 'watering:benchDays:philodendron birkin'
    assert last_watered_key(DEFAULT_SPECIES) == last_watered_key(' philodendron birkin')


def test_memory_store_stringifies():
    s = MemoryStore()
    assert s.get('x') is None
    s.set('x', 1.5)
    assert s.get('x') == '1.5'


def test_json_store_roundtrip(tmp_path):
    path = tmp_path / 'nested' / 'store.json'
    s = JsonFileStore(path)
    assert s.get('a') is None
    s.set('a', 1)
    s.set('b', 'two')
    again = JsonFileStore(path)
    assert again.get('a') == '1'
    assert again.get('b') == 'two'
    assert not (tmp_path / 'nested' / 'store.json.tmp').exists()


def test_json_store_corrupt_file(tmp_path):
    path = tmp_path / 'store.json'
    path.write_text('{not json')
    with pytest.raises(StoreError):
        JsonFileStore(path).get('a')
    path.write_text('[1, 2]')
    with pytest.raises(StoreError):
        JsonFileStore(path).get('a')
