# tests/test_wire.py
import json

import pytest

from engine.wire import WireFormatError, format_state_line, parse_payload, parse_state_line, to_payload
from tests.conftest import T0, make_sample

LINE = "STATE;soil=650;temp=24.5;hum=58.0;mq2=180;rain=900;bio=8.52"
FIELDS = {'soil': 650, 'temp': 24.5, 'hum': 58.0, 'mq2': 180, 'rain': 900, 'bio': 8.52}


def test_parse_state_line():
    s = parse_state_line(LINE, timestamp=T0)
    assert s.soil_moisture == 650.0
    assert s.temperature == 24.5
    assert s.humidity == 58.0
    assert s.gas_level == 180.0
    assert s.wetness_contact == 900.0
    assert s.bio_signal == 8.52
    assert s.timestamp == T0


def test_parse_state_line_without_timestamp_uses_now():
    s = parse_state_line(LINE)
    assert s.timestamp > T0


@pytest.mark.parametrize('bad', [
    "soil=650;temp=24.5",
    "STATE;soil=650;temp=24.5;hum=58;mq2=180;rain=900",
    "STATE;soil=wet;temp=24.5;hum=58;mq2=180;rain=900;bio=8",
    "STATE;soil650;temp=24.5;hum=58;mq2=180;rain=900;bio=8",
])
def test_parse_state_line_rejects(bad):
    with pytest.raises(WireFormatError):
        parse_state_line(bad)


def test_parse_payload_prefers_json_member():
    payload = {'line': "STATE;soil=1;temp=1;hum=1;mq2=1;rain=1;bio=1", 'json': FIELDS}
    s = parse_payload(payload, timestamp=T0)
    assert s.soil_moisture == 650.0


def test_parse_payload_bare_fields_and_text():
    assert parse_payload(FIELDS, timestamp=T0).bio_signal == 8.52
    assert parse_payload(json.dumps(FIELDS), timestamp=T0).temperature == 24.5
    assert parse_payload(json.dumps(FIELDS).encode(), timestamp=T0).humidity == 58.0


def test_parse_payload_line_fallback():
    s = parse_payload({'line': LINE}, timestamp=T0)
    assert s.gas_level == 180.0


def test_parse_payload_ts_overrides_arrival_time():
    s = parse_payload(dict(FIELDS, ts=1234.0), timestamp=T0)
    assert s.timestamp == 1234.0


@pytest.mark.parametrize('bad', [
    "not json",
    "[1, 2, 3]",
    {'json': {'soil': 1}},
    {'line': 42},
    dict(FIELDS, temp=True),
    dict(FIELDS, ts='later'),
])
def test_parse_payload_rejects(bad):
    with pytest.raises(WireFormatError):
        parse_payload(bad, timestamp=T0)


def test_wire_format_error_is_a_value_error():
    assert issubclass(WireFormatError, ValueError)


def test_format_state_line_precision():
    s = make_sample(soil_moisture=650.2, temperature=24.46, humidity=58.0,
                    gas_level=180.0, wetness_contact=900.0, bio_signal=8.523)
    assert format_state_line(s) == LINE


def test_to_payload_decodes_back():
    s = make_sample()
    payload = to_payload(s)
    assert payload['line'].startswith('STATE;')
    assert parse_payload(payload) == s


@pytest.mark.parametrize('ts', [float('nan'), float('inf'), '-Infinity'])
def test_parse_payload_rejects_non_finite_ts(ts):
    with pytest.raises(WireFormatError):
        parse_payload(dict(FIELDS, ts=ts), timestamp=T0)


def test_parse_payload_rejects_nan_ts_in_json_text():
    text = json.dumps(dict(FIELDS, ts=float('nan')))
    assert 'NaN' in text
    with pytest.raises(WireFormatError):
        parse_payload(text)
