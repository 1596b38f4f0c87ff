# engine/wire.py
"""
Decoding of the sensor server's wire payloads into RawSample.

The server broadcasts
    {"line": "STATE;soil=650;temp=24.5;hum=58.0;mq2=180;rain=900;bio=8.52",
     "json": {"soil": 650, "temp": 24.5, ...}}
and also accepts the bare six-field object. Either half is enough.
"""

import json
import math
import time

from engine.models import RawSample

# wire key -> RawSample field
WIRE_FIELDS = {
    'soil': 'soil_moisture',
    'temp': 'temperature',
    'hum': 'humidity',
    'mq2': 'gas_level',
    'rain': 'wetness_contact',
    'bio': 'bio_signal',
}


class WireFormatError(ValueError):
    """Raised when a payload can't be turned into a RawSample."""


def _number(key, value):
    if isinstance(value, bool):
        raise WireFormatError(f"Field '{key}' is not numeric: {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise WireFormatError(f"Field '{key}' is not numeric: {value!r}") from exc


def _from_fields(fields, timestamp):
    missing = [k for k in WIRE_FIELDS if k not in fields]
    if missing:
        raise WireFormatError(f"Missing sensor fields: {missing}")
    values = {WIRE_FIELDS[k]: _number(k, fields[k]) for k in WIRE_FIELDS}
    ts = time.time() if timestamp is None else _number('ts', timestamp)
    if not math.isfinite(ts):
        raise WireFormatError(f"Timestamp must be finite, got {ts!r}")
    return RawSample(timestamp=ts, **values)


def parse_state_line(line, timestamp=None) -> RawSample:
    """Parse 'STATE;soil=..;temp=..;hum=..;mq2=..;rain=..;bio=..'."""
    if not isinstance(line, str):
        raise WireFormatError(f"State line must be a string, got {type(line).__name__}")
    parts = [p.strip() for p in line.strip().split(';') if p.strip()]
    if not parts or parts[0] != 'STATE':
        raise WireFormatError(f"Not a STATE line: {line!r}")
    fields = {}
    for part in parts[1:]:
        key, sep, value = part.partition('=')
        if not sep:
            raise WireFormatError(f"Malformed field {part!r} in {line!r}")
        fields[key.strip()] = value.strip()
    return _from_fields(fields, timestamp)


def parse_payload(payload, timestamp=None) -> RawSample:
    """
    Decode one payload (dict or JSON text).

    Preference: the 'json' member, then bare top-level fields, then 'line'.
    A numeric 'ts' member (epoch seconds) overrides the arrival timestamp.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as exc:
            raise WireFormatError(f"Payload is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise WireFormatError("Payload must be a JSON object")

    if payload.get('ts') is not None:
        timestamp = _number('ts', payload['ts'])

    if isinstance(payload.get('json'), dict):
        return _from_fields(payload['json'], timestamp)
    if all(k in payload for k in WIRE_FIELDS):
        return _from_fields(payload, timestamp)
    if isinstance(payload.get('line'), str):
        return parse_state_line(payload['line'], timestamp)
    raise WireFormatError("Payload has neither sensor fields nor a STATE line")


def _fmt(value, digits):
    if not math.isfinite(value):
        return str(value)
    if digits == 0:
        return str(int(round(value)))
    return f"{value:.{digits}f}"


def format_state_line(sample: RawSample) -> str:
    return (
        f"STATE;soil={_fmt(sample.soil_moisture, 0)}"
        f";temp={_fmt(sample.temperature, 1)}"
        f";hum={_fmt(sample.humidity, 1)}"
        f";mq2={_fmt(sample.gas_level, 0)}"
        f";rain={_fmt(sample.wetness_contact, 0)}"
        f";bio={_fmt(sample.bio_signal, 2)}"
    )


def to_payload(sample: RawSample) -> dict:
    """Inverse of parse_payload, in the server's broadcast shape."""
    return {
        'line': format_state_line(sample),
        'json': {k: getattr(sample, f) for k, f in WIRE_FIELDS.items()},
        'ts': sample.timestamp,
    }
