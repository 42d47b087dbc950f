"""
Conversion between MemoryValue and FalkorDB native values.

FalkorDB stores str, int, float, bool and (nested) lists. It has no temporal
types a property can round-trip through, so every temporal variant is written
as a formatted string:

    Date            2024-03-01
    Time            12:30:00[.ffffff]
    OffsetTime      12:30:00[.ffffff]+02:00
    DateTime        2024-03-01T12:30:00[.ffffff]+02:00   (RFC 3339)
    LocalDateTime   2024-03-01T12:30:00[.ffffff]
    Duration        [-]PT<seconds>[.<fraction>]S

Decoding never reconstructs a temporal variant: those values come back as
StringValue. Decoding a map or null is an error since MemoryValue has no
representation for either.
"""

from typing import Any

from ..errors import MemoryRuntimeError
from ..models.values import (
    INT64_MAX,
    INT64_MIN,
    NANOS_PER_SECOND,
    BooleanValue,
    BytesValue,
    DateTimeValue,
    DateValue,
    DurationValue,
    FloatValue,
    IntegerValue,
    ListValue,
    LocalDateTimeValue,
    MemoryValue,
    OffsetTimeValue,
    Properties,
    StringValue,
    TimeValue,
)

# ── Formatting helpers ──────────────────────────────────────────────────


def format_offset(seconds: int) -> str:
    """``3600`` → ``+01:00``; a leftover seconds part is appended as ``:SS``."""
    sign = "-" if seconds < 0 else "+"
    hours, rem = divmod(abs(seconds), 3600)
    minutes, secs = divmod(rem, 60)
    text = f"{sign}{hours:02d}:{minutes:02d}"
    if secs:
        text += f":{secs:02d}"
    return text


def format_duration(nanos: int) -> str:
    """ISO-8601 seconds form, e.g. ``PT90S`` or ``-PT1.5S``."""
    sign = "-" if nanos < 0 else ""
    secs, frac = divmod(abs(nanos), NANOS_PER_SECOND)
    if frac:
        return f"{sign}PT{secs}.{frac:09d}".rstrip("0") + "S"
    return f"{sign}PT{secs}S"


# ── Encode ──────────────────────────────────────────────────────────────


def encode(value: MemoryValue) -> Any:
    """Convert a MemoryValue into the value sent as a query parameter."""
    if isinstance(value, (StringValue, IntegerValue, FloatValue, BooleanValue)):
        return value.value
    if isinstance(value, BytesValue):
        return bytes(value.value)
    if isinstance(value, ListValue):
        return [encode(item) for item in value.value]
    if isinstance(value, DateValue):
        return value.value.isoformat()
    if isinstance(value, TimeValue):
        return value.value.isoformat()
    if isinstance(value, OffsetTimeValue):
        return value.value.time.isoformat() + format_offset(value.value.offset)
    if isinstance(value, (DateTimeValue, LocalDateTimeValue)):
        return value.value.isoformat()
    if isinstance(value, DurationValue):
        return format_duration(value.value)
    raise MemoryRuntimeError("Cannot encode value", value=value)


def encode_properties(props: Properties) -> dict[str, Any]:
    return {key: encode(value) for key, value in props.items()}


# ── Decode ──────────────────────────────────────────────────────────────


def decode(raw: Any) -> MemoryValue:
    """Convert a value read from FalkorDB into a MemoryValue.

    Raises:
        MemoryRuntimeError: for maps, nulls, out-of-range integers and any
            other value with no MemoryValue variant. List decoding fails if
            any element fails.
    """
    # bool before int: bool is an int subclass
    if isinstance(raw, bool):
        return BooleanValue(value=raw)
    if isinstance(raw, int):
        if raw < INT64_MIN or raw > INT64_MAX:
            raise MemoryRuntimeError("Integer out of 64-bit range", value=raw)
        return IntegerValue(value=raw)
    if isinstance(raw, float):
        return FloatValue(value=raw)
    if isinstance(raw, str):
        return StringValue(value=raw)
    if isinstance(raw, (bytes, bytearray)):
        return BytesValue(value=bytes(raw))
    if isinstance(raw, list):
        return ListValue(value=[decode(item) for item in raw])
    if isinstance(raw, dict):
        raise MemoryRuntimeError("Map values are not supported as properties", value=raw)
    if raw is None:
        raise MemoryRuntimeError("Null values are not supported as properties", value=raw)
    raise MemoryRuntimeError(f"Unsupported native value type: {type(raw).__name__}", value=raw)


def decode_properties(raw: dict[str, Any], skip: frozenset[str] = frozenset()) -> Properties:
    """Decode a node/edge property map, leaving out keys in ``skip``."""
    return {key: decode(value) for key, value in raw.items() if key not in skip}
