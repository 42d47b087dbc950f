"""Typed property values.

``MemoryValue`` is a closed, explicitly tagged union: every variant carries a
``type`` discriminator so the structured-text boundary never has to guess a
variant from the JSON shape (``"5"`` stays a string, ``5`` an integer).

    {"type": "integer", "value": 5}
    {"type": "list", "value": [{"type": "string", "value": "a"}]}
    {"type": "offset_time", "value": {"time": "12:00:00", "offset": 3600}}

There is no map variant: nested key-value structures are not
representable as property values.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictBytes,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)

WallTime = time

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

NANOS_PER_MICRO = 1_000
NANOS_PER_SECOND = 1_000_000_000


class _Value(BaseModel):
    """Common config: immutable, hashable where the payload is."""

    model_config = ConfigDict(frozen=True, ser_json_bytes="base64", val_json_bytes="base64")


class StringValue(_Value):
    type: Literal["string"] = "string"
    value: StrictStr


class IntegerValue(_Value):
    type: Literal["integer"] = "integer"
    value: Annotated[StrictInt, Field(ge=INT64_MIN, le=INT64_MAX)]


class FloatValue(_Value):
    type: Literal["float"] = "float"
    value: StrictFloat

    @field_validator("value", mode="before")
    @classmethod
    def widen_int(cls, v: Any) -> Any:
        """Accept ints (but never bools) as floats."""
        if isinstance(v, int) and not isinstance(v, bool):
            return float(v)
        return v


class BooleanValue(_Value):
    type: Literal["boolean"] = "boolean"
    value: StrictBool


class BytesValue(_Value):
    type: Literal["bytes"] = "bytes"
    value: StrictBytes


class ListValue(_Value):
    type: Literal["list"] = "list"
    value: list[MemoryValue] = Field(default_factory=list)


class DateValue(_Value):
    type: Literal["date"] = "date"
    value: date

    @field_validator("value", mode="before")
    @classmethod
    def reject_datetime(cls, v: Any) -> Any:
        # datetime is a subclass of date; keep the variants apart
        if isinstance(v, datetime):
            raise ValueError("use DateTimeValue or LocalDateTimeValue for datetimes")
        return v


class TimeValue(_Value):
    """Wall-clock time without offset."""

    type: Literal["time"] = "time"
    value: time

    @field_validator("value")
    @classmethod
    def reject_offset(cls, v: time) -> time:
        if v.tzinfo is not None:
            raise ValueError("time carries an offset; use OffsetTimeValue")
        return v


class OffsetTime(BaseModel):
    """Time of day plus a fixed UTC offset in seconds east of UTC."""

    model_config = ConfigDict(frozen=True)

    time: WallTime
    offset: Annotated[int, Field(gt=-86400, lt=86400)] = 0


class OffsetTimeValue(_Value):
    type: Literal["offset_time"] = "offset_time"
    value: OffsetTime


class DateTimeValue(_Value):
    """Timezone-aware instant."""

    type: Literal["datetime"] = "datetime"
    value: datetime

    @field_validator("value")
    @classmethod
    def require_aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None or v.utcoffset() is None:
            raise ValueError("datetime must be timezone-aware; use LocalDateTimeValue")
        return v


class LocalDateTimeValue(_Value):
    type: Literal["local_datetime"] = "local_datetime"
    value: datetime

    @field_validator("value")
    @classmethod
    def require_naive(cls, v: datetime) -> datetime:
        if v.tzinfo is not None:
            raise ValueError("local datetime must be naive; use DateTimeValue")
        return v


class DurationValue(_Value):
    """Signed interval with nanosecond resolution (stored as integer nanoseconds)."""

    type: Literal["duration"] = "duration"
    value: StrictInt

    @classmethod
    def from_timedelta(cls, td: timedelta) -> DurationValue:
        micros = (td.days * 86400 + td.seconds) * 1_000_000 + td.microseconds
        return cls(value=micros * NANOS_PER_MICRO)

    def to_timedelta(self) -> timedelta:
        """Convert to timedelta (sub-microsecond precision is truncated)."""
        micros = abs(self.value) // NANOS_PER_MICRO
        return timedelta(microseconds=micros if self.value >= 0 else -micros)


MemoryValue = Annotated[
    Union[
        StringValue,
        IntegerValue,
        FloatValue,
        BooleanValue,
        BytesValue,
        ListValue,
        DateValue,
        TimeValue,
        OffsetTimeValue,
        DateTimeValue,
        LocalDateTimeValue,
        DurationValue,
    ],
    Field(discriminator="type"),
]

ListValue.model_rebuild()

Properties = dict[str, MemoryValue]


def memory_value(obj: Any) -> MemoryValue:
    """Infer the MemoryValue variant for a plain Python value.

    Values that already are MemoryValue instances are returned unchanged.

    Raises:
        TypeError: for dicts, None and any other unsupported type.
    """
    if isinstance(obj, _Value):
        return obj
    # bool before int: bool is an int subclass
    if isinstance(obj, bool):
        return BooleanValue(value=obj)
    if isinstance(obj, int):
        return IntegerValue(value=obj)
    if isinstance(obj, float):
        return FloatValue(value=obj)
    if isinstance(obj, str):
        return StringValue(value=obj)
    if isinstance(obj, (bytes, bytearray)):
        return BytesValue(value=bytes(obj))
    if isinstance(obj, (list, tuple)):
        return ListValue(value=[memory_value(item) for item in obj])
    if isinstance(obj, datetime):
        if obj.tzinfo is not None and obj.utcoffset() is not None:
            return DateTimeValue(value=obj)
        return LocalDateTimeValue(value=obj)
    if isinstance(obj, date):
        return DateValue(value=obj)
    if isinstance(obj, time):
        if obj.tzinfo is not None:
            offset = obj.utcoffset()
            seconds = int(offset.total_seconds()) if offset is not None else 0
            return OffsetTimeValue(value=OffsetTime(time=obj.replace(tzinfo=None), offset=seconds))
        return TimeValue(value=obj)
    if isinstance(obj, timedelta):
        return DurationValue.from_timedelta(obj)
    raise TypeError(f"Unsupported property value type: {type(obj).__name__}")


def memory_properties(props: dict[str, Any] | None) -> Properties:
    """Convert a plain ``{key: python value}`` mapping into typed properties."""
    if not props:
        return {}
    return {key: memory_value(value) for key, value in props.items()}


def plain_value(value: MemoryValue) -> Any:
    """Unwrap a MemoryValue into the closest plain Python value (lists recurse)."""
    if isinstance(value, ListValue):
        return [plain_value(item) for item in value.value]
    return value.value
