"""
Value-to-markup encoding.

Turns Python data into markup code literals, so host data can be handed to a
document through a virtual file (see CompilationContext.stream_virtual_file):

    encode(None)                 # none
    encode({"a": 1, "b": [2.5]}) # ("a": int(1), "b": (float(2.5),))
    encode(date(2015, 1, 13))    # datetime(year: 2015, month: 1, day: 13)

The encoder is a functools.singledispatch function. Register more types with
`@encode.register`.

Context keys:
    timezone: zone aware datetimes are shifted to before encoding, a tzinfo
        or an IANA name (default UTC)
    struct_keys: {dataclass type: [field names]} limiting which fields of a
        dataclass instance are encoded
"""

import dataclasses
import math
from collections.abc import Mapping, Set
from datetime import date, datetime, time, timezone, tzinfo
from decimal import Decimal
from enum import Enum
from functools import singledispatch
from typing import Any, Iterable, Optional
from zoneinfo import ZoneInfo

_STRING_ESCAPES = str.maketrans(
    {
        "\\": "\\\\",
        '"': '\\"',
        "\n": "\\n",
        "\r": "\\r",
        "\t": "\\t",
    }
)


@singledispatch
def encode(value: Any, context: Optional[dict] = None) -> str:
    """
    Encode value as markup code.

    Raises:
        TypeError: If no encoding is registered for the value's type
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _encode_dataclass(value, context or {})
    raise TypeError(f"Cannot encode value of type {type(value).__name__} as markup code")


@encode.register(type(None))
def _(value, context=None) -> str:
    return "none"


@encode.register(bool)
def _(value, context=None) -> str:
    return "true" if value else "false"


@encode.register(int)
def _(value, context=None) -> str:
    return f"int({value})"


@encode.register(float)
def _(value, context=None) -> str:
    if math.isnan(value):
        return "float.nan"
    if math.isinf(value):
        return "float.inf" if value > 0 else "-float.inf"
    return f"float({value!r})"


@encode.register(Decimal)
def _(value, context=None) -> str:
    return f'decimal("{value}")'


@encode.register(str)
def _(value, context=None) -> str:
    return f'"{value.translate(_STRING_ESCAPES)}"'


@encode.register(bytes)
def _(value, context=None) -> str:
    return f"bytes({_array(str(b) for b in value)})"


@encode.register(Enum)
def _(value, context=None) -> str:
    return encode(value.value, context)


@encode.register(Mapping)
def _(value, context=None) -> str:
    if not value:
        return "(:)"
    fields = ", ".join(f"{encode(str(key))}: {encode(item, context)}" for key, item in value.items())
    return f"({fields})"


@encode.register(list)
@encode.register(tuple)
def _(value, context=None) -> str:
    return _array(encode(item, context) for item in value)


@encode.register(Set)
def _(value, context=None) -> str:
    try:
        items = sorted(value)
    except TypeError:
        items = list(value)
    return _array(encode(item, context) for item in items)


@encode.register(datetime)
def _(value, context=None) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(_zone((context or {}).get("timezone")))
    return (
        f"datetime(year: {value.year}, month: {value.month}, day: {value.day}, "
        f"hour: {value.hour}, minute: {value.minute}, second: {value.second})"
    )


@encode.register(date)
def _(value, context=None) -> str:
    return f"datetime(year: {value.year}, month: {value.month}, day: {value.day})"


@encode.register(time)
def _(value, context=None) -> str:
    return f"datetime(hour: {value.hour}, minute: {value.minute}, second: {value.second})"


def encode_records(records: Iterable[Any], context: Optional[dict] = None) -> Iterable[str]:
    """Encode each record as one array element line ("  <code>,\\n")."""
    for record in records:
        yield f"  {encode(record, context)},\n"


def _array(items: Iterable[str]) -> str:
    items = list(items)
    if not items:
        return "()"
    if len(items) == 1:
        return f"({items[0]},)"
    return f"({', '.join(items)})"


def _zone(name) -> tzinfo:
    if name is None:
        return timezone.utc
    if isinstance(name, tzinfo):
        return name
    return ZoneInfo(name)


def _encode_dataclass(value: Any, context: dict) -> str:
    keys = context.get("struct_keys", {}).get(type(value))
    fields = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    if keys is not None:
        fields = {key: fields[key] for key in keys if key in fields}
    return encode(fields, context)
