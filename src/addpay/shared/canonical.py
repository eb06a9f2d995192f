"""
Canonical string construction for request signing.

Both the SDK and the gateway sign the same deterministic rendering of
a parameter mapping:

    1. Drop fields that are None or an empty string
    2. Drop the `sign` field itself
    3. Sort the remaining keys
    4. Render each value and join as key=value pairs with '&'

Example:
    {"merchant_no": "123456", "order_amount": "100.00",
     "currency": "ZAR", "sign": "x", "empty_field": ""}
    → "currency=ZAR&merchant_no=123456&order_amount=100.00"

Nested objects (dicts and lists) render as compact JSON. Their inner key
order is insertion order; it is NOT sorted independently. The same
serializer is used when nested values are flattened for transmission, so
the text the gateway receives is exactly the text that was signed.
"""

import json
import math
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

from .constants import SIGN_FIELD


class FieldKind(str, Enum):
    """How a field value participates in signing and transmission."""
    ABSENT = "absent"     # None or "": never signed
    SCALAR = "scalar"     # str, int, float, bool, Decimal
    NESTED = "nested"     # dict, list, tuple: serialized as JSON text


def classify(value: Any) -> FieldKind:
    if value is None or (isinstance(value, str) and value == ""):
        return FieldKind.ABSENT
    if isinstance(value, (dict, list, tuple)):
        return FieldKind.NESTED
    return FieldKind.SCALAR


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def serialize_nested(value: Any) -> str:
    """Compact JSON text for a nested value, keeping its key order."""
    return json.dumps(
        value,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_json_default,
    )


def render_float(value: float) -> str:
    """
    Shortest round-trip text of a float, laid out the way the gateway
    prints numbers.

    Plain notation is used while the decimal point falls within 21
    digits left or 6 zeros right of the first digit; beyond that the
    exponent form drops leading zeros and keeps an explicit sign:
    1e-7 → "1e-7", 0.00001 → "0.00001", 1e21 → "1e+21".
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    digits = "".join(str(d) for d in digit_tuple).lstrip("0")
    stripped = digits.rstrip("0")
    exponent += len(digits) - len(stripped)
    digits = stripped

    k = len(digits)
    # Position of the decimal point relative to the first digit
    n = exponent + k

    if k <= n <= 21:
        text = digits + "0" * (n - k)
    elif 0 < n <= 21:
        text = f"{digits[:n]}.{digits[n:]}"
    elif -6 < n <= 0:
        text = "0." + "0" * -n + digits
    else:
        e = n - 1
        mantissa = digits if k == 1 else f"{digits[0]}.{digits[1:]}"
        text = f"{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"
    return sign + text


def render_scalar(value: Any) -> str:
    """
    Textual form of a scalar.

    Booleans render lowercase and floats follow render_float, so 42,
    42.0 and True render as "42", "42" and "true".
    """
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return render_float(value)
    return str(value)


def render_value(value: Any) -> str:
    """Render any non-absent field value for signing or transmission."""
    if classify(value) is FieldKind.NESTED:
        return serialize_nested(value)
    return render_scalar(value)


def canonicalize(params: Mapping[str, Any]) -> str:
    """
    Build the canonical signature string for a parameter mapping.

    Args:
        params: Field name → value. Values may be None, "", scalars or
            nested dicts/lists.

    Returns:
        The `key=value&...` string; "" when nothing survives filtering.
    """
    pairs = []
    for key in sorted(params):
        if key == SIGN_FIELD:
            continue
        value = params[key]
        if classify(value) is FieldKind.ABSENT:
            continue
        pairs.append(f"{key}={render_value(value)}")
    return "&".join(pairs)
