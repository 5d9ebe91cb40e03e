"""
Fixed-width scalar kinds and culture-invariant text conversion.

Python has a single arbitrary-precision int and a single double-precision
float, so the width of a field is declared with the NewType aliases below
and enforced while converting text:

    class Options:
        port: Annotated[UInt16, IntegerOption("--port")] = 8080
        ratio: Annotated[Float32, FloatingPointOption("--ratio")] = 1.0

Conversion functions raise the builtin ValueError for malformed text and
OverflowError for values outside the declared range; the option descriptors
translate both into option faults carrying the flag and raw value.
"""
import math
import re
import struct
import sys
from decimal import MAX_EMAX, MIN_EMIN, ROUND_HALF_EVEN, Context, Decimal, InvalidOperation
from typing import NewType

Int8 = NewType("Int8", int)
Int16 = NewType("Int16", int)
Int32 = NewType("Int32", int)
Int64 = NewType("Int64", int)
UInt8 = NewType("UInt8", int)
UInt16 = NewType("UInt16", int)
UInt32 = NewType("UInt32", int)
UInt64 = NewType("UInt64", int)
Float32 = NewType("Float32", float)

# inclusive bounds; None means unbounded
INTEGER_RANGES = {
    int: (None, None),
    Int8: (-2 ** 7, 2 ** 7 - 1),
    Int16: (-2 ** 15, 2 ** 15 - 1),
    Int32: (-2 ** 31, 2 ** 31 - 1),
    Int64: (-2 ** 63, 2 ** 63 - 1),
    UInt8: (0, 2 ** 8 - 1),
    UInt16: (0, 2 ** 16 - 1),
    UInt32: (0, 2 ** 32 - 1),
    UInt64: (0, 2 ** 64 - 1),
}

FLOATING_LIMITS = {
    float: sys.float_info.max,
    Float32: 3.4028234663852886e38,
    Decimal: Decimal("79228162514264337593543950335"),
}

INTEGER_TYPES = tuple(INTEGER_RANGES)
FLOATING_TYPES = tuple(FLOATING_LIMITS)

_INTEGER = re.compile(r"\s*[+-]?\d+\s*", re.ASCII)
_FLOATING = re.compile(r"\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*", re.ASCII)
_SPECIAL = re.compile(r"\s*[+-]?(?:infinity|nan)\s*", re.ASCII | re.IGNORECASE)

# 128-bit decimal: at most 29 significant digits, rounded half to even
_DECIMAL = Context(prec=29, rounding=ROUND_HALF_EVEN, Emax=MAX_EMAX, Emin=MIN_EMIN)


def typename(type, /):
    """
    Display name for a declared scalar type (NewType aliases keep their alias name).
    """
    return getattr(type, "__name__", repr(type))


def to_integer(text, type=int, /):
    """
    Convert base-10 text into an int within the range of `type`.

    Accepted: optional surrounding whitespace, an optional sign and ASCII
    digits. Underscores, radix prefixes and grouping separators are rejected.

    Raises
    - ValueError: text is empty or not a base-10 integer.
    - OverflowError: value is outside the range of `type`.
    - KeyError: `type` is not an integer kind.
    """
    low, high = INTEGER_RANGES[type]
    if not _INTEGER.fullmatch(text):
        raise ValueError("%r is not a base-10 integer" % text)
    value = int(text)
    if (low is not None and value < low) or (high is not None and value > high):
        raise OverflowError("%s is outside the range of %s [%d, %d]" % (value, typename(type), low, high))
    return value


def to_floating(text, type=float, /):
    """
    Convert decimal/scientific text into a value of the floating kind `type`.

    float and Float32 accept 'Infinity' and 'NaN' (any case, optional sign);
    Float32 results are rounded to single precision. Decimal rejects them and
    keeps at most 29 significant digits.

    Raises
    - ValueError: text is not a floating-point number.
    - OverflowError: a finite literal exceeds the largest value of `type`.
    - KeyError: `type` is not a floating kind.
    """
    limit = FLOATING_LIMITS[type]

    if _SPECIAL.fullmatch(text):
        if type is Decimal:
            raise ValueError("%r is not a decimal number" % text)
        return float(text.strip().lower().replace("infinity", "inf"))

    if not _FLOATING.fullmatch(text):
        raise ValueError("%r is not a floating-point number" % text)

    if type is Decimal:
        try:
            value = _DECIMAL.create_decimal(text.strip())
        except InvalidOperation:
            raise ValueError("%r is not a decimal number" % text) from None
        if abs(value) > limit:
            raise OverflowError("%s is outside the range of Decimal" % text.strip())
        return value

    value = float(text)
    if math.isinf(value) or abs(value) > limit:
        raise OverflowError("%s is outside the range of %s" % (text.strip(), typename(type)))
    if type is Float32:
        # round to nearest single; the bound above keeps the result finite
        value, = struct.unpack("f", struct.pack("f", value))
    return value


__all__ = (
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "Float32",
    "INTEGER_TYPES",
    "FLOATING_TYPES",
    "to_integer",
    "to_floating",
)
