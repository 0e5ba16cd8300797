"""
JavaScript values for the sandboxed evaluator.

Values are plain Python objects: str, float and bool, None for null,
UNDEFINED, list for arrays and dict for plain objects. Functions are
JSCallable instances and regular expression literals are JSRegExp.
"""

from __future__ import annotations

import json
import math
import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple

_NUMERIC_STRING = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_RADIX_STRING = re.compile(r"^0([xXoObB])([0-9a-fA-F]+)$")
_RADIX = {"x": 16, "o": 8, "b": 2}


class EvaluationError(Exception):
    """Compile-time code could not be evaluated."""
    pass


class EvaluationTimeoutError(EvaluationError):
    """Evaluation exceeded its time budget."""
    pass


class Undefined:
    """The JavaScript undefined value."""

    _instance: Optional[Undefined] = None

    def __new__(cls) -> Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False


UNDEFINED = Undefined()


class JSCallable(ABC):
    """A value that can be called from evaluated code."""

    name: str = ""

    @abstractmethod
    def call(self, args: List[Any]) -> Any:
        ...


class NativeFunction(JSCallable):
    """
    Function implemented in Python.

    Args:
        name: Function name used in messages
        func: Implementation receiving the argument list
        members: Static members, such as Array.isArray
    """

    def __init__(self, name: str, func: Callable[[List[Any]], Any], members: Optional[Dict[str, Any]] = None):
        self.name = name
        self.func = func
        self.members = members or {}

    def call(self, args: List[Any]) -> Any:
        return self.func(args)

    def __repr__(self) -> str:
        return f"NativeFunction({self.name!r})"


class JSRegExp:
    """Regular expression literal, compiled with the re module."""

    def __init__(self, source: str, flags: str = ""):
        self.source = source
        self.flags = flags
        re_flags = 0
        if "i" in flags:
            re_flags |= re.IGNORECASE
        if "m" in flags:
            re_flags |= re.MULTILINE
        if "s" in flags:
            re_flags |= re.DOTALL
        pattern = re.sub(r"\(\?<(?![=!])", "(?P<", source)
        try:
            self.pattern = re.compile(pattern, re_flags)
        except re.error as e:
            raise EvaluationError(f"SyntaxError: Invalid regular expression: /{source}/: {e}") from e

    @property
    def is_global(self) -> bool:
        return "g" in self.flags

    def __str__(self) -> str:
        return f"/{self.source}/{self.flags}"


# Coercions

def js_typeof(value: Any) -> str:
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, JSCallable):
        return "function"
    return "object"


def is_truthy(value: Any) -> bool:
    if value is UNDEFINED or value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return not (value == 0 or math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def is_nullish(value: Any) -> bool:
    return value is None or value is UNDEFINED


def _shortest_digits(value: float) -> Tuple[str, int]:
    """Digits of the shortest round-trip form and the decimal point position."""
    mantissa, _, exponent = repr(value).partition("e")
    integer, _, fraction = mantissa.partition(".")
    digits = integer + fraction
    stripped = digits.lstrip("0")
    point = len(integer) + int(exponent or 0) - (len(digits) - len(stripped))
    return stripped.rstrip("0") or "0", point


def number_to_string(value: float) -> str:
    """Number formatting of JavaScript's Number.prototype.toString()."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"
    if value < 0:
        return "-" + number_to_string(-value)
    if value.is_integer() and value < 1e21:
        return str(int(value))

    digits, point = _shortest_digits(value)
    count = len(digits)
    if count <= point <= 21:
        return digits + "0" * (point - count)
    if 0 < point <= 21:
        return f"{digits[:point]}.{digits[point:]}"
    if -6 < point <= 0:
        return "0." + "0" * -point + digits
    exponent = point - 1
    sign = "+" if exponent >= 0 else "-"
    if count == 1:
        return f"{digits}e{sign}{abs(exponent)}"
    return f"{digits[0]}.{digits[1:]}e{sign}{abs(exponent)}"


def to_js_string(value: Any) -> str:
    """Equivalent of JavaScript String(value)."""
    if isinstance(value, str):
        return value
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return number_to_string(value)
    if isinstance(value, list):
        return ",".join("" if is_nullish(item) else to_js_string(item) for item in value)
    if isinstance(value, JSRegExp):
        return str(value)
    if isinstance(value, JSCallable):
        return f"function {value.name}() {{ [native code] }}"
    return "[object Object]"


def to_number(value: Any) -> float:
    """Equivalent of JavaScript Number(value)."""
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if value is None:
        return 0.0
    if value is UNDEFINED:
        return math.nan
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        radix = _RADIX_STRING.match(text)
        if radix:
            try:
                return float(int(radix.group(2), _RADIX[radix.group(1).lower()]))
            except ValueError:
                return math.nan
        if _NUMERIC_STRING.match(text):
            return float(text)
        if text in ("Infinity", "+Infinity"):
            return math.inf
        if text == "-Infinity":
            return -math.inf
        return math.nan
    if isinstance(value, list):
        return to_number(to_js_string(value))
    return math.nan


def to_integer(value: Any, default: int = 0) -> int:
    """ToIntegerOrInfinity, clamped to Python ints; undefined gives default."""
    if value is UNDEFINED:
        return default
    number = to_number(value)
    if math.isnan(number):
        return 0
    if math.isinf(number):
        return (1 << 53) if number > 0 else -(1 << 53)
    return int(number)


def to_int32(value: float) -> int:
    if math.isnan(value) or math.isinf(value):
        return 0
    number = int(value) & 0xFFFFFFFF
    return number - (1 << 32) if number & 0x80000000 else number


def to_uint32(value: float) -> int:
    if math.isnan(value) or math.isinf(value):
        return 0
    return int(value) & 0xFFFFFFFF


def to_primitive(value: Any) -> Any:
    if isinstance(value, (list, dict, JSRegExp, JSCallable)):
        return to_js_string(value)
    return value


def to_property_key(value: Any) -> str:
    return to_js_string(value)


def strict_equals(left: Any, right: Any) -> bool:
    if js_typeof(left) != js_typeof(right):
        return False
    if left is None or right is None:
        return left is right
    if isinstance(left, (list, dict, JSRegExp, JSCallable)):
        return left is right
    if isinstance(left, (int, float)) and not isinstance(left, bool):
        return float(left) == float(right)
    return left == right


def same_value_zero(left: Any, right: Any) -> bool:
    if isinstance(left, float) and isinstance(right, float) and math.isnan(left) and math.isnan(right):
        return True
    return strict_equals(left, right)


def loose_equals(left: Any, right: Any) -> bool:
    if is_nullish(left) or is_nullish(right):
        return is_nullish(left) and is_nullish(right)
    if js_typeof(left) == js_typeof(right):
        return strict_equals(left, right)
    if isinstance(left, bool):
        return loose_equals(to_number(left), right)
    if isinstance(right, bool):
        return loose_equals(left, to_number(right))
    if not isinstance(left, (str, float, int)) or not isinstance(right, (str, float, int)):
        return loose_equals(to_primitive(left), to_primitive(right))
    return to_number(left) == to_number(right)


def power(left: float, right: float) -> float:
    if math.isnan(right):
        return math.nan
    if right == 0:
        return 1.0
    if abs(left) == 1 and math.isinf(right):
        return math.nan
    try:
        return math.pow(left, right)
    except OverflowError:
        return math.inf
    except (ValueError, ZeroDivisionError):
        return math.inf if left == 0 else math.nan


def arithmetic(operator: str, left: float, right: float) -> float:
    """Numeric binary operators: - * / % **."""
    if operator == "-":
        return left - right
    if operator == "*":
        return left * right
    if operator == "/":
        if right == 0:
            if left == 0 or math.isnan(left):
                return math.nan
            return math.copysign(math.inf, left) * math.copysign(1.0, right)
        return left / right
    if operator == "%":
        if right == 0 or math.isinf(left) or math.isnan(left) or math.isnan(right):
            return math.nan
        if math.isinf(right):
            return left
        return math.fmod(left, right)
    return power(left, right)


# JSON

def _json_value(value: Any) -> Any:
    if value is UNDEFINED or isinstance(value, JSCallable):
        return UNDEFINED
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, (int, float)):
        number = float(value)
        if math.isnan(number) or math.isinf(number):
            return None
        return int(number) if number.is_integer() and abs(number) < 2 ** 53 else number
    if isinstance(value, list):
        items = [_json_value(item) for item in value]
        return [None if item is UNDEFINED else item for item in items]
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            converted = _json_value(item)
            if converted is not UNDEFINED:
                result[key] = converted
        return result
    return {}


def to_json(value: Any, indent: Any = UNDEFINED) -> Any:
    """Equivalent of JSON.stringify(value, null, indent)."""
    converted = _json_value(value)
    if converted is UNDEFINED:
        return UNDEFINED
    spacing: Optional[str] = None
    if isinstance(indent, str):
        spacing = indent[:10] or None
    elif isinstance(indent, (int, float)) and not isinstance(indent, bool):
        width = min(max(to_integer(indent), 0), 10)
        spacing = " " * width if width else None
    if spacing is None:
        return json.dumps(converted, ensure_ascii=False, separators=(",", ":"))
    return json.dumps(converted, ensure_ascii=False, indent=spacing)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Unexpected token {name}")


def from_json(text: Any) -> Any:
    """Equivalent of JSON.parse(text)."""
    try:
        return json.loads(to_js_string(text), parse_int=float, parse_constant=_reject_constant)
    except ValueError as e:
        raise EvaluationError(f"SyntaxError: {e}") from e


__all__ = [
    "arithmetic",
    "power",
    "EvaluationError",
    "EvaluationTimeoutError",
    "Undefined",
    "UNDEFINED",
    "JSCallable",
    "NativeFunction",
    "JSRegExp",
    "from_json",
    "is_nullish",
    "is_truthy",
    "js_typeof",
    "loose_equals",
    "number_to_string",
    "same_value_zero",
    "strict_equals",
    "to_int32",
    "to_integer",
    "to_js_string",
    "to_json",
    "to_number",
    "to_primitive",
    "to_property_key",
    "to_uint32",
]
