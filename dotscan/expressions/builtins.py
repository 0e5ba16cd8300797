"""
Built-in objects and methods available to compile-time code.

Covers the parts of the standard library that define values typically
use: string and array methods, Math, JSON, the String/Number/Boolean
conversions and the URI helpers. Callbacks passed to array methods are
invoked through JSCallable.call(), so they run under the same deadline
as the rest of the evaluation.
"""

from __future__ import annotations

import functools
import math
import re
import unicodedata
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote, unquote

from .values import (
    UNDEFINED,
    EvaluationError,
    JSCallable,
    JSRegExp,
    NativeFunction,
    from_json,
    is_nullish,
    is_truthy,
    js_typeof,
    number_to_string,
    power,
    same_value_zero,
    strict_equals,
    to_integer,
    to_js_string,
    to_json,
    to_number,
)

Method = Callable[[Any, List[Any]], Any]

_REPLACEMENT = re.compile(r"\$(\$|&|`|'|\d{1,2}|<[^>]*>)")
_PARSE_FLOAT = re.compile(r"^[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _arg(args: List[Any], index: int) -> Any:
    return args[index] if index < len(args) else UNDEFINED


def _relative_index(value: Any, length: int, default: int) -> int:
    index = to_integer(value, default)
    if index < 0:
        return max(length + index, 0)
    return min(index, length)


def _call(callback: Any, args: List[Any], method: str) -> Any:
    if not isinstance(callback, JSCallable):
        raise EvaluationError(f"{to_js_string(callback)} is not a function (in {method})")
    return callback.call(args)


# Strings

def _expand_replacement(template: str, match: re.Match) -> str:
    def replace(token: re.Match) -> str:
        code = token.group(1)
        if code == "$":
            return "$"
        if code == "&":
            return match.group(0)
        if code == "`":
            return match.string[:match.start()]
        if code == "'":
            return match.string[match.end():]
        if code.startswith("<"):
            try:
                return match.group(code[1:-1]) or ""
            except IndexError:
                return token.group(0)
        group = int(code)
        if 0 < group <= (match.re.groups or 0):
            return match.group(group) or ""
        return token.group(0)

    return _REPLACEMENT.sub(replace, template)


def _replace(text: str, args: List[Any], replace_all: bool) -> str:
    pattern, replacement = _arg(args, 0), _arg(args, 1)
    if isinstance(pattern, JSRegExp):
        regex = pattern.pattern
        count = 0 if pattern.is_global or replace_all else 1
    else:
        regex = re.compile(re.escape(to_js_string(pattern)))
        count = 0 if replace_all else 1

    def substitute(match: re.Match) -> str:
        if isinstance(replacement, JSCallable):
            groups = [UNDEFINED if group is None else group for group in match.groups()]
            return to_js_string(replacement.call([match.group(0), *groups, float(match.start()), text]))
        return _expand_replacement(to_js_string(replacement), match)

    return regex.sub(substitute, text, count=count)


def _split(text: str, args: List[Any]) -> List[Any]:
    separator, limit = _arg(args, 0), _arg(args, 1)
    if separator is UNDEFINED:
        parts: List[Any] = [text]
    elif isinstance(separator, JSRegExp):
        parts = [UNDEFINED if part is None else part for part in separator.pattern.split(text)]
    else:
        separator = to_js_string(separator)
        parts = list(text) if separator == "" else text.split(separator)
    if limit is not UNDEFINED:
        parts = parts[:max(to_integer(limit), 0)]
    return parts


def _match_list(match: re.Match) -> List[Any]:
    return [match.group(0), *(UNDEFINED if group is None else group for group in match.groups())]


def _match(text: str, args: List[Any]) -> Any:
    pattern = _arg(args, 0)
    regexp = pattern if isinstance(pattern, JSRegExp) else JSRegExp(to_js_string(pattern))
    if regexp.is_global:
        found = [match.group(0) for match in regexp.pattern.finditer(text)]
        return found or None
    match = regexp.pattern.search(text)
    return _match_list(match) if match else None


def _search(text: str, args: List[Any]) -> float:
    pattern = _arg(args, 0)
    regexp = pattern if isinstance(pattern, JSRegExp) else JSRegExp(to_js_string(pattern))
    match = regexp.pattern.search(text)
    return float(match.start()) if match else -1.0


def _pad(text: str, args: List[Any], at_start: bool) -> str:
    length = to_integer(_arg(args, 0))
    filler = _arg(args, 1)
    filler = " " if filler is UNDEFINED else to_js_string(filler)
    missing = length - len(text)
    if missing <= 0 or not filler:
        return text
    padding = (filler * (missing // len(filler) + 1))[:missing]
    return padding + text if at_start else text + padding


def _substring(text: str, args: List[Any]) -> str:
    length = len(text)
    start = min(max(to_integer(_arg(args, 0)), 0), length)
    end = min(max(to_integer(_arg(args, 1), length), 0), length)
    if start > end:
        start, end = end, start
    return text[start:end]


def _substr(text: str, args: List[Any]) -> str:
    start = _relative_index(_arg(args, 0), len(text), 0)
    count = to_integer(_arg(args, 1), len(text) - start)
    return text[start:start + max(count, 0)]


def _char_at(text: str, args: List[Any]) -> str:
    index = to_integer(_arg(args, 0))
    return text[index] if 0 <= index < len(text) else ""


def _char_code_at(text: str, args: List[Any]) -> float:
    index = to_integer(_arg(args, 0))
    return float(ord(text[index])) if 0 <= index < len(text) else math.nan


def _repeat(text: str, args: List[Any]) -> str:
    count = to_integer(_arg(args, 0))
    if count < 0:
        raise EvaluationError(f"RangeError: Invalid count value: {count}")
    return text * count


def _string_at(text: str, args: List[Any]) -> Any:
    index = to_integer(_arg(args, 0))
    if index < 0:
        index += len(text)
    return text[index] if 0 <= index < len(text) else UNDEFINED


def _locale_compare(text: str, args: List[Any]) -> float:
    other = to_js_string(_arg(args, 0))
    return float((text > other) - (text < other))


def _index_of(text: str, args: List[Any]) -> float:
    start = min(max(to_integer(_arg(args, 1)), 0), len(text))
    return float(text.find(to_js_string(_arg(args, 0)), start))


def _normalize(text: str, args: List[Any]) -> str:
    form = _arg(args, 0)
    form = "NFC" if form is UNDEFINED else to_js_string(form)
    if form not in ("NFC", "NFD", "NFKC", "NFKD"):
        raise EvaluationError("RangeError: The normalization form should be one of NFC, NFD, NFKC, NFKD.")
    return unicodedata.normalize(form, text)


STRING_METHODS: Dict[str, Method] = {
    "toUpperCase": lambda s, a: s.upper(),
    "toLowerCase": lambda s, a: s.lower(),
    "toLocaleUpperCase": lambda s, a: s.upper(),
    "toLocaleLowerCase": lambda s, a: s.lower(),
    "trim": lambda s, a: s.strip(),
    "trimStart": lambda s, a: s.lstrip(),
    "trimEnd": lambda s, a: s.rstrip(),
    "charAt": _char_at,
    "charCodeAt": _char_code_at,
    "at": _string_at,
    "indexOf": _index_of,
    "lastIndexOf": lambda s, a: float(s.rfind(to_js_string(_arg(a, 0)))),
    "includes": lambda s, a: to_js_string(_arg(a, 0)) in s,
    "startsWith": lambda s, a: s.startswith(to_js_string(_arg(a, 0)), _relative_index(_arg(a, 1), len(s), 0)),
    "endsWith": lambda s, a: s[:_relative_index(_arg(a, 1), len(s), len(s))].endswith(to_js_string(_arg(a, 0))),
    "slice": lambda s, a: s[_relative_index(_arg(a, 0), len(s), 0):_relative_index(_arg(a, 1), len(s), len(s))],
    "substring": _substring,
    "substr": _substr,
    "split": _split,
    "replace": lambda s, a: _replace(s, a, False),
    "replaceAll": lambda s, a: _replace(s, a, True),
    "match": _match,
    "search": _search,
    "repeat": _repeat,
    "padStart": lambda s, a: _pad(s, a, True),
    "padEnd": lambda s, a: _pad(s, a, False),
    "concat": lambda s, a: s + "".join(to_js_string(item) for item in a),
    "localeCompare": _locale_compare,
    "normalize": _normalize,
    "toString": lambda s, a: s,
    "valueOf": lambda s, a: s,
}


# Arrays

def _join(items: List[Any], args: List[Any]) -> str:
    separator = _arg(args, 0)
    separator = "," if separator is UNDEFINED else to_js_string(separator)
    return separator.join("" if is_nullish(item) else to_js_string(item) for item in items)


def _iterate(items: List[Any], args: List[Any], method: str):
    callback = _arg(args, 0)
    for index, item in enumerate(list(items)):
        yield item, _call(callback, [item, float(index), items], method)


def _for_each(items: List[Any], args: List[Any]) -> Any:
    for _item, _result in _iterate(items, args, "forEach"):
        pass
    return UNDEFINED


def _find(items: List[Any], args: List[Any]) -> Any:
    for item, result in _iterate(items, args, "find"):
        if is_truthy(result):
            return item
    return UNDEFINED


def _find_index(items: List[Any], args: List[Any]) -> float:
    for index, (_item, result) in enumerate(_iterate(items, args, "findIndex")):
        if is_truthy(result):
            return float(index)
    return -1.0


def _find_last(items: List[Any], args: List[Any]) -> Any:
    index = _find_last_index(items, args)
    return items[int(index)] if index >= 0 else UNDEFINED


def _find_last_index(items: List[Any], args: List[Any]) -> float:
    callback = _arg(args, 0)
    for index in range(len(items) - 1, -1, -1):
        if is_truthy(_call(callback, [items[index], float(index), items], "findLastIndex")):
            return float(index)
    return -1.0


def _reduce(items: List[Any], args: List[Any], reverse: bool = False) -> Any:
    callback = _arg(args, 0)
    indexes = list(range(len(items)))
    if reverse:
        indexes.reverse()
    if len(args) > 1:
        accumulator = args[1]
    elif indexes:
        accumulator = items[indexes.pop(0)]
    else:
        raise EvaluationError("TypeError: Reduce of empty array with no initial value")
    for index in indexes:
        accumulator = _call(callback, [accumulator, items[index], float(index), items], "reduce")
    return accumulator


def _array_index_of(items: List[Any], args: List[Any]) -> float:
    target = _arg(args, 0)
    start = _relative_index(_arg(args, 1), len(items), 0)
    for index in range(start, len(items)):
        if strict_equals(items[index], target):
            return float(index)
    return -1.0


def _array_last_index_of(items: List[Any], args: List[Any]) -> float:
    target = _arg(args, 0)
    for index in range(len(items) - 1, -1, -1):
        if strict_equals(items[index], target):
            return float(index)
    return -1.0


def _concat(items: List[Any], args: List[Any]) -> List[Any]:
    result = list(items)
    for arg in args:
        if isinstance(arg, list):
            result.extend(arg)
        else:
            result.append(arg)
    return result


def _flatten(items: List[Any], depth: int) -> List[Any]:
    result: List[Any] = []
    for item in items:
        if isinstance(item, list) and depth > 0:
            result.extend(_flatten(item, depth - 1))
        else:
            result.append(item)
    return result


def _default_compare(left: Any, right: Any) -> int:
    if left is UNDEFINED or right is UNDEFINED:
        return (left is UNDEFINED) - (right is UNDEFINED)
    left_text, right_text = to_js_string(left), to_js_string(right)
    return (left_text > right_text) - (left_text < right_text)


def _sort(items: List[Any], args: List[Any]) -> List[Any]:
    comparator = _arg(args, 0)
    if comparator is UNDEFINED:
        key = functools.cmp_to_key(_default_compare)
    else:
        def compare(left: Any, right: Any) -> int:
            if left is UNDEFINED or right is UNDEFINED:
                return _default_compare(left, right)
            result = to_number(_call(comparator, [left, right], "sort"))
            if math.isnan(result):
                return 0
            return (result > 0) - (result < 0)

        key = functools.cmp_to_key(compare)
    items.sort(key=key)
    return items


def _push(items: List[Any], args: List[Any]) -> float:
    items.extend(args)
    return float(len(items))


def _unshift(items: List[Any], args: List[Any]) -> float:
    items[0:0] = args
    return float(len(items))


def _array_at(items: List[Any], args: List[Any]) -> Any:
    index = to_integer(_arg(args, 0))
    if index < 0:
        index += len(items)
    return items[index] if 0 <= index < len(items) else UNDEFINED


ARRAY_METHODS: Dict[str, Method] = {
    "join": _join,
    "map": lambda items, a: [result for _item, result in _iterate(items, a, "map")],
    "filter": lambda items, a: [item for item, result in _iterate(items, a, "filter") if is_truthy(result)],
    "forEach": _for_each,
    "some": lambda items, a: any(is_truthy(result) for _item, result in _iterate(items, a, "some")),
    "every": lambda items, a: all(is_truthy(result) for _item, result in _iterate(items, a, "every")),
    "find": _find,
    "findIndex": _find_index,
    "findLast": _find_last,
    "findLastIndex": _find_last_index,
    "reduce": lambda items, a: _reduce(items, a),
    "reduceRight": lambda items, a: _reduce(items, a, reverse=True),
    "flatMap": lambda items, a: _flatten([result for _item, result in _iterate(items, a, "flatMap")], 1),
    "flat": lambda items, a: _flatten(items, to_integer(_arg(a, 0), 1)),
    "indexOf": _array_index_of,
    "lastIndexOf": _array_last_index_of,
    "includes": lambda items, a: any(same_value_zero(item, _arg(a, 0)) for item in items),
    "slice": lambda items, a: items[_relative_index(_arg(a, 0), len(items), 0):_relative_index(_arg(a, 1), len(items), len(items))],
    "concat": _concat,
    "reverse": lambda items, a: items.reverse() or items,
    "sort": _sort,
    "push": _push,
    "pop": lambda items, a: items.pop() if items else UNDEFINED,
    "shift": lambda items, a: items.pop(0) if items else UNDEFINED,
    "unshift": _unshift,
    "at": _array_at,
    "toString": lambda items, a: _join(items, []),
}


# Numbers, booleans, objects, regular expressions

def _to_fixed(number: float, args: List[Any]) -> str:
    digits = to_integer(_arg(args, 0))
    if not 0 <= digits <= 100:
        raise EvaluationError("RangeError: toFixed() digits argument must be between 0 and 100")
    if math.isnan(number) or math.isinf(number) or abs(number) >= 1e21:
        return number_to_string(number)
    return f"{number:.{digits}f}"


def _number_to_radix(number: float, args: List[Any]) -> str:
    radix = _arg(args, 0)
    base = 10 if radix is UNDEFINED else to_integer(radix)
    if not 2 <= base <= 36:
        raise EvaluationError("RangeError: toString() radix must be between 2 and 36")
    if base == 10 or math.isnan(number) or math.isinf(number):
        return number_to_string(number)
    if not number.is_integer():
        raise EvaluationError("toString() with a radix is only supported for integers")
    value = abs(int(number))
    digits = ""
    while True:
        value, remainder = divmod(value, base)
        digits = _DIGITS[remainder] + digits
        if not value:
            break
    return ("-" if number < 0 else "") + digits


NUMBER_METHODS: Dict[str, Method] = {
    "toFixed": _to_fixed,
    "toString": _number_to_radix,
    "valueOf": lambda n, a: n,
}

BOOLEAN_METHODS: Dict[str, Method] = {
    "toString": lambda b, a: to_js_string(b),
    "valueOf": lambda b, a: b,
}

OBJECT_METHODS: Dict[str, Method] = {
    "hasOwnProperty": lambda o, a: to_js_string(_arg(a, 0)) in o,
    "toString": lambda o, a: "[object Object]",
}


def _regexp_exec(regexp: JSRegExp, args: List[Any]) -> Any:
    match = regexp.pattern.search(to_js_string(_arg(args, 0)))
    return _match_list(match) if match else None


REGEXP_METHODS: Dict[str, Method] = {
    "test": lambda r, a: r.pattern.search(to_js_string(_arg(a, 0))) is not None,
    "exec": _regexp_exec,
    "toString": lambda r, a: str(r),
}


def _method_table(owner: Any) -> Optional[Dict[str, Method]]:
    if isinstance(owner, str):
        return STRING_METHODS
    if isinstance(owner, bool):
        return BOOLEAN_METHODS
    if isinstance(owner, (int, float)):
        return NUMBER_METHODS
    if isinstance(owner, list):
        return ARRAY_METHODS
    if isinstance(owner, JSRegExp):
        return REGEXP_METHODS
    if isinstance(owner, dict):
        return OBJECT_METHODS
    return None


def get_member(owner: Any, key: str) -> Any:
    """
    Property read with JavaScript semantics.

    Raises:
        EvaluationError: When reading a property of null or undefined
    """
    if is_nullish(owner):
        raise EvaluationError(f"Cannot read properties of {to_js_string(owner)} (reading '{key}')")

    if isinstance(owner, dict) and key in owner:
        return owner[key]
    if isinstance(owner, (str, list)):
        if key == "length":
            return float(len(owner))
        if key.isdigit():
            index = int(key)
            return owner[index] if index < len(owner) else UNDEFINED
    if isinstance(owner, JSRegExp):
        if key == "source":
            return owner.source
        if key == "flags":
            return owner.flags
        if key == "global":
            return owner.is_global
    if isinstance(owner, NativeFunction):
        if key == "name":
            return owner.name
        return owner.members.get(key, UNDEFINED)

    table = _method_table(owner)
    if table is not None and key in table:
        method = table[key]
        return NativeFunction(key, lambda args: method(owner, args))
    return UNDEFINED


def set_member(owner: Any, key: str, value: Any) -> None:
    """
    Property write with JavaScript semantics; writes to primitives are ignored.

    Raises:
        EvaluationError: When writing a property of null or undefined
    """
    if is_nullish(owner):
        raise EvaluationError(f"Cannot set properties of {to_js_string(owner)} (setting '{key}')")
    if isinstance(owner, dict):
        owner[key] = value
    elif isinstance(owner, list):
        if key.isdigit():
            index = int(key)
            owner.extend([UNDEFINED] * (index + 1 - len(owner)))
            owner[index] = value
        elif key == "length":
            length = to_integer(value)
            if length < 0:
                raise EvaluationError("RangeError: Invalid array length")
            del owner[length:]
            owner.extend([UNDEFINED] * (length - len(owner)))
    elif isinstance(owner, NativeFunction):
        owner.members[key] = value


def delete_member(owner: Any, key: str) -> bool:
    if is_nullish(owner):
        raise EvaluationError("TypeError: Cannot convert undefined or null to object")
    if isinstance(owner, dict):
        owner.pop(key, None)
    elif isinstance(owner, list) and key.isdigit() and int(key) < len(owner):
        owner[int(key)] = UNDEFINED
    return True


def has_property(owner: Any, key: str) -> bool:
    """The `in` operator."""
    if isinstance(owner, dict):
        return key in owner
    if isinstance(owner, list):
        return key == "length" or (key.isdigit() and int(key) < len(owner))
    if isinstance(owner, NativeFunction):
        return key in owner.members or key == "name"
    raise EvaluationError(f"Cannot use 'in' operator to search for '{key}' in {to_js_string(owner)}")


# Globals

def _parse_int(args: List[Any]) -> float:
    text = to_js_string(_arg(args, 0)).strip()
    radix = to_integer(_arg(args, 1))
    sign = 1
    if text and text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if radix in (0, 16) and text[:2].lower() == "0x":
        text, radix = text[2:], 16
    radix = radix or 10
    if not 2 <= radix <= 36:
        return math.nan
    valid = _DIGITS[:radix]
    end = 0
    while end < len(text) and text[end].lower() in valid:
        end += 1
    if end == 0:
        return math.nan
    return float(sign * int(text[:end], radix))


def _parse_float(args: List[Any]) -> float:
    match = _PARSE_FLOAT.match(to_js_string(_arg(args, 0)).strip())
    if not match:
        return math.nan
    text = match.group(0)
    if text.lstrip("+-") == "Infinity":
        return -math.inf if text.startswith("-") else math.inf
    return float(text)


def _math_round(args: List[Any]) -> float:
    number = to_number(_arg(args, 0))
    if math.isnan(number) or math.isinf(number):
        return number
    return float(math.floor(number + 0.5))


def _math_extreme(args: List[Any], pick: Callable[..., float], empty: float) -> float:
    numbers = [to_number(arg) for arg in args]
    if any(math.isnan(number) for number in numbers):
        return math.nan
    return pick(numbers) if numbers else empty


def _math_unary(func: Callable[[float], float]) -> Callable[[List[Any]], float]:
    def apply(args: List[Any]) -> float:
        number = to_number(_arg(args, 0))
        if math.isnan(number):
            return math.nan
        try:
            return float(func(number))
        except OverflowError:
            return math.inf
        except ValueError:
            return math.nan
    return apply


def _math_pow(args: List[Any]) -> float:
    return power(to_number(_arg(args, 0)), to_number(_arg(args, 1)))


def _math_sign(args: List[Any]) -> float:
    number = to_number(_arg(args, 0))
    if math.isnan(number) or number == 0:
        return number
    return 1.0 if number > 0 else -1.0


def _math_trunc(number: float) -> float:
    if math.isinf(number):
        return number
    return float(math.trunc(number))


def _math_floor(number: float) -> float:
    return number if math.isinf(number) else float(math.floor(number))


def _math_ceil(number: float) -> float:
    return number if math.isinf(number) else float(math.ceil(number))


def _native(name: str, func: Callable[[List[Any]], Any], **members: Any) -> NativeFunction:
    return NativeFunction(name, func, dict(members))


def _object_entries(args: List[Any]) -> List[Any]:
    owner = _arg(args, 0)
    if isinstance(owner, dict):
        return [[key, value] for key, value in owner.items()]
    if isinstance(owner, (list, str)):
        return [[str(index), value] for index, value in enumerate(owner)]
    if is_nullish(owner):
        raise EvaluationError("TypeError: Cannot convert undefined or null to object")
    return []


def _object_assign(args: List[Any]) -> Any:
    target = _arg(args, 0)
    if not isinstance(target, dict):
        raise EvaluationError("Object.assign() is only supported for plain object targets")
    for source in args[1:]:
        if isinstance(source, dict):
            target.update(source)
    return target


def _string_from_char_code(args: List[Any]) -> str:
    return "".join(chr(to_integer(arg) & 0xFFFF) for arg in args)


def make_globals() -> Dict[str, Any]:
    """Fresh global bindings for one evaluation."""
    return {
        "undefined": UNDEFINED,
        "NaN": math.nan,
        "Infinity": math.inf,
        "Math": {
            "PI": math.pi,
            "E": math.e,
            "LN2": math.log(2),
            "LN10": math.log(10),
            "SQRT2": math.sqrt(2),
            "abs": _native("abs", _math_unary(abs)),
            "floor": _native("floor", _math_unary(_math_floor)),
            "ceil": _native("ceil", _math_unary(_math_ceil)),
            "trunc": _native("trunc", _math_unary(_math_trunc)),
            "round": _native("round", _math_round),
            "sign": _native("sign", _math_sign),
            "sqrt": _native("sqrt", _math_unary(math.sqrt)),
            "cbrt": _native("cbrt", _math_unary(lambda n: math.copysign(abs(n) ** (1 / 3), n))),
            "exp": _native("exp", _math_unary(math.exp)),
            "log": _native("log", _math_unary(lambda n: -math.inf if n == 0 else math.log(n))),
            "log10": _native("log10", _math_unary(lambda n: -math.inf if n == 0 else math.log10(n))),
            "log2": _native("log2", _math_unary(lambda n: -math.inf if n == 0 else math.log2(n))),
            "pow": _native("pow", _math_pow),
            "min": _native("min", lambda args: _math_extreme(args, min, math.inf)),
            "max": _native("max", lambda args: _math_extreme(args, max, -math.inf)),
        },
        "JSON": {
            "stringify": _native("stringify", lambda args: to_json(_arg(args, 0), _arg(args, 2))),
            "parse": _native("parse", lambda args: from_json(_arg(args, 0))),
        },
        "String": _native(
            "String",
            lambda args: to_js_string(args[0]) if args else "",
            fromCharCode=_native("fromCharCode", _string_from_char_code),
        ),
        "Number": _native(
            "Number",
            lambda args: to_number(args[0]) if args else 0.0,
            isInteger=_native("isInteger", lambda args: isinstance(_arg(args, 0), float) and _arg(args, 0).is_integer()),
            isFinite=_native("isFinite", lambda args: isinstance(_arg(args, 0), float) and math.isfinite(_arg(args, 0))),
            isNaN=_native("isNaN", lambda args: isinstance(_arg(args, 0), float) and math.isnan(_arg(args, 0))),
            parseInt=_native("parseInt", _parse_int),
            parseFloat=_native("parseFloat", _parse_float),
            MAX_SAFE_INTEGER=float(2 ** 53 - 1),
            MIN_SAFE_INTEGER=float(-(2 ** 53 - 1)),
        ),
        "Boolean": _native("Boolean", lambda args: is_truthy(_arg(args, 0))),
        "Array": _native(
            "Array",
            lambda args: [UNDEFINED] * to_integer(args[0]) if len(args) == 1 and isinstance(args[0], float) else list(args),
            isArray=_native("isArray", lambda args: isinstance(_arg(args, 0), list)),
            of=_native("of", list),
        ),
        "Object": _native(
            "Object",
            lambda args: _arg(args, 0) if isinstance(_arg(args, 0), (dict, list)) else {},
            keys=_native("keys", lambda args: [entry[0] for entry in _object_entries(args)]),
            values=_native("values", lambda args: [entry[1] for entry in _object_entries(args)]),
            entries=_native("entries", _object_entries),
            assign=_native("assign", _object_assign),
        ),
        "parseInt": _native("parseInt", _parse_int),
        "parseFloat": _native("parseFloat", _parse_float),
        "isNaN": _native("isNaN", lambda args: math.isnan(to_number(_arg(args, 0)))),
        "isFinite": _native("isFinite", lambda args: math.isfinite(to_number(_arg(args, 0)))),
        "encodeURIComponent": _native(
            "encodeURIComponent", lambda args: quote(to_js_string(_arg(args, 0)), safe="-_.!~*'()")
        ),
        "encodeURI": _native(
            "encodeURI", lambda args: quote(to_js_string(_arg(args, 0)), safe="-_.!~*'();/?:@&=+$,#")
        ),
        "decodeURIComponent": _native("decodeURIComponent", lambda args: unquote(to_js_string(_arg(args, 0)))),
        "decodeURI": _native("decodeURI", lambda args: unquote(to_js_string(_arg(args, 0)))),
    }


def instance_of(value: Any, constructor: Any) -> bool:
    """The `instanceof` operator for the built-in constructors."""
    if not isinstance(constructor, JSCallable):
        raise EvaluationError("Right-hand side of 'instanceof' is not callable")
    if constructor.name == "Array":
        return isinstance(value, list)
    if constructor.name == "Object":
        return js_typeof(value) in ("object", "function") and value is not None
    return False


__all__ = [
    "ARRAY_METHODS",
    "STRING_METHODS",
    "NUMBER_METHODS",
    "delete_member",
    "get_member",
    "has_property",
    "instance_of",
    "make_globals",
    "set_member",
]
