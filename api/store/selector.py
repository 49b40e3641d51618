# Copyright (c) 2024 Docdata Contributors
# SPDX-License-Identifier: MIT

"""
Mango-style selectors.

Provides the pieces both the query executor and the embedded store need:
- referenced_fields(): which document fields a selector touches
- matches(): evaluate a selector against a document
- collation_key(): CouchDB view collation ordering for sorts
- sort_fields() / project(): sort and "fields" clause handling
"""
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

COMBINATORS = {"$and", "$or", "$nor"}
FIELD_OPERATORS = {
    "$eq", "$ne", "$gt", "$gte", "$lt", "$lte",
    "$in", "$nin", "$exists", "$regex", "$size", "$all", "$not",
}

_MISSING = object()


class SelectorError(ValueError):
    """The selector is not a valid query"""


def referenced_fields(selector: Any, prefix: str = "") -> Set[str]:
    """Return every dotted field path the selector constrains.

    Raises SelectorError on unknown operators or malformed clauses.
    """
    if not isinstance(selector, dict):
        raise SelectorError("selector must be a JSON object")
    fields: Set[str] = set()
    for key, value in selector.items():
        if key in COMBINATORS:
            if not isinstance(value, list):
                raise SelectorError(f"{key} expects an array of selectors")
            for sub in value:
                fields |= referenced_fields(sub, prefix)
        elif key == "$not":
            fields |= referenced_fields(value, prefix)
        elif key.startswith("$"):
            raise SelectorError(f"unknown operator {key}")
        else:
            path = f"{prefix}.{key}" if prefix else key
            fields |= _field_paths(path, value)
    return fields


def _field_paths(path: str, condition: Any) -> Set[str]:
    if not isinstance(condition, dict) or not condition:
        return {path}
    operators = [k for k in condition if k.startswith("$")]
    if not operators:
        return referenced_fields(condition, path)
    if len(operators) != len(condition):
        raise SelectorError(f"cannot mix operators and sub-fields on {path}")
    for op in operators:
        if op not in FIELD_OPERATORS:
            raise SelectorError(f"unknown operator {op}")
        _check_argument(op, condition[op])
    return {path}


def _check_argument(op: str, arg: Any) -> None:
    if op in ("$in", "$nin", "$all"):
        _as_list(op, arg)
    elif op == "$regex":
        if not isinstance(arg, str):
            raise SelectorError("$regex expects a string")
        try:
            re.compile(arg)
        except re.error as e:
            raise SelectorError(f"invalid $regex: {e}") from e
    elif op == "$size" and (not isinstance(arg, int) or isinstance(arg, bool)):
        raise SelectorError("$size expects an integer")
    elif op == "$not" and isinstance(arg, dict) and all(k.startswith("$") for k in arg):
        for inner, inner_arg in arg.items():
            if inner not in FIELD_OPERATORS:
                raise SelectorError(f"unknown operator {inner}")
            _check_argument(inner, inner_arg)


def get_path(doc: Dict[str, Any], path: str) -> Any:
    """Value at a dotted path, or _MISSING"""
    current: Any = doc
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def matches(doc: Dict[str, Any], selector: Dict[str, Any], prefix: str = "") -> bool:
    """True when doc satisfies every clause of selector"""
    for key, value in selector.items():
        if key == "$and":
            if not all(matches(doc, sub, prefix) for sub in value):
                return False
        elif key == "$or":
            if not any(matches(doc, sub, prefix) for sub in value):
                return False
        elif key == "$nor":
            if any(matches(doc, sub, prefix) for sub in value):
                return False
        elif key == "$not":
            if matches(doc, value, prefix):
                return False
        else:
            path = f"{prefix}.{key}" if prefix else key
            if not _match_condition(doc, path, value):
                return False
    return True


def _match_condition(doc: Dict[str, Any], path: str, condition: Any) -> bool:
    if isinstance(condition, dict) and condition:
        if all(k.startswith("$") for k in condition):
            actual = get_path(doc, path)
            return all(_apply(op, actual, arg) for op, arg in condition.items())
        return matches(doc, condition, path)
    return _equals(get_path(doc, path), condition)


def _equals(actual: Any, expected: Any) -> bool:
    if actual is _MISSING:
        return False
    return collation_key(actual) == collation_key(expected)


def _compare(actual: Any, expected: Any, predicate: Callable[[Any, Any], bool]) -> bool:
    if actual is _MISSING:
        return False
    return predicate(collation_key(actual), collation_key(expected))


def _apply(op: str, actual: Any, arg: Any) -> bool:
    if op == "$eq":
        return _equals(actual, arg)
    if op == "$ne":
        return actual is not _MISSING and not _equals(actual, arg)
    if op == "$gt":
        return _compare(actual, arg, lambda a, b: a > b)
    if op == "$gte":
        return _compare(actual, arg, lambda a, b: a >= b)
    if op == "$lt":
        return _compare(actual, arg, lambda a, b: a < b)
    if op == "$lte":
        return _compare(actual, arg, lambda a, b: a <= b)
    if op == "$in":
        return actual is not _MISSING and any(_equals(actual, v) for v in _as_list(op, arg))
    if op == "$nin":
        return actual is not _MISSING and not any(_equals(actual, v) for v in _as_list(op, arg))
    if op == "$exists":
        return (actual is not _MISSING) == bool(arg)
    if op == "$regex":
        return isinstance(actual, str) and re.search(str(arg), actual) is not None
    if op == "$size":
        return isinstance(actual, list) and len(actual) == arg
    if op == "$all":
        return isinstance(actual, list) and all(
            any(_equals(item, v) for item in actual) for v in _as_list(op, arg)
        )
    if op == "$not":
        if isinstance(arg, dict) and all(k.startswith("$") for k in arg):
            return not all(_apply(o, actual, a) for o, a in arg.items())
        return not _equals(actual, arg)
    raise SelectorError(f"unknown operator {op}")


def _as_list(op: str, arg: Any) -> List[Any]:
    if not isinstance(arg, list):
        raise SelectorError(f"{op} expects an array")
    return arg


def collation_key(value: Any) -> Tuple:
    """Sort key following CouchDB collation: null < false < true < numbers
    < strings < arrays < objects."""
    if value is None or value is _MISSING:
        return (0,)
    if value is False:
        return (1,)
    if value is True:
        return (2,)
    if isinstance(value, (int, float)):
        return (3, value)
    if isinstance(value, str):
        return (4, value)
    if isinstance(value, list):
        return (5, tuple(collation_key(v) for v in value))
    if isinstance(value, dict):
        return (6, tuple((k, collation_key(v)) for k, v in value.items()))
    return (7, str(value))


def sort_fields(sort: Iterable[Any]) -> List[Tuple[str, str]]:
    """Normalize a sort clause into (field, direction) pairs.

    Accepts ["a", "b"] or [{"a": "asc"}, {"b": "desc"}].
    """
    out: List[Tuple[str, str]] = []
    for entry in sort or []:
        if isinstance(entry, str):
            out.append((entry, "asc"))
        elif isinstance(entry, dict) and len(entry) == 1:
            name, direction = next(iter(entry.items()))
            if direction not in ("asc", "desc"):
                raise SelectorError(f"invalid sort direction {direction!r}")
            out.append((name, direction))
        else:
            raise SelectorError("invalid sort clause")
    return out


def sort_docs(docs: List[Dict[str, Any]], sort: Iterable[Any]) -> List[Dict[str, Any]]:
    """Stable multi-key sort of documents"""
    result = list(docs)
    for name, direction in reversed(sort_fields(sort)):
        result.sort(
            key=lambda d: collation_key(get_path(d, name)),
            reverse=(direction == "desc"),
        )
    return result


def project(doc: Dict[str, Any], fields: Optional[List[str]]) -> Dict[str, Any]:
    """Keep only the requested (possibly dotted) fields of a document"""
    if not fields:
        return doc
    out: Dict[str, Any] = {}
    for path in fields:
        value = get_path(doc, path)
        if value is _MISSING:
            continue
        target = out
        parts = path.split(".")
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = value
    return out
