"""
Per-type field plans for sanitized records.

The first time a record type is sanitized its declared fields are read
once (pydantic ``model_fields`` or ``dataclasses.fields``) and turned into
an ordered tuple of FieldPlan entries. Declaration errors are stored in the
plan rather than raised here, so the walk reports them in field order.

Plans are cached weakly per type, so record types built at runtime
(e.g. pydantic ``create_model``) can still be garbage collected.
"""
import collections.abc
import dataclasses
import re
import sys
import threading
import types
import typing
import weakref
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple

from pydantic import BaseModel

from sanitags.core.config import get_settings
from sanitags.schemas.policy import PolicyName, Sanitize


class FieldKind(str, Enum):
    """How the walk treats a field."""
    SCALAR = "scalar"              # left alone
    NESTED = "nested"              # record to recurse into
    STRING = "string"              # tagged str leaf
    STRING_LIST = "string_list"    # tagged list/tuple of str
    DYNAMIC = "dynamic"            # tagged, declared type too loose; decided from the value
    INVALID = "invalid"            # tagged, declared type cannot be sanitized
    UNRESOLVED = "unresolved"      # annotation names a Sanitize marker that could not be evaluated


@dataclass(frozen=True)
class FieldPlan:
    """One declared field of a record type."""
    name: str
    kind: FieldKind
    policy: Any = None
    type_name: str = ""

    @property
    def tagged(self) -> bool:
        return self.policy is not None


_SEQUENCE_ORIGINS = (
    list,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
)

_SANITIZE_MARKER_REGEX = re.compile(r"\bSanitize\s*\(")

_UNION_TYPES: Tuple[Any, ...] = (typing.Union,)
if hasattr(types, "UnionType"):
    _UNION_TYPES = _UNION_TYPES + (types.UnionType,)


def is_record_type(tp: Any) -> bool:
    """True for pydantic model classes and dataclass classes."""
    # list[str] and friends pass isinstance(..., type) on 3.10
    if not isinstance(tp, type) or typing.get_origin(tp) is not None:
        return False
    return issubclass(tp, BaseModel) or dataclasses.is_dataclass(tp)


def is_record(value: Any) -> bool:
    """True for pydantic model and dataclass instances."""
    if value is None or isinstance(value, type):
        return False
    return isinstance(value, BaseModel) or dataclasses.is_dataclass(value)


def _unwrap(tp: Any) -> Tuple[Any, list]:
    """
    Strip Annotated and Optional wrappers.

    Returns the inner type and any Annotated metadata found on the way.
    """
    metadata: list = []
    while True:
        origin = typing.get_origin(tp)
        if origin is typing.Annotated:
            metadata.extend(getattr(tp, "__metadata__", ()))
            tp = typing.get_args(tp)[0]
            continue
        if origin in _UNION_TYPES:
            args = [a for a in typing.get_args(tp) if a is not type(None)]
            if len(args) == 1:
                tp = args[0]
                continue
        return tp, metadata


def _is_str_type(tp: Any) -> bool:
    inner, _ = _unwrap(tp)
    return inner is str


def classify_type(tp: Any) -> FieldKind:
    """Classify a declared type as NESTED, STRING, STRING_LIST, DYNAMIC or SCALAR."""
    inner, _ = _unwrap(tp)

    if inner is Any or inner is object or isinstance(inner, (str, typing.ForwardRef)):
        return FieldKind.DYNAMIC
    if inner in (list, tuple):
        return FieldKind.DYNAMIC
    if is_record_type(inner):
        return FieldKind.NESTED
    if inner is str:
        return FieldKind.STRING

    origin = typing.get_origin(inner)
    args = typing.get_args(inner)
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis and _is_str_type(args[0]):
            return FieldKind.STRING_LIST
        return FieldKind.SCALAR
    if origin in _SEQUENCE_ORIGINS:
        if len(args) == 1 and _is_str_type(args[0]):
            return FieldKind.STRING_LIST
        return FieldKind.SCALAR

    return FieldKind.SCALAR


def _type_name(tp: Any) -> str:
    if isinstance(tp, type):
        return tp.__name__
    return str(tp).replace("typing.", "")


def _policy_from(markers: list, extra: Any, key: str) -> Any:
    """First declared policy: Annotated marker, then metadata mapping."""
    for marker in markers:
        if isinstance(marker, Sanitize):
            policy = marker.policy
            break
    else:
        policy = extra.get(key) if isinstance(extra, collections.abc.Mapping) else None

    if isinstance(policy, PolicyName):
        return policy.value
    # An empty declaration counts as untagged
    if policy == "":
        return None
    return policy


def _unresolved_text(tp: Any) -> Any:
    if isinstance(tp, typing.ForwardRef):
        return tp.__forward_arg__
    if isinstance(tp, str):
        return tp
    return None


def _plan_field(name: str, tp: Any, markers: list, extra: Any, key: str) -> FieldPlan:
    inner, nested_markers = _unwrap(tp)

    # A marker inside an unevaluated annotation cannot be read; never treat it as untagged
    text = _unresolved_text(inner)
    if text is not None and _SANITIZE_MARKER_REGEX.search(text):
        return FieldPlan(name=name, kind=FieldKind.UNRESOLVED, policy=None, type_name=text)

    policy = _policy_from(list(markers) + nested_markers, extra, key)
    kind = classify_type(tp)

    if policy is not None and kind in (FieldKind.NESTED, FieldKind.SCALAR):
        kind = FieldKind.INVALID
    elif policy is None and kind is not FieldKind.NESTED:
        kind = FieldKind.SCALAR

    return FieldPlan(name=name, kind=kind, policy=policy, type_name=_type_name(inner))


def _model_plans(record_type: type, key: str) -> Tuple[FieldPlan, ...]:
    plans = []
    for name, info in record_type.model_fields.items():
        plans.append(
            _plan_field(name, info.annotation, list(info.metadata), info.json_schema_extra, key)
        )
    return tuple(plans)


def _resolve_annotation(record_type: type, tp: Any) -> Any:
    """
    Evaluate one string annotation against the defining module and class.

    Returns the annotation unchanged when it names something not visible
    from there (e.g. a class local to a function).
    """
    text = _unresolved_text(tp)
    if text is None:
        return tp

    module = sys.modules.get(record_type.__module__)
    globalns = dict(vars(module)) if module is not None else {}
    localns = dict(vars(record_type))
    localns.setdefault(record_type.__name__, record_type)
    try:
        return eval(text, globalns, localns)
    except (NameError, AttributeError, TypeError, SyntaxError):
        return text


def _dataclass_plans(record_type: type, key: str) -> Tuple[FieldPlan, ...]:
    try:
        hints = typing.get_type_hints(record_type, include_extras=True)
    except (NameError, TypeError):
        # Some forward reference is not visible; resolve field by field instead
        hints = None

    plans = []
    for f in dataclasses.fields(record_type):
        if hints is not None:
            tp = hints.get(f.name, f.type)
        else:
            tp = _resolve_annotation(record_type, f.type)
        plans.append(_plan_field(f.name, tp, [], f.metadata, key))
    return tuple(plans)


_plan_cache: "weakref.WeakKeyDictionary[type, Dict[str, Tuple[FieldPlan, ...]]]" = (
    weakref.WeakKeyDictionary()
)
_plan_cache_lock = threading.Lock()


def _build_plans(record_type: type, key: str) -> Tuple[FieldPlan, ...]:
    if isinstance(record_type, type) and issubclass(record_type, BaseModel):
        return _model_plans(record_type, key)
    return _dataclass_plans(record_type, key)


def get_field_plans(record_type: type) -> Tuple[FieldPlan, ...]:
    """Cached plans for record_type under the configured annotation key."""
    key = get_settings().annotation_key

    with _plan_cache_lock:
        plans = _plan_cache.get(record_type, {}).get(key)
    if plans is not None:
        return plans

    plans = _build_plans(record_type, key)
    with _plan_cache_lock:
        return _plan_cache.setdefault(record_type, {}).setdefault(key, plans)


def describe_record(record: Any) -> Tuple[FieldPlan, ...]:
    """
    Field plans for a record type or instance, in declared order.

    Raises:
        TypeError: record is neither a pydantic model nor a dataclass
    """
    record_type = record if isinstance(record, type) else type(record)
    if not is_record_type(record_type):
        raise TypeError(
            f"Expected a pydantic model or dataclass, got {record_type.__name__}"
        )
    return get_field_plans(record_type)


def clear_plan_cache() -> None:
    """Drop all cached field plans."""
    with _plan_cache_lock:
        _plan_cache.clear()
