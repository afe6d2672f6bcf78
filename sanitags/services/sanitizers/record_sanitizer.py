"""
Record sanitizer.

Walks a record (pydantic model or dataclass instance) in declared field
order and rewrites, in place, every string or list-of-strings field that
declares a sanitization policy. Untagged nested records are recursed into;
any structural error aborts the whole walk.

Fields already processed when an error is raised stay rewritten; callers
must not persist a record whose sanitization failed.

Text-safe: No logging of field values.
"""
from typing import Any, Optional

from sanitags.core.logging import get_safe_logger
from sanitags.services.exceptions import InvalidPropertyTypeError, UnresolvedAnnotationError
from sanitags.services.registry import PolicyRegistry, get_policy_registry
from sanitags.services.sanitizers.field_plan import (
    FieldKind,
    FieldPlan,
    get_field_plans,
    is_record,
)

logger = get_safe_logger(__name__)

_MISSING = object()


def _runtime_kind(value: Any, path: str) -> FieldKind:
    """Resolve a DYNAMIC plan entry from the value it holds."""
    if value is None or isinstance(value, str):
        return FieldKind.STRING
    if isinstance(value, (list, tuple)):
        return FieldKind.STRING_LIST
    raise InvalidPropertyTypeError(type(value).__name__, field_path=path)


def _check_string_list(value: Any, path: str) -> None:
    if not isinstance(value, (list, tuple)):
        raise InvalidPropertyTypeError(type(value).__name__, field_path=path)
    for element in value:
        if not isinstance(element, str):
            raise InvalidPropertyTypeError(
                f"list of {type(element).__name__}", field_path=path
            )


def _sanitize_leaf(
    record: Any,
    plan: FieldPlan,
    value: Any,
    registry: PolicyRegistry,
    path: str,
) -> None:
    if plan.kind is FieldKind.INVALID:
        raise InvalidPropertyTypeError(plan.type_name, field_path=path)

    kind = plan.kind
    if kind is FieldKind.DYNAMIC:
        kind = _runtime_kind(value, path)

    if kind is FieldKind.STRING:
        if value is not None and not isinstance(value, str):
            raise InvalidPropertyTypeError(type(value).__name__, field_path=path)
        func = registry.resolve(plan.policy, field_path=path)
        if value is not None:
            setattr(record, plan.name, func(value))
        return

    # STRING_LIST: validate every element, resolve once, then rewrite in order
    if value is not None:
        _check_string_list(value, path)
    func = registry.resolve(plan.policy, field_path=path)
    if value is None:
        return

    logger.debug("Sanitizing list field", field=path, policy=plan.policy, elements=len(value))
    if isinstance(value, list):
        for i, element in enumerate(value):
            value[i] = func(element)
    else:
        setattr(record, plan.name, tuple(func(element) for element in value))


def _sanitize(record: Any, registry: PolicyRegistry, prefix: str, depth: int) -> None:
    for plan in get_field_plans(type(record)):
        path = f"{prefix}{plan.name}"
        value = getattr(record, plan.name, _MISSING)
        if value is _MISSING:
            continue

        if plan.kind is FieldKind.UNRESOLVED:
            raise UnresolvedAnnotationError(plan.type_name, field_path=path)

        if not plan.tagged:
            if is_record(value):
                logger.debug(
                    "Descending into nested record",
                    record_type=type(value).__name__,
                    field=path,
                    depth=depth + 1,
                )
                _sanitize(value, registry, f"{path}.", depth + 1)
            continue

        if is_record(value):
            raise InvalidPropertyTypeError(type(value).__name__, field_path=path)

        _sanitize_leaf(record, plan, value, registry, path)


def sanitize_record(record: Any, registry: Optional[PolicyRegistry] = None) -> None:
    """
    Sanitize a record in place.

    Args:
        record: pydantic model or dataclass instance (mutated in place)
        registry: Registry to resolve policies from (default: process-wide one)

    Raises:
        InvalidPropertyTypeError: a tagged field is not a string or list of strings
        UnresolvedAnnotationError: a field's Sanitize marker sits in an annotation
            that cannot be evaluated (a subclass of InvalidPropertyTypeError)
        InvalidTagValueError: a tagged field names an unrecognized policy
            (raised as UnknownPolicyError)
        PolicyNotConfiguredError: the named policy has no sanitize function
        TypeError: record is not a record instance
    """
    if not is_record(record):
        raise TypeError(
            f"Expected a pydantic model or dataclass instance, got {type(record).__name__}"
        )

    if registry is None:
        registry = get_policy_registry()

    logger.debug("Sanitizing record", record_type=type(record).__name__, depth=0)
    _sanitize(record, registry, "", 0)
