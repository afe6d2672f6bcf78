"""
Sanitizers module.
Contains the record walker and its per-type field plans.
"""
from sanitags.services.sanitizers.field_plan import (
    FieldKind,
    FieldPlan,
    clear_plan_cache,
    describe_record,
)
from sanitags.services.sanitizers.record_sanitizer import sanitize_record

__all__ = [
    "FieldKind",
    "FieldPlan",
    "clear_plan_cache",
    "describe_record",
    "sanitize_record",
]
