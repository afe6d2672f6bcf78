"""
sanitags - policy-driven sanitization of untrusted text inside typed records.

    from sanitags import PolicyName, Sanitize, SanitizeConfig, sanitize_record, setup

    setup(SanitizeConfig(strip_all=strip_tags, safe_ugc=ugc_policy.sanitize))

    class User(BaseModel):
        name: Annotated[str, Sanitize(PolicyName.STRIP_ALL)]
        bio: str = sanitize_field(PolicyName.SAFE_UGC, default="")

    sanitize_record(user)
"""
from sanitags.schemas.policy import (
    PolicyName,
    Sanitize,
    SanitizeConfig,
    SanitizeFunc,
    sanitize_field,
)
from sanitags.services.exceptions import (
    InvalidPropertyTypeError,
    InvalidTagValueError,
    PolicyNotConfiguredError,
    SanitizeError,
    SanitizeErrorCode,
    UnknownPolicyError,
    UnresolvedAnnotationError,
)
from sanitags.services.registry import PolicyRegistry, get_policy_registry, setup
from sanitags.services.sanitizers import (
    FieldKind,
    FieldPlan,
    clear_plan_cache,
    describe_record,
    sanitize_record,
)

__all__ = [
    "FieldKind",
    "FieldPlan",
    "InvalidPropertyTypeError",
    "InvalidTagValueError",
    "PolicyName",
    "PolicyNotConfiguredError",
    "PolicyRegistry",
    "Sanitize",
    "SanitizeConfig",
    "SanitizeError",
    "SanitizeErrorCode",
    "SanitizeFunc",
    "UnknownPolicyError",
    "UnresolvedAnnotationError",
    "clear_plan_cache",
    "describe_record",
    "get_policy_registry",
    "sanitize_field",
    "sanitize_record",
    "setup",
]
