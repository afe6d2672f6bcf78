"""
Policy declarations for sanitized records.

A record field opts into sanitization by naming a policy on its type
definition, either as an ``Annotated`` marker::

    name: Annotated[str, Sanitize(PolicyName.STRIP_ALL)]

or through field metadata (pydantic ``json_schema_extra`` / dataclass
``metadata``) under the configured annotation key::

    bio: str = sanitize_field("safe-user-generated-content", default="")
    tags: list[str] = field(default_factory=list, metadata={"sanitize": "strip-all"})
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Union

from pydantic import Field

from sanitags.core.config import get_settings


SanitizeFunc = Callable[[str], str]


class PolicyName(str, Enum):
    """Recognized sanitization policies."""
    STRIP_ALL = "strip-all"
    SAFE_UGC = "safe-user-generated-content"


@dataclass(frozen=True)
class Sanitize:
    """``Annotated`` marker naming the policy of a field."""
    policy: Union[PolicyName, str]


@dataclass(frozen=True)
class SanitizeConfig:
    """
    Sanitize functions for every policy.

    strip_all: removes all markup from a string
    safe_ugc: removes everything except a safe subset of markup

    A slot left as None is only reported when that policy is resolved.
    """
    strip_all: Optional[SanitizeFunc] = None
    safe_ugc: Optional[SanitizeFunc] = None

    def func_for(self, policy: PolicyName) -> Optional[SanitizeFunc]:
        if policy is PolicyName.STRIP_ALL:
            return self.strip_all
        return self.safe_ugc


def sanitize_field(policy: Union[PolicyName, str], **kwargs: Any) -> Any:
    """
    pydantic ``Field`` declaring a sanitization policy.

    Extra keyword arguments are passed through to ``Field``; an existing
    ``json_schema_extra`` dict is merged.
    """
    extra = dict(kwargs.pop("json_schema_extra", None) or {})
    value = policy.value if isinstance(policy, PolicyName) else policy
    extra[get_settings().annotation_key] = value
    return Field(json_schema_extra=extra, **kwargs)
