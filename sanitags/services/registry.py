"""
Process-wide policy registry.
Maps each PolicyName to the caller-supplied sanitize function.

The lock guards only the swap and the lookup; returned functions are
invoked by the caller outside the lock, so a slow sanitizer never blocks
reconfiguration or other lookups.
"""
import threading
from typing import Optional, Union

from sanitags.core.logging import get_safe_logger
from sanitags.schemas.policy import PolicyName, SanitizeConfig, SanitizeFunc
from sanitags.services.exceptions import PolicyNotConfiguredError, UnknownPolicyError

logger = get_safe_logger(__name__)


def parse_policy_name(
    policy_name: Union[PolicyName, str],
    field_path: Optional[str] = None,
) -> PolicyName:
    """Map a declared policy name to PolicyName, raising UnknownPolicyError."""
    if isinstance(policy_name, PolicyName):
        return policy_name
    try:
        return PolicyName(policy_name)
    except ValueError:
        raise UnknownPolicyError(policy_name, field_path=field_path) from None


class PolicyRegistry:
    """
    Thread-safe singleton holding the active SanitizeConfig.

    Usage:
        setup(SanitizeConfig(strip_all=strip_tags, safe_ugc=ugc_policy.sanitize))
        func = get_policy_registry().resolve(PolicyName.STRIP_ALL)
        cleaned = func(raw)
    """
    _instance: "PolicyRegistry | None" = None
    _lock = threading.Lock()

    def __new__(cls) -> "PolicyRegistry":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    instance = super().__new__(cls)
                    instance._config: Optional[SanitizeConfig] = None
                    instance._data_lock = threading.Lock()
                    cls._instance = instance
        return cls._instance

    def configure(self, config: SanitizeConfig) -> None:
        """
        Replace the active config atomically.

        Lookups already completed keep the function they obtained; every
        resolve after this call observes the new mapping.
        """
        if not isinstance(config, SanitizeConfig):
            raise TypeError(
                f"Expected SanitizeConfig, got {type(config).__name__}"
            )

        with self._data_lock:
            self._config = config

        logger.info(
            "Sanitize policies configured",
            configured=",".join(
                p.value for p in PolicyName if config.func_for(p) is not None
            ) or "none",
        )

    def resolve(
        self,
        policy_name: Union[PolicyName, str],
        field_path: Optional[str] = None,
    ) -> SanitizeFunc:
        """
        Return the sanitize function registered for policy_name.

        Args:
            policy_name: PolicyName member or its string value
            field_path: Field being sanitized, attached to raised errors

        Raises:
            UnknownPolicyError: policy_name is not a recognized policy
            PolicyNotConfiguredError: setup() was never called, or the slot is unset
        """
        policy = parse_policy_name(policy_name, field_path=field_path)

        with self._data_lock:
            config = self._config

        func = config.func_for(policy) if config is not None else None
        if func is None:
            raise PolicyNotConfiguredError(policy.value, field_path=field_path)
        return func

    def is_configured(self) -> bool:
        """True once configure() has been called."""
        with self._data_lock:
            return self._config is not None

    def get_stats(self) -> dict:
        """Report which policies have a function set (never the functions)."""
        with self._data_lock:
            config = self._config
        return {
            "configured": config is not None,
            "policies": {
                p.value: config is not None and config.func_for(p) is not None
                for p in PolicyName
            },
        }

    def reset(self) -> None:
        """Drop the active config (for testing)."""
        with self._data_lock:
            self._config = None


def get_policy_registry() -> PolicyRegistry:
    """Get the singleton policy registry instance."""
    return PolicyRegistry()


def setup(config: SanitizeConfig) -> None:
    """Configure the process-wide sanitize functions."""
    get_policy_registry().configure(config)
