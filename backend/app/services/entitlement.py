"""
Premium entitlement policy.

Matching features sit behind a premium check. The check is an injectable
policy so a real billing-backed implementation can replace the stub
without touching the matching code.
"""

from abc import ABC, abstractmethod


class EntitlementPolicy(ABC):
    """
    Interface for premium entitlement checks.

    Implementations:
    - AlwaysEntitled: every authenticated caller is premium
    """

    @abstractmethod
    async def is_entitled(self, user: dict) -> bool:
        """
        Decide whether the caller may use premium features.

        Args:
            user: Authenticated caller context (decoded token payload)

        Returns:
            True if entitled, False if the premium gate should refuse
        """
        pass


class AlwaysEntitled(EntitlementPolicy):
    """No entitlement control - always admit."""

    async def is_entitled(self, user: dict) -> bool:
        return True


# Singleton instance
_policy: EntitlementPolicy = AlwaysEntitled()


def get_entitlement_policy() -> EntitlementPolicy:
    """FastAPI dependency returning the active policy (override in tests)."""
    return _policy
