"""
Plan tiers and their resource limits.
"""

from typing import Literal

PlanType = Literal["starter", "pro"]

PLAN_LIMITS: dict[str, dict[str, int]] = {
    "starter": {"maxBranches": 1, "maxServices": 5, "maxAdmins": 1},
    "pro": {"maxBranches": 5, "maxServices": 20, "maxAdmins": 3},
}


def get_plan_limits(plan: str) -> dict[str, int]:
    """Snapshot of the limits for a plan tier. Unknown tiers fall back to starter."""
    return dict(PLAN_LIMITS.get(plan, PLAN_LIMITS["starter"]))


def limit_reached_message(label: str, plural: str, plan: str, maximum: int) -> str:
    return f"{label} limit reached. Your {plan} plan allows up to {maximum} {plural}. Upgrade to add more."
