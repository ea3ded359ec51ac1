"""
Recipient account status derivation.

Both derived booleans are computed here and nowhere else.
"""

from typing import Optional

from ..models.payment import CapabilityStatus, RequirementsStatus

INCOMPLETE_REQUIREMENTS = frozenset(
    {RequirementsStatus.CURRENTLY_DUE.value, RequirementsStatus.PAST_DUE.value}
)


def derive_ready_to_receive_payments(capability_status: Optional[str]) -> bool:
    """A recipient can be paid only while its transfers capability is active."""
    return capability_status == CapabilityStatus.ACTIVE.value


def derive_onboarding_complete(requirements_status: Optional[str]) -> bool:
    # Anything other than an outstanding deadline counts as complete, including absent values.
    return requirements_status not in INCOMPLETE_REQUIREMENTS


def normalize_capability_status(raw: Optional[str]) -> CapabilityStatus:
    try:
        return CapabilityStatus(raw)
    except ValueError:
        return CapabilityStatus.INACTIVE


def normalize_requirements_status(raw: Optional[str]) -> RequirementsStatus:
    if raw in (RequirementsStatus.CURRENTLY_DUE.value, RequirementsStatus.PAST_DUE.value):
        return RequirementsStatus(raw)
    if raw in ("pending_verification", "eventually_due"):
        return RequirementsStatus.PENDING_VERIFICATION
    return RequirementsStatus.COMPLETE
