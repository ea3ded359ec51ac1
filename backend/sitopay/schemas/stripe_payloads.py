"""
Typed views over the Stripe payloads this service consumes.

Version 1 of the schema covers the v2 core account snapshot and the thin
account events delivered to the payments webhook. Everything is parsed from
plain dictionaries so the rest of the code never indexes raw provider JSON.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

PAYLOAD_SCHEMA_VERSION = 1

ACCOUNT_EVENT_PREFIX = "v2.core.account"
REQUIREMENTS_UPDATED = "v2.core.account[requirements].updated"
CAPABILITY_STATUS_UPDATED = "v2.core.account[configuration.recipient].capability_status_updated"
# Older endpoints deliver the shortened configuration path
LEGACY_CAPABILITY_STATUS_UPDATED = "v2.core.account[.recipient].capability_status_updated"


def _dig(payload: Any, *path: str) -> Any:
    current = payload
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


class _ProviderModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    schema_version: Literal[1] = PAYLOAD_SCHEMA_VERSION


class AccountSnapshot(_ProviderModel):
    """A single read of a v2 account, with the two raw status fields lifted out."""

    id: str
    display_name: Optional[str] = None
    dashboard: Optional[str] = None
    raw_capability_status: Optional[str] = None
    raw_requirements_status: Optional[str] = None
    capabilities: Dict[str, Any] = Field(default_factory=dict)
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_provider(
        cls, payload: Mapping[str, Any], *, fetched_at: Optional[datetime] = None
    ) -> "AccountSnapshot":
        capabilities = _dig(payload, "configuration", "recipient", "capabilities")
        data: Dict[str, Any] = {
            "id": payload.get("id"),
            "display_name": payload.get("display_name"),
            "dashboard": payload.get("dashboard"),
            "raw_capability_status": _dig(capabilities, "stripe_balance", "stripe_transfers", "status"),
            "raw_requirements_status": _dig(payload, "requirements", "summary", "minimum_deadline", "status"),
            "capabilities": dict(capabilities) if isinstance(capabilities, Mapping) else {},
        }
        if fetched_at is not None:
            data["fetched_at"] = fetched_at
        return cls.model_validate(data)


class _AccountEvent(_ProviderModel):
    id: str
    type: str
    account_id: Optional[str] = None
    created: Optional[str] = None


class RequirementsUpdatedEvent(_AccountEvent):
    kind: Literal["requirements_updated"] = "requirements_updated"


class CapabilityStatusUpdatedEvent(_AccountEvent):
    kind: Literal["capability_status_updated"] = "capability_status_updated"


class UnhandledEvent(_AccountEvent):
    kind: Literal["unhandled"] = "unhandled"


ProviderEvent = Union[RequirementsUpdatedEvent, CapabilityStatusUpdatedEvent, UnhandledEvent]


def is_thin_account_event(event_type: Optional[str]) -> bool:
    return bool(event_type) and str(event_type).startswith(ACCOUNT_EVENT_PREFIX)


def extract_account_id(payload: Mapping[str, Any]) -> Optional[str]:
    """
    Find the account an event refers to.

    v2 events carry it on ``related_object``; ``context`` and the v1 style
    ``account`` field are accepted as fallbacks.
    """
    related = payload.get("related_object")
    if isinstance(related, Mapping) and related.get("id"):
        related_type = related.get("type")
        if related_type in (None, ACCOUNT_EVENT_PREFIX):
            return str(related["id"])
    for key in ("context", "account"):
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def parse_event(payload: Mapping[str, Any]) -> ProviderEvent:
    """Classify a (full) event payload into one of the known variants."""
    event_type = str(payload.get("type") or "")
    fields = {
        "id": str(payload.get("id") or ""),
        "type": event_type,
        "account_id": extract_account_id(payload),
        "created": str(payload["created"]) if payload.get("created") is not None else None,
    }
    if event_type == REQUIREMENTS_UPDATED:
        return RequirementsUpdatedEvent(**fields)
    if event_type in (CAPABILITY_STATUS_UPDATED, LEGACY_CAPABILITY_STATUS_UPDATED):
        return CapabilityStatusUpdatedEvent(**fields)
    return UnhandledEvent(**fields)
