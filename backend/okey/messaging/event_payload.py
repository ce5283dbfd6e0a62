"""Wire payload shaping for game service events."""

from __future__ import annotations

from typing import Any

from okey.logic.events import HandDealtEvent, ServiceEvent


def service_event_payload(event: ServiceEvent) -> dict[str, Any]:
    """Return the wire dict for a ServiceEvent.

    Shape: {"type": <event type>, **data_fields}. The domain model's own
    "type" and "target" fields are routing details and are dropped, as are
    None fields. The dealt-hand view is flattened into the top level.
    """
    payload: dict[str, Any] = {
        "type": event.event.value,
        **event.data.model_dump(mode="json", exclude={"type", "target"}, exclude_none=True),
    }
    if isinstance(event.data, HandDealtEvent):
        payload.update(payload.pop("view"))
    return payload
