from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional


class PayloadError(ValueError):
    """An inbound MQTT payload that cannot be read as a vacancy record."""


@dataclass
class VacancyNotification:
    # Values are carried exactly as published; the formatter handles absent ones.
    date: Optional[Any] = None
    time: Optional[Any] = None
    count: Any = 0
    shared: Any = 0
    studio: Any = 0
    family: Any = 0
    addresses: Any = None
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict) -> "VacancyNotification":
        return cls(
            date=data.get("date"),
            time=data.get("time"),
            count=data.get("count", 0),
            shared=data.get("shared", 0),
            studio=data.get("studio", 0),
            family=data.get("family", 0),
            addresses=data.get("addresses"),
            raw=data,
        )


def parse_notification(payload: str | bytes) -> VacancyNotification:
    """Parse an MQTT payload into a notification.

    Each message is a full replacement record; there are no partial updates.
    """

    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise PayloadError(f"Payload is not valid UTF-8: {exc}") from exc

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise PayloadError(f"Payload is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise PayloadError(f"Expected a JSON object, got {type(data).__name__}")

    return VacancyNotification.from_dict(data)
