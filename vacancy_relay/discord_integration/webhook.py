from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import requests

from ..models import VacancyNotification


EMBED_COLOR = 0x1ABC9C
BLANK = "\u200b"
APARTMENTS_URL = (
    "https://www.psoas.fi/en/apartments/?_sfm_huoneistojen_tilanne=vapaa_ja_vapautumassa"
)


def _display(value) -> str:
    # Match how the publisher's JSON scalars read: true/false, 5 rather than 5.0.
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _line(label: str, value) -> dict:
    return {"name": f"{label}: {_display(value)}", "value": BLANK, "inline": False}


def _timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def format_vacancy_message(
    notification: VacancyNotification, now: Optional[datetime] = None
) -> dict:
    """Build the Discord webhook body for one vacancy notification.

    Missing text fields render as ``N/A`` and missing counts as ``0``. The
    address value is passed through untouched.
    """

    n = notification
    fields = [
        _line("📅 Date", n.date or "N/A"),
        _line("⏰ Time", n.time or "N/A"),
        _line("📊 Total Vacant", n.count or 0),
        _line("🏠 Shared Apartments", n.shared or 0),
        _line("🛏️ Studio Apartments", n.studio or 0),
        _line("👨‍👩‍👧‍👦 Family Apartments", n.family or 0),
        {"name": "📍 Addresses", "value": n.addresses, "inline": True},
        {
            "name": "🔗 Link",
            "value": f"[View Apartments]({APARTMENTS_URL})",
            "inline": False,
        },
    ]

    return {
        "content": "**🏢 Apartment Vacancy Update**",
        "embeds": [
            {
                "color": EMBED_COLOR,
                "title": "Details of Available Apartments",
                "fields": fields,
                "footer": {"text": "Vacancy data received via MQTT"},
                "timestamp": _timestamp(now),
            }
        ],
    }


def send_vacancy_message(webhook_url: str, payload: dict) -> None:
    # One attempt, library-default timeout; non-2xx raises.
    resp = requests.post(webhook_url, json=payload)
    resp.raise_for_status()
