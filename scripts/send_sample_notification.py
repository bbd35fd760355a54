from __future__ import annotations

import logging

from vacancy_relay.config_loader import load_config
from vacancy_relay.discord_integration.webhook import format_vacancy_message, send_vacancy_message
from vacancy_relay.models import VacancyNotification


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    cfg = load_config()

    # Posts straight to the webhook, bypassing the broker, to check the embed layout.
    sample = VacancyNotification(
        date="2024-01-01",
        time="10:00",
        count=5,
        shared=2,
        studio=3,
        family=0,
        addresses="Main St 1",
    )
    send_vacancy_message(cfg.discord_webhook_url, format_vacancy_message(sample))
    logging.getLogger("vacancy_relay.scripts").info("Sample notification sent")


if __name__ == "__main__":
    main()
