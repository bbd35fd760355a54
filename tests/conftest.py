from __future__ import annotations

from pathlib import Path

import pytest

from vacancy_relay import config_loader
from vacancy_relay.config_loader import AppConfig


FAKE_CA = "-----BEGIN CERTIFICATE-----\nMIIBfake\n-----END CERTIFICATE-----\n"


@pytest.fixture
def relay_env(tmp_path, monkeypatch):
    """Complete environment with a CA file in the working directory."""

    monkeypatch.setattr(config_loader, "load_dotenv", lambda *args, **kwargs: False)
    monkeypatch.chdir(tmp_path)
    (tmp_path / "ca.crt").write_text(FAKE_CA, encoding="utf-8")

    values = {
        "MQTT_BROKER_URL": "mqtts://broker.example.com",
        "MQTT_PORT": "8883",
        "TOPIC": "vacancies/psoas",
        "DISCORD_WEBHOOK_URL": "https://discord.example/api/webhooks/1/abc",
    }
    for name, value in values.items():
        monkeypatch.setenv(name, value)
    for name in ("MQTT_CA_CERT", "MQTT_CLIENT_ID", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return values


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(
        broker_url="mqtt://broker.example.com",
        broker_port=1883,
        topic="vacancies/psoas",
        discord_webhook_url="https://discord.example/api/webhooks/1/abc",
        ca_cert_path=Path("ca.crt"),
        ca_cert_data=FAKE_CA,
        client_id="mqtt-discord-bridge-test",
    )
