from __future__ import annotations

import os
import time
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv


BASE_DIR = Path(__file__).resolve().parent.parent

REQUIRED_VARS = (
    "MQTT_BROKER_URL",
    "MQTT_PORT",
    "TOPIC",
    "DISCORD_WEBHOOK_URL",
)

DEFAULT_CA_CERT = "ca.crt"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(RuntimeError):
    """Raised at startup when the relay cannot be configured."""


@dataclass(frozen=True)
class AppConfig:
    broker_url: str
    broker_port: int
    topic: str
    discord_webhook_url: str
    ca_cert_path: Path
    ca_cert_data: str
    client_id: str
    log_level: str = "INFO"


def _default_client_id() -> str:
    return f"mqtt-discord-bridge-{int(time.time() * 1000)}"


def load_config() -> AppConfig:
    """Read connection settings from the environment and the CA file.

    Every missing variable is reported in one ``ConfigError`` rather than
    stopping at the first.
    """

    # .env in the working directory (or a parent) wins over one beside the source tree.
    load_dotenv(find_dotenv(usecwd=True) or BASE_DIR / ".env")

    missing = [name for name in REQUIRED_VARS if not os.getenv(name)]
    if missing:
        raise ConfigError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    raw_port = os.environ["MQTT_PORT"]
    try:
        broker_port = int(raw_port)
    except ValueError:
        raise ConfigError(f"MQTT_PORT must be an integer, got {raw_port!r}") from None

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")

    ca_cert_path = Path(os.getenv("MQTT_CA_CERT") or DEFAULT_CA_CERT)
    try:
        with open(ca_cert_path, "r", encoding="utf-8") as f:
            ca_cert_data = f.read()
    except OSError as exc:
        raise ConfigError(f"Cannot read CA certificate {ca_cert_path}: {exc}") from exc

    return AppConfig(
        broker_url=os.environ["MQTT_BROKER_URL"],
        broker_port=broker_port,
        topic=os.environ["TOPIC"],
        discord_webhook_url=os.environ["DISCORD_WEBHOOK_URL"],
        ca_cert_path=ca_cert_path,
        ca_cert_data=ca_cert_data,
        client_id=os.getenv("MQTT_CLIENT_ID") or _default_client_id(),
        log_level=log_level,
    )
