from __future__ import annotations

import logging
import ssl
import sys
from typing import Optional
from urllib.parse import urlparse

import paho.mqtt.client as mqtt
import requests

from .config_loader import AppConfig, ConfigError, load_config
from .discord_integration.webhook import format_vacancy_message, send_vacancy_message
from .models import PayloadError, parse_notification


logger = logging.getLogger("vacancy_relay.bridge")

TLS_SCHEMES = {"mqtts", "ssl", "tls", "wss"}
WEBSOCKET_SCHEMES = {"ws", "wss"}


def parse_broker_url(url: str) -> tuple[str, str, bool, str]:
    """Split a broker URL into (host, transport, use_tls, websocket path).

    A bare host name is treated as ``mqtt://host``.
    """

    if "://" not in url:
        url = f"mqtt://{url}"
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    if not parsed.hostname:
        raise ConfigError(f"MQTT_BROKER_URL has no host: {url!r}")

    transport = "websockets" if scheme in WEBSOCKET_SCHEMES else "tcp"
    path = parsed.path or "/mqtt"
    return parsed.hostname, transport, scheme in TLS_SCHEMES, path


def build_tls_context(ca_cert_data: str) -> ssl.SSLContext:
    try:
        ctx = ssl.create_default_context(cadata=ca_cert_data)
    except ssl.SSLError as exc:
        raise ConfigError(f"CA certificate is not valid PEM data: {exc}") from exc
    # Brokers with self-signed certs are accepted as-is.
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


class MqttDiscordBridge:
    """Subscribes to the vacancy topic and forwards each message to Discord."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self.client: Optional[mqtt.Client] = None

    def _build_client(self) -> mqtt.Client:
        host, transport, use_tls, path = parse_broker_url(self.config.broker_url)

        client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.config.client_id,
            transport=transport,
        )
        if transport == "websockets":
            client.ws_set_options(path=path)
        if use_tls:
            client.tls_set_context(build_tls_context(self.config.ca_cert_data))

        client.on_connect = self._on_connect
        client.on_connect_fail = self._on_connect_fail
        client.on_subscribe = self._on_subscribe
        client.on_message = self._on_message
        client.on_disconnect = self._on_disconnect
        return client

    def connect(self) -> mqtt.Client:
        self.client = self._build_client()
        host, _, _, _ = parse_broker_url(self.config.broker_url)
        logger.info("Connecting to MQTT broker %s:%s", host, self.config.broker_port)
        self.client.connect_async(host, self.config.broker_port)
        return self.client

    def run_forever(self) -> None:
        client = self.connect()
        try:
            client.loop_forever(retry_first_connection=True)
        except KeyboardInterrupt:
            logger.info("Shutting down vacancy relay")
            client.disconnect()

    # paho callbacks, run on the network loop thread

    def _on_connect(self, client, userdata, flags, reason_code, properties) -> None:
        if reason_code.is_failure:
            logger.error("Connection refused by MQTT broker: %s", reason_code)
            return

        logger.info("Connected to MQTT broker")
        result, _mid = client.subscribe(self.config.topic)
        if result != mqtt.MQTT_ERR_SUCCESS:
            logger.error("Subscription error: %s", mqtt.error_string(result))

    def _on_connect_fail(self, client, userdata) -> None:
        logger.error("Connection error: could not reach MQTT broker %s", self.config.broker_url)

    def _on_subscribe(self, client, userdata, mid, reason_code_list, properties) -> None:
        failures = [rc for rc in reason_code_list if rc.is_failure]
        if failures:
            logger.error("Subscription error for %s: %s", self.config.topic, failures[0])
        else:
            logger.info("Subscribed to topic: %s", self.config.topic)

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties) -> None:
        if reason_code.is_failure:
            logger.error("Connection error: disconnected from broker (%s)", reason_code)
        else:
            logger.info("Disconnected from MQTT broker")

    def _on_message(self, client, userdata, message) -> None:
        try:
            text = message.payload.decode("utf-8", errors="replace")
            logger.info("Received message on topic '%s': %s", message.topic, text)
            self.handle_payload(message.payload)
        except Exception:
            logger.exception("Error processing received message")

    def handle_payload(self, payload: str | bytes) -> bool:
        """Parse, format and post one message. Returns True if it reached Discord."""

        try:
            notification = parse_notification(payload)
        except PayloadError as exc:
            logger.error("Dropping malformed message: %s", exc)
            return False
        logger.debug("Parsed MQTT message: %s", notification)

        body = format_vacancy_message(notification)
        logger.debug("Payload for Discord: %s", body)

        try:
            send_vacancy_message(self.config.discord_webhook_url, body)
        except requests.RequestException as exc:
            logger.error("Error sending message to Discord: %s", exc)
            return False

        logger.info("Message successfully sent to Discord")
        return True


def main() -> None:
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s"
    )
    try:
        cfg = load_config()
        logging.getLogger().setLevel(cfg.log_level)
        MqttDiscordBridge(cfg).run_forever()
    except ConfigError as exc:
        logger.error("Initialization error: %s", exc)
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
