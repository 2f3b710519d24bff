"""
config_loader.py

Load configuration from environment variables, optionally seeded from a .env
file. The loader validates required values and exposes a single immutable
BridgeConfig via as_config().

Classes:
    BridgeConfig
    ConfigLoader

Usage:
    loader = ConfigLoader(logger)
    config = loader.as_config()
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, TypeVar

from dotenv import load_dotenv

from telemetry_bridge.sensors.registry import DEFAULT_DEVICE_PATH

T = TypeVar("T")

REQUIRED_VARIABLES = (
    "HOSTNAME",
    "MQTT_USER",
    "MQTT_PASSWORD",
    "MQTT_HOST",
    "MQTT_TOPIC",
    "CA_CERT",
)

DEFAULT_MQTT_PORT = 8883
DEFAULT_QOS = 1
DEFAULT_INTERVAL = 10.0
DEFAULT_CONNECT_TIMEOUT = 10.0

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {value!r}")


@dataclass(frozen=True)
class BridgeConfig:
    host: str
    mqtt_user: str
    mqtt_password: str
    mqtt_host: str
    topic: str
    ca_cert: Path
    mqtt_port: int = DEFAULT_MQTT_PORT
    qos: int = DEFAULT_QOS
    interval: float = DEFAULT_INTERVAL
    client_cert: Optional[Path] = None
    client_cert_key: Optional[Path] = None
    client_cert_key_pass: Optional[str] = None
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    nested_payload: bool = False
    device_path: str = DEFAULT_DEVICE_PATH
    log_level: str = "INFO"
    log_dir: str = "log"


class ConfigLoader:
    """
    Load and validate configuration from environment variables.

    Environment (required):
        HOSTNAME, MQTT_USER, MQTT_PASSWORD, MQTT_HOST, MQTT_TOPIC, CA_CERT

    Environment (optional):
      - MQTT_PORT (int, default 8883)
      - MQTT_QOS (0, 1 or 2, default 1)
      - MQTT_READ_INTERVAL (float seconds > 0, default 10.0)
      - CLIENT_CERT, CLIENT_CERT_KEY, CLIENT_CERT_KEY_PASS
      - MQTT_CONNECT_TIMEOUT (float seconds > 0, default 10.0)
      - MQTT_PAYLOAD_NESTED (bool, default false)
      - W1_DEVICE_PATH (default /sys/bus/w1/devices/)
      - LOG_LEVEL (default "INFO"), LOG_DIR (default "log")

    Numeric values that cannot be parsed fall back to their default with a
    warning; parsed values outside their valid range are rejected.
    """

    def __init__(self, logger):
        """
        Initialize the loader, read environment variables and parse them.

        Args:
            logger (Logger): Logger instance for diagnostic output.

        Raises:
            EnvironmentError: If required environment variables are missing.
            ValueError: If a value is outside its valid range.
        """
        load_dotenv()
        self.logger = logger

        self._validate_or_raise()

        self.host = os.environ["HOSTNAME"]
        self.mqtt_user = os.environ["MQTT_USER"]
        self.mqtt_password = os.environ["MQTT_PASSWORD"]
        self.mqtt_host = os.environ["MQTT_HOST"]
        self.topic = os.environ["MQTT_TOPIC"]
        self.ca_cert = Path(os.environ["CA_CERT"])

        self.mqtt_port = self._get_mqtt_port()
        self.qos = self._get_qos()
        self.interval = self._get_positive_float("MQTT_READ_INTERVAL", DEFAULT_INTERVAL)
        self.connect_timeout = self._get_positive_float("MQTT_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT)
        self.nested_payload = self._parse("MQTT_PAYLOAD_NESTED", _parse_bool, False)

        self.client_cert = self._get_optional_path("CLIENT_CERT")
        self.client_cert_key = self._get_optional_path("CLIENT_CERT_KEY")
        self.client_cert_key_pass = os.getenv("CLIENT_CERT_KEY_PASS") or None

        self.device_path = os.getenv("W1_DEVICE_PATH") or DEFAULT_DEVICE_PATH
        self.log_level = os.getenv("LOG_LEVEL") or "INFO"
        self.log_dir = os.getenv("LOG_DIR") or "log"

    def as_config(self) -> BridgeConfig:
        """
        Return the loaded configuration as an immutable BridgeConfig.
        """
        config = BridgeConfig(
            host=self.host,
            mqtt_user=self.mqtt_user,
            mqtt_password=self.mqtt_password,
            mqtt_host=self.mqtt_host,
            topic=self.topic,
            ca_cert=self.ca_cert,
            mqtt_port=self.mqtt_port,
            qos=self.qos,
            interval=self.interval,
            client_cert=self.client_cert,
            client_cert_key=self.client_cert_key,
            client_cert_key_pass=self.client_cert_key_pass,
            connect_timeout=self.connect_timeout,
            nested_payload=self.nested_payload,
            device_path=self.device_path,
            log_level=self.log_level,
            log_dir=self.log_dir,
        )
        self.logger.info(
            f"ConfigLoader: broker {config.mqtt_host}:{config.mqtt_port}, topic '{config.topic}', "
            f"qos {config.qos}, interval {config.interval}s"
        )
        return config

    # ----------------- internal validation/parsers -----------------

    def _validate_or_raise(self) -> None:
        """
        Validate that required environment variables are present.

        Raises:
            EnvironmentError: If required environment variables are missing.
        """
        missing = [name for name in REQUIRED_VARIABLES if not os.getenv(name)]
        if missing:
            msg = f"Missing required environment variables: {', '.join(missing)}"
            self.logger.error(msg)
            raise EnvironmentError(msg)

    def _parse(self, name: str, cast: Callable[[str], T], default: T) -> T:
        """
        Parse an optional variable, falling back to default when it is unset or
        cannot be parsed.
        """
        raw_value = os.getenv(name)
        if raw_value is None or raw_value == "":
            return default
        try:
            return cast(raw_value)
        except (ValueError, TypeError):
            self.logger.warning(f"Error unpacking {name}={raw_value!r}, using default {default!r}")
            return default

    def _get_mqtt_port(self) -> int:
        port = self._parse("MQTT_PORT", int, DEFAULT_MQTT_PORT)
        if not 1 <= port <= 65535:
            msg = f"Invalid MQTT_PORT: {port} (must be 1-65535)"
            self.logger.error(msg)
            raise ValueError(msg)
        return port

    def _get_qos(self) -> int:
        qos = self._parse("MQTT_QOS", int, DEFAULT_QOS)
        if qos not in (0, 1, 2):
            msg = f"Invalid MQTT_QOS: {qos} (must be 0, 1 or 2)"
            self.logger.error(msg)
            raise ValueError(msg)
        return qos

    def _get_positive_float(self, name: str, default: float) -> float:
        value = self._parse(name, float, default)
        # NaN fails this comparison too
        if not value > 0 or value == float("inf"):
            msg = f"Invalid {name}: {value} (must be a positive number of seconds)"
            self.logger.error(msg)
            raise ValueError(msg)
        return value

    @staticmethod
    def _get_optional_path(name: str) -> Optional[Path]:
        value = os.getenv(name)
        return Path(value) if value else None
