"""
telemetry.py

Provides the TelemetryCollector class, which reads every registered sensor and
turns the results into the payload published to the broker.

A snapshot maps sensor identifier → serialized reading, for example:

    {"28-0000001": "{\"temperature\":23.0}"}

The values are JSON strings rather than nested objects so existing consumers
keep working. Pass nested=True to publish nested objects instead.

Classes:
    TelemetryCollector

Usage:
    collector = TelemetryCollector(sensors=registry.sensors)
    payload = collector.serialize(collector.snapshot())
"""

import json
from collections.abc import Iterable

# Set up logging
import logging
from telemetry_bridge import PACKAGE_LOGGER_NAME
from telemetry_bridge.sensors.base import BaseSensor, Reading

logger = logging.getLogger(f"{PACKAGE_LOGGER_NAME}.telemetry")

SERIALIZATION_ERROR_PAYLOAD = "ERR"


class TelemetryCollector:
    """
    Collects one reading per sensor and serializes the snapshot.
    A new snapshot dict is built on every call; nothing is kept between cycles.
    """
    def __init__(self, *, sensors: Iterable[BaseSensor] = None, nested: bool = False):
        self._sensors = tuple(sensors or ())
        self.nested = nested

    @property
    def sensors(self) -> tuple[BaseSensor, ...]:
        return self._sensors

    def snapshot(self) -> dict[str, str]:
        readings = {}
        for sensor in self._sensors:
            try:
                readings[sensor.identifier] = sensor.read_to_string()
            except Exception as e:
                logger.warning(f"Read failed for {sensor.identifier}: {e}")
                readings[sensor.identifier] = Reading.sentinel().to_json()
        return readings

    def serialize(self, snapshot: dict[str, str]) -> str:
        try:
            if self.nested:
                document = {key: json.loads(value) for key, value in snapshot.items()}
            else:
                document = snapshot
            return json.dumps(document, separators=(",", ":"), allow_nan=False)
        except (TypeError, ValueError) as e:
            logger.error(f"Could not serialize telemetry snapshot: {e}")
            return SERIALIZATION_ERROR_PAYLOAD

    def as_payload(self) -> str:
        readings = self.snapshot()
        logger.debug(f"Collected telemetry: {readings}")
        return self.serialize(readings)
