# registry.py

"""
What registry.py owns

A mapping of device family prefix → driver class (e.g., "28-" → DS18B20Sensor).

Enumeration of the device directory once at startup, building one driver per
matching entry.

The resulting sensor list is cached and never re-scanned.
"""

import os

from telemetry_bridge.sensors import ds18b20
from telemetry_bridge.sensors.base import BaseSensor
from telemetry_bridge.exceptions import RegistryError, SensorDirectoryError

# Set up logging
from telemetry_bridge import PACKAGE_LOGGER_NAME
import logging
logger = logging.getLogger(f"{PACKAGE_LOGGER_NAME}.{__name__.split('.')[-1]}")

DEFAULT_DEVICE_PATH = "/sys/bus/w1/devices/"

# 0x28 is the 1-Wire family code of the DS18B20
DS18B20_FAMILY_PREFIX = "28-"


def _entry_identifier(name) -> str:
    # Names the filesystem could not decode come back with surrogate escapes.
    return os.fsencode(name).decode("utf-8", errors="replace")


class SensorRegistry:
    def __init__(self, registry: dict[str, type[BaseSensor]] | None = None):
        if registry is None:
            self._registry = {
                DS18B20_FAMILY_PREFIX: ds18b20.DS18B20Sensor,
            }
        else:
            self._registry = dict(registry)
        self._sensors: tuple[BaseSensor, ...] = ()

    @property
    def sensors(self) -> tuple[BaseSensor, ...]:
        return self._sensors

    @property
    def identifiers(self) -> list[str]:
        return [sensor.identifier for sensor in self._sensors]

    def register(self, prefix: str, driver_class: type[BaseSensor]):
        """
        Adds/overrides an entry in the registry.
        Use at startup, before discover(), to make another sensor family known.
        """
        if not isinstance(prefix, str) or not prefix.strip():
            raise RegistryError("prefix must be a non-empty string")

        if not isinstance(driver_class, type) or not issubclass(driver_class, BaseSensor):
            raise RegistryError("driver_class must be a subclass of BaseSensor")

        old_driver = self._registry.get(prefix)
        if old_driver is not None:
            logger.warning(
                f"Overriding driver for '{prefix}': "
                f"{old_driver.__name__} → {driver_class.__name__}"
            )

        self._registry[prefix] = driver_class

    def _driver_for(self, identifier: str) -> type[BaseSensor] | None:
        # Longest matching prefix wins, independent of registration order.
        matches = [prefix for prefix in self._registry if identifier.startswith(prefix)]
        if not matches:
            return None
        return self._registry[max(matches, key=len)]

    def discover(self, base_dir: str = DEFAULT_DEVICE_PATH) -> tuple[BaseSensor, ...]:
        """
        List base_dir and build one driver per entry whose name starts with a
        registered prefix. Entries matching no prefix are ignored, and a driver
        that fails to build is logged and skipped.

        Raises:
            SensorDirectoryError: If base_dir cannot be listed.
        """
        try:
            entries = sorted(os.listdir(base_dir))
        except OSError as e:
            raise SensorDirectoryError(
                f"Could not list sensor directory {base_dir}: {e}",
                path=base_dir,
                cause=e,
            ) from e

        sensors: list[BaseSensor] = []

        for entry in entries:
            identifier = _entry_identifier(entry)
            driver_class = self._driver_for(identifier)
            if driver_class is None:
                logger.debug(f"Ignoring device entry '{identifier}'")
                continue

            try:
                sensors.append(driver_class(id=identifier, path=base_dir))
            except Exception as e:
                logger.exception(
                    "Unexpected error building sensor (id=%s, driver=%s): %s",
                    identifier, driver_class.__name__, str(e)
                )
                continue

        self._sensors = tuple(sensors)
        logger.info(f"Discovered {len(self._sensors)} sensor(s) in {base_dir}: {self.identifiers}")
        return self._sensors
