# ds18b20.py

"""
Driver for DS18B20 temperature sensors exposed by the Linux w1-therm driver.

The kernel publishes each probe as <base_dir>/<id>/w1_slave with two lines:

    6a 01 4b 46 7f ff 0c 10 5e : crc=5e YES
    6a 01 4b 46 7f ff 0c 10 5e t=22625

The first line ends with YES when the driver's CRC check passed; the second
carries the temperature in millidegrees after the last '='.
"""

import logging
import os
import re

from telemetry_bridge import PACKAGE_LOGGER_NAME
from telemetry_bridge.sensors.base import BaseSensor, Reading

logger = logging.getLogger(f"{PACKAGE_LOGGER_NAME}.ds18b20")

DEVICE_FILE_NAME = "w1_slave"
CRC_VALID_MARKER = "YES"

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT32_MIN = -(2 ** 31)
_INT32_MAX = 2 ** 31 - 1


class DS18B20ReadError(Exception):
    """Raised when the DS18B20 sensor fails to return a valid reading."""
    pass


def _decode(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return ""


def _split_lines(text: str) -> tuple[str, str]:
    if not text:
        raise DS18B20ReadError("Device file is empty")
    lines = text.splitlines()
    if len(lines) < 2:
        raise DS18B20ReadError(f"Expected at least 2 lines, got {len(lines)}")
    return lines[0], lines[1]


def _check_crc(line: str) -> None:
    if not line.endswith(CRC_VALID_MARKER):
        raise DS18B20ReadError("Sensor CRC check failed")


def _parse_millidegrees(line: str) -> int:
    value = line.rsplit("=", 1)[-1]
    if not _INT_PATTERN.fullmatch(value):
        raise DS18B20ReadError(f"Temperature value not an integer: {value!r}")
    millidegrees = int(value)
    if not _INT32_MIN <= millidegrees <= _INT32_MAX:
        raise DS18B20ReadError(f"Temperature value out of range: {millidegrees}")
    return millidegrees


class DS18B20Sensor(BaseSensor):
    """
    Handles reading from a single DS18B20 probe.

    Args:
        id (str): Device directory name, e.g. "28-0000001". Used as the identifier.
        path (str): Base 1-Wire device directory containing the probe directory.
    """

    def __init__(self, *, id: str, path: str):
        self.sensor_id = id
        self.base_dir = path

    @property
    def identifier(self) -> str:
        return self.sensor_id

    @property
    def device_file(self) -> str:
        return os.path.join(self.base_dir, self.sensor_id, DEVICE_FILE_NAME)

    def _read_raw(self) -> bytes:
        try:
            with open(self.device_file, "rb") as f:
                return f.read()
        except OSError as e:
            raise DS18B20ReadError(f"Could not read {self.device_file}: {e}") from e

    def _read_temp(self) -> float:
        line1, line2 = _split_lines(_decode(self._read_raw()))
        _check_crc(line1)
        return _parse_millidegrees(line2) / 1000.0

    def read(self) -> Reading:
        """
        Read the probe.

        Returns:
            Reading: the temperature in degrees Celsius, or Reading.sentinel()
            when the device file is missing, unreadable or malformed.
        """
        try:
            return Reading(self._read_temp())
        except DS18B20ReadError as e:
            logger.debug(f"Read failed for {self.sensor_id}: {e}")
            return Reading.sentinel()
