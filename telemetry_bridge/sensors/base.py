# telemetry_bridge/sensors/base.py

import json
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Reading:
    """
    A single temperature measurement.

    A NaN temperature is the sentinel for "no valid measurement" and is written
    to the wire as JSON null.
    """
    temperature: float

    @classmethod
    def sentinel(cls) -> "Reading":
        return cls(float("nan"))

    @property
    def is_sentinel(self) -> bool:
        return math.isnan(self.temperature)

    def as_dict(self) -> dict:
        return {"temperature": None if self.is_sentinel else self.temperature}

    def to_json(self) -> str:
        return json.dumps(self.as_dict(), separators=(",", ":"))


class BaseSensor(ABC):
    """
    Abstract base class for all sensor drivers.
    Enforces a consistent interface: identifier and read().
    """

    @property
    @abstractmethod
    def identifier(self) -> str:
        """
        Stable identifier of the sensor, unique within a run.
        Example: "28-0000001"
        """
        raise NotImplementedError

    @abstractmethod
    def read(self) -> Reading:
        """
        Return the current reading. Implementations must not raise; any
        failure resolves to Reading.sentinel().
        """
        raise NotImplementedError

    def read_to_string(self) -> str:
        return self.read().to_json()

    def __repr__(self):
        return f"{self.__class__.__name__}({self.identifier!r})"
