# telemetry_bridge/exceptions/bridge_exceptions.py

"""
Startup error types. Anything raised from here is fatal to the process; the
steady-state loop never raises them.
"""


class BridgeError(Exception):
    """Base class for telemetry bridge startup errors."""


class SensorDirectoryError(BridgeError):
    """Raised when the sensor device directory cannot be listed."""

    def __init__(self, message: str, *, path: str | None = None, cause: Exception | None = None):
        super().__init__(message)
        self.path = path
        self.cause = cause


class RegistryError(BridgeError):
    """Raised when a driver registration is invalid."""


class BrokerConnectionError(BridgeError):
    """Raised when the initial broker connection cannot be established."""

    def __init__(self, message: str, *, host: str | None = None, port: int | None = None):
        super().__init__(message)
        self.host = host
        self.port = port
