from .bridge_exceptions import BridgeError, SensorDirectoryError, RegistryError, BrokerConnectionError

__all__ = [
    "BridgeError",
    "SensorDirectoryError",
    "RegistryError",
    "BrokerConnectionError",
]
