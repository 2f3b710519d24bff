PACKAGE_LOGGER_NAME = "telemetry_bridge"
