"""
main.py

Bootstrap entry point for the telemetry bridge. Loads configuration, sets up
logging, connects the MQTT client, discovers sensors and starts the polling
agent.
"""


import logging
import sys

from telemetry_bridge.config_loader import ConfigLoader
from telemetry_bridge.logging_setup import setup_logging
from telemetry_bridge.sensors.registry import SensorRegistry
from telemetry_bridge.telemetry import TelemetryCollector
from telemetry_bridge.mqtt_client_wrapper import MQTTClientWrapper
from telemetry_bridge.agent import BridgeAgent
from telemetry_bridge.exceptions import BridgeError


def main():
    """
    Initialize and start the telemetry bridge.

    This function loads configuration, configures logging, connects to the
    broker, builds sensors via the SensorRegistry and starts the BridgeAgent.
    Once the agent is started the function blocks indefinitely.

    Returns:
        int: 1 if startup failed.
    """
    bootstrap_logger = logging.getLogger("bootstrap")
    bootstrap_logger.setLevel(logging.INFO)
    bootstrap_logger.addHandler(logging.StreamHandler())

    try:
        config = ConfigLoader(logger=bootstrap_logger).as_config()
    except (OSError, ValueError) as e:
        bootstrap_logger.critical(f"Could not load configuration: {e}")
        return 1

    logger = setup_logging(
        log_dir=config.log_dir,
        log_file_name="telemetry_bridge.log",
        log_level=config.log_level,
    )

    try:
        client = MQTTClientWrapper(config, logger)
        client.connect()
    except (OSError, ValueError, BridgeError) as e:
        logger.critical(f"Could not connect to MQTT broker: {e}")
        return 1

    try:
        sensors = SensorRegistry().discover(config.device_path)
    except BridgeError as e:
        logger.critical(f"Could not enumerate sensors: {e}")
        client.disconnect()
        return 1

    if not sensors:
        logger.warning("No sensors found. Telemetry will be empty.")

    telemetry_collector = TelemetryCollector(sensors=sensors, nested=config.nested_payload)

    agent = BridgeAgent(
        logger,
        telemetry_collector,
        client,
        config.topic,
        qos=config.qos,
        interval=config.interval,
    )

    try:
        agent.start()
    finally:
        client.disconnect()


if __name__ == "__main__":
    sys.exit(main())
