"""
agent.py

Defines the BridgeAgent class, responsible for running the main polling loop.
Every interval the agent reads all sensors, serializes the snapshot and
publishes it through the MQTT client, reconnecting first when the client
reports it is disconnected.

Classes:
    AgentState
    BridgeAgent

Usage:
    agent = BridgeAgent(...)
    agent.start()  # starts the blocking polling loop
"""

import enum
import time


class AgentState(enum.Enum):
    IDLE = "idle"
    POLLING = "polling"
    CONNECTING = "connecting"
    PUBLISHING = "publishing"


class BridgeAgent:
    """
    BridgeAgent runs the polling loop. Broker outages only skip cycles; they
    never stop the loop or change its cadence.

    Args:
        logger (Logger): Logger instance.
        telemetry_collector (TelemetryCollector): Reads sensors and builds the payload.
        mqtt_client (MQTTClientWrapper): Client used to publish.
        topic (str): Topic the payload is published to.
        qos (int): Quality-of-service level for each publish.
        interval (float): Seconds to wait before each cycle.
    """

    def __init__(self,
                 logger,
                 telemetry_collector,
                 mqtt_client,
                 topic,
                 qos=1,
                 interval=10.0,
                 ):
        self.logger = logger
        self.telemetry_collector = telemetry_collector
        self.mqtt_client = mqtt_client
        self.topic = topic
        self.qos = qos
        self.interval = interval
        self.state = AgentState.IDLE

    def _set_state(self, state):
        self.logger.debug(f"{self.state.name} -> {state.name}")
        self.state = state

    def start(self):
        """
        Start and run the blocking polling loop.

        On each iteration the agent sleeps for `interval` seconds, then runs
        one cycle. This method never returns.
        """
        self.logger.info(f"BridgeAgent started, publishing to '{self.topic}' every {self.interval}s.")
        while True:
            time.sleep(self.interval)
            self.run_cycle()

    def run_cycle(self) -> bool:
        """
        Run one read → serialize → (reconnect) → publish cycle.

        Returns:
            bool: True if the payload was published.
        """
        self._set_state(AgentState.POLLING)
        payload = self.telemetry_collector.as_payload()

        try:
            if not self._ensure_connected():
                self.logger.warning("Broker unavailable, skipping this cycle.")
                return False
            return self._publish(payload)
        finally:
            self._set_state(AgentState.IDLE)

    def _ensure_connected(self) -> bool:
        if self.mqtt_client.is_connected():
            return True

        self._set_state(AgentState.CONNECTING)
        return self.mqtt_client.reconnect()

    def _publish(self, payload) -> bool:
        self._set_state(AgentState.PUBLISHING)
        published = self.mqtt_client.publish(self.topic, payload, self.qos)
        if published:
            self.logger.info(f"Telemetry sent: {payload}")
        return published
