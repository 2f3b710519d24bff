"""
mqtt_client_wrapper.py

Provides the MQTTClientWrapper class, a thin wrapper around the paho MQTT
client. It manages TLS and credential setup, the initial connection, and
exposes the narrow set of calls the polling loop needs: is_connected,
reconnect and publish.

Classes:
    MQTTClientWrapper
"""

import ssl
import time

import paho.mqtt.client as mqtt

from telemetry_bridge.exceptions import BrokerConnectionError

# Automatic reconnect backoff used by paho's network loop, in seconds.
RECONNECT_MIN_DELAY = 1
RECONNECT_MAX_DELAY = 10
KEEPALIVE = 60
CONNECT_POLL_INTERVAL = 0.1
# Unacknowledged QoS 1/2 messages paho keeps for redelivery.
MAX_QUEUED_MESSAGES = 1


class MQTTClientWrapper:
    """
    Wrap the paho MQTT client and provide helper methods for connecting,
    publishing, reconnecting and disconnecting.

    Args:
        config (BridgeConfig): Broker endpoint, credentials and TLS material.
        logger (Logger): Logger instance.
        client_class: Client factory, paho's Client by default.
    """

    def __init__(self, config, logger, client_class=mqtt.Client):
        self.config = config
        self.logger = logger
        self.host = config.mqtt_host
        self.port = config.mqtt_port

        self.logger.info("Setting up client options")
        self.client = client_class(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=config.host,
            protocol=mqtt.MQTTv311,
        )
        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.max_queued_messages_set(MAX_QUEUED_MESSAGES)
        self._loop_running = False

    def _build_tls_context(self) -> ssl.SSLContext:
        """
        Build a TLS 1.2+ context trusting the configured CA. A client
        certificate is loaded only when both certificate and key are set.
        """
        context = ssl.create_default_context(cafile=str(self.config.ca_cert))
        context.minimum_version = ssl.TLSVersion.TLSv1_2

        if self.config.client_cert and self.config.client_cert_key:
            context.load_cert_chain(
                certfile=str(self.config.client_cert),
                keyfile=str(self.config.client_cert_key),
                password=self.config.client_cert_key_pass,
            )
        elif self.config.client_cert or self.config.client_cert_key:
            self.logger.warning("Client certificate and key must both be set; ignoring client certificate")

        return context

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            self.logger.error(f"Broker refused connection: {reason_code}")
        else:
            self.logger.info(f"Connected to {self.host}:{self.port}")

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        self.logger.warning(f"Disconnected from {self.host}:{self.port} ({reason_code})")

    def _wait_for_connection(self) -> bool:
        """
        Poll until the broker has acknowledged the connection or
        connect_timeout seconds have passed.
        """
        deadline = time.monotonic() + self.config.connect_timeout
        while not self.client.is_connected():
            if time.monotonic() >= deadline:
                return False
            time.sleep(CONNECT_POLL_INTERVAL)
        return True

    def connect(self):
        """
        Establish a TLS connection to the broker and start the network loop.

        Raises:
            BrokerConnectionError: If the broker cannot be reached or does not
                acknowledge the connection within connect_timeout seconds.
        """
        self.logger.info("Setting up SSL options")
        self.client.tls_set_context(self._build_tls_context())
        self.client.username_pw_set(self.config.mqtt_user, self.config.mqtt_password)
        self.client.reconnect_delay_set(min_delay=RECONNECT_MIN_DELAY, max_delay=RECONNECT_MAX_DELAY)

        self.logger.info(f"Connecting to {self.host}:{self.port}")
        try:
            self.client.connect(self.host, self.port, keepalive=KEEPALIVE)
        except (OSError, ValueError) as e:
            self.logger.error(f"Could not connect to MQTT broker {e}")
            raise BrokerConnectionError(
                f"Could not connect to {self.host}:{self.port}: {e}",
                host=self.host,
                port=self.port,
            ) from e

        self.client.loop_start()
        self._loop_running = True

        if not self._wait_for_connection():
            self.client.loop_stop()
            self._loop_running = False
            self.logger.error(f"Timed out waiting for {self.host}:{self.port} to accept the connection")
            raise BrokerConnectionError(
                f"Connection to {self.host}:{self.port} not acknowledged",
                host=self.host,
                port=self.port,
            )

        self.logger.info("Connected")

    def is_connected(self) -> bool:
        return bool(self.client.is_connected())

    def reconnect(self) -> bool:
        """
        Try once to get back to a connected state. Failures are logged, never
        raised.

        While the network loop is running it already reconnects on its own
        with backoff, so this only waits for it. Otherwise a reconnect is
        issued here and the network loop is restarted.

        Returns:
            bool: True only if the broker acknowledged the connection within
            connect_timeout seconds.
        """
        if self._loop_running:
            self.logger.info(f"Waiting for network loop to reconnect to {self.host}:{self.port}")
        else:
            self.logger.info(f"Reconnecting to {self.host}:{self.port}")
            try:
                self.client.reconnect()
            except (OSError, ValueError) as e:
                self.logger.warning(f"Reconnect to MQTT broker failed {e}")
                return False
            self.client.loop_start()
            self._loop_running = True

        if not self._wait_for_connection():
            self.logger.warning(f"Reconnect to {self.host}:{self.port} not acknowledged within {self.config.connect_timeout}s")
            return False

        self.logger.info("Reconnected")
        return True

    def publish(self, topic: str, payload: str, qos: int) -> bool:
        """
        Publish a payload. Failures are logged, never raised. Messages still
        waiting for the broker count against MAX_QUEUED_MESSAGES; once the
        queue is full further publishes fail with MQTT_ERR_QUEUE_SIZE.

        Returns:
            bool: True if the message was handed to the client successfully.
        """
        try:
            info = self.client.publish(topic, payload, qos=qos)
        except (OSError, ValueError) as e:
            self.logger.error(f"An error occurred publishing message {e}")
            return False

        if info.rc == mqtt.MQTT_ERR_QUEUE_SIZE:
            self.logger.error("Outbound queue full, dropping message")
            return False
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            self.logger.error(f"An error occurred publishing message {mqtt.error_string(info.rc)}")
            return False
        return True

    def disconnect(self):
        """
        Stop the network loop and disconnect from the broker.
        """
        try:
            self.client.loop_stop()
            self._loop_running = False
            self.client.disconnect()
        except Exception as e:
            self.logger.error(f"Failed to disconnect MQTT broker {e}")
            raise
