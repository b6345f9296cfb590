"""Main bridge class for sony2mqtt."""

import json
import logging
import signal
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Callable, Dict, Optional

import paho.mqtt.client as mqtt

from sony_av.channels import REFRESH, DeviceStatus
from sony_av.devices import create_handler
from sony_av.exceptions import ConfigurationError

from .config import (
    PAYLOAD_REFRESH,
    channel_to_topic,
    format_state,
    get_base_topic,
    parse_set_topic,
    validate_bridge_config,
)

logger = logging.getLogger(__name__)


class SonyMQTTBridge:
    """Bridge between an MQTT broker and the configured Sony devices."""

    def __init__(self, config: dict, handler_factory: Callable[..., Any] = create_handler):
        """Initialize the bridge.

        Args:
            config: Configuration dictionary
            handler_factory: Builds a device handler from a device entry
        """
        self.config = config
        self.base_topic = get_base_topic(config)
        self.running = False

        self._handler_factory = handler_factory
        self._handlers: Dict[str, Any] = {}

        # MQTT client for broker
        self._broker_client: Optional[mqtt.Client] = None

        # Commands block on device I/O; keep them off the MQTT network thread
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()

    @property
    def handlers(self) -> Dict[str, Any]:
        return dict(self._handlers)

    def _setup_broker_client(self):
        """Set up MQTT broker client."""
        mqtt_config = self.config.get("mqtt", {})

        self._broker_client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=mqtt_config.get("client_id", "sony2mqtt"),
            clean_session=True,
        )

        username = mqtt_config.get("username")
        password = mqtt_config.get("password")
        if username:
            self._broker_client.username_pw_set(username, password)

        self._broker_client.on_connect = self._on_broker_connect
        self._broker_client.on_disconnect = self._on_broker_disconnect
        self._broker_client.on_message = self._on_broker_message

        # Last Will and Testament
        self._broker_client.will_set(
            f"{self.base_topic}/bridge/state",
            payload="offline",
            qos=1,
            retain=True,
        )

    def _setup_handlers(self):
        """Create one handler per configured device."""
        for device_id, device in self.config.get("devices", {}).items():
            try:
                handler = self._handler_factory(
                    device,
                    on_state=partial(self._on_state, device_id),
                    on_status=partial(self._on_status, device_id),
                )
            except ConfigurationError as e:
                logger.error("Skipping device %s: %s", device_id, e)
                continue
            self._handlers[device_id] = handler

    def _on_broker_connect(self, client, userdata, flags, reason_code, properties):
        """Handle broker connection."""
        if reason_code.is_failure:
            logger.error("Failed to connect to MQTT broker: %s", reason_code)
            return

        logger.info("Connected to MQTT broker")
        command_topic = f"{self.base_topic}/+/set/#"
        client.subscribe(command_topic)
        logger.info("Subscribed to command topics: %s", command_topic)

        self._publish(f"{self.base_topic}/bridge/state", "online", qos=1)

        # Retained state may have been lost while disconnected
        for device_id, handler in self.handlers.items():
            self._on_status(device_id, handler.status)
            for channel, value in handler.states.items():
                self._on_state(device_id, channel, value)

    def _on_broker_disconnect(self, client, userdata, flags, reason_code, properties):
        """Handle broker disconnection."""
        logger.warning("Disconnected from MQTT broker: %s", reason_code)

    def _on_broker_message(self, client, userdata, msg):
        """Handle incoming MQTT messages."""
        parsed = parse_set_topic(msg.topic, self.base_topic)
        if parsed is None:
            logger.debug("Ignoring message on %s", msg.topic)
            return
        device_id, channel = parsed

        handler = self._handlers.get(device_id)
        if handler is None:
            logger.warning("Command for unknown device %s", device_id)
            return

        try:
            payload = msg.payload.decode("utf-8").strip()
        except UnicodeDecodeError:
            logger.warning("Ignoring non-UTF-8 payload on %s", msg.topic)
            return

        command = REFRESH if payload.upper() == PAYLOAD_REFRESH else payload
        logger.info("Command: %s %s = %s", device_id, channel, payload)

        if self._executor is not None:
            self._executor.submit(self._run_command, handler, channel, command)
        else:
            self._run_command(handler, channel, command)

    @staticmethod
    def _run_command(handler, channel: str, command: Any):
        try:
            handler.handle_command(channel, command)
        except Exception:
            logger.exception("Command for %s failed", channel)

    def _on_state(self, device_id: str, channel: str, value: Any):
        """Publish a channel update."""
        topic = f"{self.base_topic}/{device_id}/state/{channel_to_topic(channel)}"
        self._publish(topic, format_state(value))

    def _on_status(self, device_id: str, status: DeviceStatus):
        """Publish availability and the detailed status of a device."""
        base = f"{self.base_topic}/{device_id}/state"
        self._publish(f"{base}/available", "online" if status.is_online else "offline", qos=1)
        self._publish(f"{base}/status", json.dumps({
            "status": status.status.value,
            "detail": status.detail.value,
            "reason": status.reason,
        }))

    def _publish(self, topic: str, payload: str, qos: int = 0):
        """Publish to MQTT broker (retained)."""
        if self._broker_client and self._broker_client.is_connected():
            with self._lock:
                self._broker_client.publish(topic, payload, qos=qos, retain=True)
            logger.debug("Published: %s = %s", topic, payload)

    def start(self):
        """Start the bridge."""
        logger.info("Starting sony2mqtt bridge...")

        errors = validate_bridge_config(self.config)
        if errors:
            for error in errors:
                logger.error("Config error: %s", error)
            raise ValueError("Invalid configuration")

        self.running = True

        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="sony2mqtt")
        self._setup_broker_client()
        self._setup_handlers()

        # Connect to MQTT broker with retry
        mqtt_config = self.config.get("mqtt", {})
        host = mqtt_config.get("host", "localhost")
        port = mqtt_config.get("port", 1883)
        reconnect_interval = self.config.get("options", {}).get("reconnect_interval", 30)

        logger.info("Connecting to MQTT broker at %s:%s", host, port)
        broker_connected = False
        while self.running and not broker_connected:
            try:
                self._broker_client.connect(host, port, keepalive=60)
                self._broker_client.loop_start()
                broker_connected = True
            except OSError as e:
                logger.error("Failed to connect to MQTT broker: %s", e)
                logger.info("Retrying in %s seconds...", reconnect_interval)
                for _ in range(reconnect_interval):
                    if not self.running:
                        return
                    time.sleep(1)

        if not broker_connected:
            return

        for device_id, handler in self.handlers.items():
            logger.info("Initializing device %s", device_id)
            handler.initialize()

        logger.info("sony2mqtt bridge started")

    def stop(self):
        """Stop the bridge."""
        logger.info("Stopping sony2mqtt bridge...")
        self.running = False

        for device_id, handler in self.handlers.items():
            handler.dispose()
            self._publish(f"{self.base_topic}/{device_id}/state/available", "offline", qos=1)

        self._publish(f"{self.base_topic}/bridge/state", "offline", qos=1)

        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

        if self._broker_client:
            self._broker_client.loop_stop()
            self._broker_client.disconnect()

        logger.info("sony2mqtt bridge stopped")

    def run_forever(self):
        """Run the bridge until interrupted."""
        def signal_handler(signum, frame):
            logger.info("Received signal %s", signum)
            self.stop()
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        self.start()

        try:
            while self.running:
                time.sleep(1)
        except KeyboardInterrupt:
            pass
        finally:
            if self.running:
                self.stop()
