import json, logging
import threading
import paho.mqtt.client as mqtt

from apiproxy.core.errors import AuthenticationError, ConnectivityError

# CONNACK codes for bad credentials / not authorized (MQTT 3.1.1 and 5)
AUTH_FAILURE_CODES = {4, 5, 134, 135}


def _rc_value(reason_code) -> int:
    return int(getattr(reason_code, "value", reason_code))


class MQTTRouter:
    """Remote-service client: authenticated MQTT session used to relay telemetry."""

    def __init__(self, name: str, cfg: dict):
        self.name = name
        self.cfg = cfg
        self._client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=cfg.get("client_id", "apiproxy"))
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_log = self._on_log
        self._lock = threading.Lock()
        self._connack = threading.Event()
        self._connect_rc = None
        self._connected = False
        self._loop_running = False

    @property
    def connected(self) -> bool:
        return self._connected

    def login(self, username: str, password: str, timeout: float = 5.0):
        """Connect with credentials and wait for the broker's answer.

        Raises AuthenticationError if the broker refuses the credentials and
        ConnectivityError if it can't be reached or doesn't answer in time.
        """
        host = self.cfg["host"]
        port = int(self.cfg.get("port", 1883))
        self._connack.clear()
        self._connect_rc = None
        self._client.username_pw_set(username, password)
        logging.info(f"[mqtt:{self.name}] connecting {host}:{port} as {username}")
        try:
            self._client.connect(host, port)
        except OSError as e:
            raise ConnectivityError(f"cannot reach {host}:{port}: {e}") from e
        self._client.loop_start()
        self._loop_running = True
        if not self._connack.wait(timeout):
            self._stop_loop()
            raise ConnectivityError(f"no CONNACK from {host}:{port} within {timeout}s")
        rc = _rc_value(self._connect_rc)
        if rc == 0:
            return
        self._stop_loop()
        if rc in AUTH_FAILURE_CODES:
            raise AuthenticationError(f"broker refused credentials for {username} (rc={rc})")
        raise ConnectivityError(f"broker refused connection (rc={rc})")

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        rc = _rc_value(reason_code)
        if rc == 0:
            logging.info(f"[mqtt:{self.name}] on_connect rc=0 (success)")
            self._connected = True
        else:
            logging.warning(f"[mqtt:{self.name}] on_connect rc={rc}")
        self._connect_rc = reason_code
        self._connack.set()

    def _on_log(self, client, userdata, level, buf):
        logging.debug(f"[mqtt:{self.name}] paho_log level={level} msg={buf}")

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        rc = _rc_value(reason_code)
        if rc != 0:
            logging.warning(f"[mqtt:{self.name}] unexpected disconnect rc={rc}")
        else:
            logging.info(f"[mqtt:{self.name}] clean disconnect")
        self._connected = False

    def _stop_loop(self):
        if self._loop_running:
            self._client.loop_stop()
            self._loop_running = False

    def publish_telem(self, topic: str, payload: dict, qos: int = 0, retain: bool = False):
        """Publish a JSON payload. Raises ConnectivityError if it can't be handed to paho."""
        if not self._connected:
            raise ConnectivityError(f"not connected to broker; cannot publish {topic}")
        data = json.dumps(payload, separators=(",", ":"))
        with self._lock:
            info = self._client.publish(topic, data, qos=qos, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            logging.warning(f"[mqtt:{self.name}] publish failed rc={info.rc} topic={topic}")
            raise ConnectivityError(f"publish to {topic} failed: {mqtt.error_string(info.rc)}")

    def close(self):
        try:
            if self._connected:
                self._client.disconnect()
        except Exception as e:
            logging.warning(f"[mqtt:{self.name}] disconnect failed: {e}")
        finally:
            self._stop_loop()
            self._connected = False
