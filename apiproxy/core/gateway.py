import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from apiproxy.config.loader import load_config
from apiproxy.core.constants import (
    TOPIC_VERSION, RAW_MAVLINK_TOPIC, BINDING_TOPIC,
    GCS_INTERFACE, GCS_VEHICLE_ID, DEFAULT_GCS_SYSID,
    DEFAULT_LOGIN_TIMEOUT, DEFAULT_FLUSH_BATCH,
)
from apiproxy.core.decoder import FrameDecoder
from apiproxy.core.errors import NotAuthenticatedError, SessionClosedError, UnboundInterfaceError
from apiproxy.core.hooks import GCSHooks
from apiproxy.core.messages import TimestampedMessage
from apiproxy.core.model import BuildIdentityPolicy, TelemetryModel
from apiproxy.core.registry import VehicleRegistry
from apiproxy.core.utils import monotonic_usecs, safe_json
from apiproxy.routers.mqtt_router import MQTTRouter
from apiproxy.sources.live import LiveVehicle


class SessionState(Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    VEHICLE_BOUND = "vehicle_bound"
    CLOSED = "closed"


@dataclass
class VehicleContext:
    source: LiveVehicle
    model: TelemetryModel


class Gateway(GCSHooks):
    """Session gateway between a GCS and the remote service.

    `remote` is the remote-service client (login/publish_telem/close), normally
    an MQTTRouter. Calls are expected to be serialized by the caller.
    """

    def __init__(self, cfg: dict, remote, clock: Callable[[], int] = monotonic_usecs):
        self.cfg = cfg
        self.remote = remote
        self._clock = clock
        self.root = (cfg.get("mqtt") or {}).get("topic_prefix", TOPIC_VERSION)
        gw_raw = cfg.get("gateway")
        gw_cfg = gw_raw if isinstance(gw_raw, dict) else {}
        self.gcs_sysid = int(gw_cfg.get("gcs_sysid", DEFAULT_GCS_SYSID))
        self.login_timeout = float(gw_cfg.get("login_timeout", DEFAULT_LOGIN_TIMEOUT))
        self.flush_batch = int(gw_cfg.get("flush_batch", DEFAULT_FLUSH_BATCH))
        self.policy = BuildIdentityPolicy(gw_cfg.get("build_identity_policy", BuildIdentityPolicy.FIRST_WINS.value))

        self.registry = VehicleRegistry()
        self.decoder = FrameDecoder()
        self._vehicles: Dict[str, VehicleContext] = {}
        self._outbound = deque()
        self._state = SessionState.UNAUTHENTICATED

    @classmethod
    def from_config(cls, path: Optional[str] = None) -> "Gateway":
        """Build a gateway relaying to the MQTT broker named in a YAML config."""
        cfg = load_config(path)
        return cls(cfg, MQTTRouter("remote", cfg["mqtt"]))

    # --- state ---
    @property
    def state(self) -> SessionState:
        return self._state

    def interface_state(self, interface: int) -> SessionState:
        if self._state is SessionState.AUTHENTICATED and self.registry.is_bound(interface):
            return SessionState.VEHICLE_BOUND
        return self._state

    def _require_open(self):
        if self._state is SessionState.CLOSED:
            raise SessionClosedError("gateway is closed")

    def _require_session(self):
        self._require_open()
        if self._state is not SessionState.AUTHENTICATED:
            raise NotAuthenticatedError("login_user must succeed first")

    # --- GCSHooks ---
    def login_user(self, user_name: str, password: str):
        self._require_open()
        if self._state is SessionState.AUTHENTICATED:
            logging.info(f"[gateway] already logged in; ignoring login for {user_name}")
            return
        # failures propagate and leave us unauthenticated
        self.remote.login(user_name, password, timeout=self.login_timeout)
        self._state = SessionState.AUTHENTICATED
        logging.info(f"[gateway] logged in as {user_name}")
        self.set_vehicle_id(GCS_VEHICLE_ID, GCS_INTERFACE, self.gcs_sysid)

    def set_vehicle_id(self, vehicle_id: str, from_interface: int, mavlink_sysid: int):
        self._require_session()
        if not isinstance(vehicle_id, str) or not vehicle_id:
            raise ValueError(f"vehicle_id must be a non-empty string, got {vehicle_id!r}")
        prev = self.registry.bind(vehicle_id, from_interface, mavlink_sysid)
        if prev is not None and prev != vehicle_id:
            logging.info(f"[gateway] rebinding interface={from_interface} sysid={mavlink_sysid}: {prev} -> {vehicle_id}")
            # drop any partial frame left by the previous hardware
            self.decoder.reset(from_interface)
        if vehicle_id not in self._vehicles:
            source = LiveVehicle(vehicle_id)
            self._vehicles[vehicle_id] = VehicleContext(source, TelemetryModel(source, self.policy))
        self._enqueue(BINDING_TOPIC.format(root=self.root, vehicle_id=vehicle_id), {
            "vehicle_id": vehicle_id,
            "interface": from_interface,
            "sysid": mavlink_sysid,
        }, retain=True)

    def filter_mavlink(self, from_interface: int, data: bytes) -> List[Tuple[str, object]]:
        """Decode, attribute, relay and aggregate one frame.

        Returns the (vehicle_id, message) pairs that were attributed. Messages
        from the GCS sysid are attributed to "gcs" on any bound interface;
        other sysids with no binding on this interface are counted as
        unattributed and dropped. Raises ConnectivityError if an automatic
        flush fails; the unsent entries stay queued.
        """
        self._require_session()
        if not self.registry.is_bound(from_interface):
            raise UnboundInterfaceError(from_interface)
        now = self._clock()
        attributed = []
        for msg in self.decoder.decode(from_interface, data):
            sysid = msg.get_srcSystem()
            vehicle_id = self.registry.vehicle_for(from_interface, sysid)
            if vehicle_id is None and sysid == self.gcs_sysid:
                # commands the GCS sends to a vehicle over its interface
                vehicle_id = GCS_VEHICLE_ID
            if vehicle_id is None:
                n = self.registry.note_unattributed(from_interface, sysid)
                if n == 1:
                    logging.warning(f"[gateway] unattributed {msg.get_type()} on interface={from_interface} sysid={sysid}; no vehicle bound")
                continue
            ctx = self._vehicles[vehicle_id]
            ctx.source.observe(msg)
            ctx.model.update_model(TimestampedMessage(now, msg))
            self._enqueue(RAW_MAVLINK_TOPIC.format(root=self.root, vehicle_id=vehicle_id, msg=msg.get_type()), {
                "interface": from_interface,
                "sysid": sysid,
                "t": now,
                "fields": safe_json(msg.to_dict()),
            })
            attributed.append((vehicle_id, msg))
        if len(self._outbound) >= self.flush_batch:
            self.flush()
        return attributed

    def flush(self):
        """Publish everything queued. On ConnectivityError the unsent entries stay queued."""
        self._require_open()
        self._drain()

    def close(self):
        if self._state is SessionState.CLOSED:
            return
        try:
            if self._state is SessionState.AUTHENTICATED:
                self._drain()
        except Exception as e:
            logging.warning(f"[gateway] dropping {len(self._outbound)} queued publications on close: {e}")
        finally:
            self._outbound.clear()
            self._state = SessionState.CLOSED
            self.remote.close()
            logging.info("[gateway] closed")

    # --- outbound ---
    def _enqueue(self, topic: str, payload: dict, retain: bool = False):
        self._outbound.append((topic, payload, retain))

    def _drain(self):
        while self._outbound:
            topic, payload, retain = self._outbound[0]
            self.remote.publish_telem(topic, payload, retain=retain)
            self._outbound.popleft()

    # --- read access ---
    @property
    def pending(self) -> int:
        return len(self._outbound)

    def model_for(self, vehicle_id: str) -> Optional[TelemetryModel]:
        ctx = self._vehicles.get(vehicle_id)
        return ctx.model if ctx else None

    def mode_name(self, vehicle_id: str) -> Optional[str]:
        """Current flight mode from the vehicle's last HEARTBEAT, or None."""
        ctx = self._vehicles.get(vehicle_id)
        if ctx is None or ctx.source.custom_mode is None:
            return None
        return ctx.model.mode_to_string(ctx.source.custom_mode)

    def vehicles(self) -> Dict[str, dict]:
        return self.registry.snapshot()

    def unattributed(self) -> Dict[Tuple[int, int], int]:
        return self.registry.unattributed()
