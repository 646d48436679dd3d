"""Replay of recorded telemetry logs through the shared telemetry model."""
import logging
from typing import Iterable, List, Optional

from pymavlink import mavutil

from apiproxy.core import vehicle_tables as tables
from apiproxy.core.constants import USECS_PER_SEC
from apiproxy.core.messages import TimestampedMessage
from apiproxy.core.model import BuildIdentityPolicy, TelemetryModel, VehicleSource


class PlaybackLog(VehicleSource):
    """A recorded message log.

    Messages must carry `_timestamp` (seconds), as pymavlink sets when reading
    a .tlog. Vehicle codes come from the first vehicle HEARTBEAT in the log.
    """

    def __init__(self, messages: Iterable[object]):
        self.messages: List[TimestampedMessage] = []
        self._vehicle_type: Optional[int] = None
        self._autopilot_type: Optional[int] = None
        last = None
        for msg in messages:
            if msg.get_type() == "BAD_DATA":
                continue
            t = int(round(float(msg._timestamp) * USECS_PER_SEC))
            if last is not None and t < last:
                logging.warning(f"[playback] timestamp went backwards ({t} < {last}); clamping")
                t = last
            last = t
            self.messages.append(TimestampedMessage(t, msg))
            if self._vehicle_type is None and msg.get_type() == "HEARTBEAT":
                if msg.type != tables.MAV_TYPE_GCS and msg.autopilot != tables.MAV_AUTOPILOT_INVALID:
                    self._vehicle_type = int(msg.type)
                    self._autopilot_type = int(msg.autopilot)

    @classmethod
    def from_tlog(cls, path: str) -> "PlaybackLog":
        conn = mavutil.mavlink_connection(path)
        try:
            msgs = []
            while True:
                msg = conn.recv_match()
                if msg is None:
                    break
                msgs.append(msg)
        finally:
            conn.close()
        logging.info(f"[playback] loaded {len(msgs)} messages from {path}")
        return cls(msgs)

    @property
    def vehicle_type(self) -> Optional[int]:
        return self._vehicle_type

    @property
    def autopilot_type(self) -> Optional[int]:
        return self._autopilot_type

    def replay(self, policy: BuildIdentityPolicy = BuildIdentityPolicy.FIRST_WINS) -> TelemetryModel:
        """Feed the whole log into a fresh model and return it."""
        model = TelemetryModel(self, policy)
        for tm in self.messages:
            model.update_model(tm)
        return model
