from typing import Optional

from apiproxy.core import vehicle_tables as tables
from apiproxy.core.model import VehicleSource


class LiveVehicle(VehicleSource):
    """Vehicle codes learned from HEARTBEATs on a live link."""

    def __init__(self, vehicle_id: str, vehicle_type: Optional[int] = None, autopilot_type: Optional[int] = None):
        self.vehicle_id = vehicle_id
        self._vehicle_type = vehicle_type
        self._autopilot_type = autopilot_type
        self.custom_mode: Optional[int] = None

    @property
    def vehicle_type(self) -> Optional[int]:
        return self._vehicle_type

    @property
    def autopilot_type(self) -> Optional[int]:
        return self._autopilot_type

    def observe(self, msg):
        if msg.get_type() != "HEARTBEAT":
            return
        # GCS heartbeats share the link but say nothing about the vehicle
        if msg.type == tables.MAV_TYPE_GCS or msg.autopilot == tables.MAV_AUTOPILOT_INVALID:
            return
        self._vehicle_type = int(msg.type)
        self._autopilot_type = int(msg.autopilot)
        self.custom_mode = int(msg.custom_mode)
