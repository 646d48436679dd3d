"""Flight telemetry aggregation shared by live and playback sources.

A `TelemetryModel` owns one flight session's derived state and is mutated only
through `update_model`. Where the messages come from is hidden behind a
`VehicleSource`, which supplies nothing but the vehicle and autopilot codes.
"""

import logging
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from apiproxy.core import vehicle_tables as tables
from apiproxy.core.messages import MessageKind, TimestampedMessage, message_kind, status_text, usecs_to_seconds

# <name> V<version> [anything] <git>
VERSION_RE = re.compile(r"(\S+)\s+(V\S+)(?:\s+.*)?\s+(\S+)")

UNKNOWN_MODE = "unknown"


class VehicleSource(ABC):
    """Where vehicle identity codes come from (live link or recorded log)."""

    @property
    @abstractmethod
    def vehicle_type(self) -> Optional[int]:
        """MAV_TYPE code, or None until known."""

    @property
    @abstractmethod
    def autopilot_type(self) -> Optional[int]:
        """MAV_AUTOPILOT code, or None until known."""


class BuildIdentityPolicy(Enum):
    FIRST_WINS = "first_wins"
    OVERWRITE = "overwrite"


def parse_build_identity(text: str):
    """Return (name, version, git) from a firmware banner, or None."""
    m = VERSION_RE.fullmatch(text)
    if not m:
        return None
    name, version, git = m.groups()
    # ArduPilot banners wrap the hash in parentheses
    return name, version, git.strip("()")


class TelemetryModel:
    def __init__(self, source: VehicleSource, policy: BuildIdentityPolicy = BuildIdentityPolicy.FIRST_WINS):
        self.source = source
        self.policy = policy

        # Summary stats
        self.max_altitude = 0.0
        self.max_air_speed = 0.0
        self.max_ground_speed = 0.0
        self.build_name: Optional[str] = None
        self.build_version: Optional[str] = None
        self.build_git: Optional[str] = None

        # Flight window, in usecs
        self.start_of_flight_time: Optional[int] = None
        self.end_of_flight_time: Optional[int] = None

        # First and latest message time seen, in usecs
        self.start_time: Optional[int] = None
        self.current_time: Optional[int] = None

        self.vfr_hud = None

    # --- classification ---
    @property
    def vehicle_type(self) -> Optional[int]:
        return self.source.vehicle_type

    @property
    def autopilot_type(self) -> Optional[int]:
        return self.source.autopilot_type

    @property
    def is_plane(self) -> bool:
        return self.vehicle_type in tables.PLANE_TYPES

    @property
    def is_copter_opt(self) -> Optional[bool]:
        """True/False if the vehicle type is known, else None."""
        if self.vehicle_type is None:
            return None
        return self.vehicle_type in tables.COPTER_TYPES

    @property
    def is_copter(self) -> bool:
        opt = self.is_copter_opt
        return True if opt is None else opt

    @property
    def is_rover(self) -> bool:
        return self.vehicle_type in tables.ROVER_TYPES

    @property
    def vehicle_type_name(self) -> str:
        """Firmware family name, used to find parameter docs."""
        if self.is_copter:
            return "ArduCopter"
        if self.is_rover:
            return "APMrover2"
        return "ArduPlane"

    @property
    def human_vehicle_type(self) -> Optional[str]:
        if self.vehicle_type is None:
            return None
        return tables.VEHICLE_TYPE_NAMES.get(self.vehicle_type)

    @property
    def human_autopilot_type(self) -> Optional[str]:
        if self.autopilot_type is None:
            return None
        return tables.AUTOPILOT_NAMES.get(self.autopilot_type)

    # --- modes ---
    def _code_to_mode(self):
        if self.is_plane:
            return tables.PLANE_MODES
        if self.is_copter:
            return tables.COPTER_MODES
        if self.is_rover:
            return tables.ROVER_MODES
        return tables.NO_MODES

    def mode_to_string(self, mode_code: int) -> str:
        """Convert a custom mode code into a human readable name."""
        return self._code_to_mode().get(mode_code, UNKNOWN_MODE)

    def mode_to_code(self, mode_name: str) -> Optional[int]:
        return tables.invert(self._code_to_mode()).get(mode_name)

    @staticmethod
    def mode_color(mode_name: str):
        return tables.MODE_COLORS.get(mode_name)

    def selectable_modes(self, flying: bool, initializing: bool = False) -> dict:
        """Simple-mode menu (name -> needs confirmation) valid for this vehicle."""
        if initializing:
            menu = tables.INITIALIZING_MODES
        elif flying:
            menu = tables.SIMPLE_FLIGHT_MODES
        else:
            menu = tables.SIMPLE_GROUND_MODES
        known = set(self._code_to_mode().values())
        return {k: v for k, v in menu.items() if k in tables.PSEUDO_MODES or k in known}

    # --- aggregation ---
    @property
    def flight_duration(self) -> Optional[float]:
        """Duration of the flying portion in seconds, or None."""
        if self.start_of_flight_time is None or self.end_of_flight_time is None:
            logging.debug("[model] can't find duration for flight")
            return None
        r = usecs_to_seconds(self.end_of_flight_time) - usecs_to_seconds(self.start_of_flight_time)
        logging.debug(f"[model] calculated flight duration of {r}")
        return r

    def update_model(self, message):
        kind = message_kind(message)
        if kind is MessageKind.TIMESTAMPED:
            self._on_timestamped(message)
        elif kind is MessageKind.AIRSPEED:
            self._on_vfr_hud(message)
        elif kind is MessageKind.STATUS_TEXT:
            self._on_status_text(message)

    def _on_timestamped(self, message: TimestampedMessage):
        if self.start_time is None:
            self.start_time = message.time_usec
        self.current_time = message.time_usec
        self.update_model(message.msg)

    def _on_vfr_hud(self, msg):
        self.vfr_hud = msg
        self.max_air_speed = max(float(msg.airspeed), self.max_air_speed)
        self.max_ground_speed = max(float(msg.groundspeed), self.max_ground_speed)
        self.max_altitude = max(float(getattr(msg, "alt", 0.0)), self.max_altitude)
        if msg.throttle > 0:
            if self.start_of_flight_time is None:
                self.start_of_flight_time = self.start_time
            self.end_of_flight_time = self.current_time

    def _on_status_text(self, msg):
        ident = parse_build_identity(status_text(msg))
        if ident is None:
            return
        current = (self.build_name, self.build_version, self.build_git)
        if self.build_name is not None and self.policy is BuildIdentityPolicy.FIRST_WINS:
            if ident != current:
                logging.warning(f"[model] ignoring new build identity {ident}; keeping {current}")
            return
        self.build_name, self.build_version, self.build_git = ident
        logging.info(f"[model] vehicle build {self.build_name} {self.build_version} git={self.build_git}")

    def summary(self) -> dict:
        return {
            "vehicle_type": self.human_vehicle_type,
            "autopilot_type": self.human_autopilot_type,
            "build_name": self.build_name,
            "build_version": self.build_version,
            "build_git": self.build_git,
            "max_altitude": self.max_altitude,
            "max_air_speed": self.max_air_speed,
            "max_ground_speed": self.max_ground_speed,
            "flight_duration": self.flight_duration,
        }
