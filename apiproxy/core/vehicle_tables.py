"""Static MAVLink code/name tables.

Pure data: the telemetry model selects among these but never mutates them.
Adding a firmware family means adding a table here and a classification in
`apiproxy.core.model`.
"""

from types import MappingProxyType
from pymavlink import mavutil

_mav = mavutil.mavlink


def _code(name: str, default: int) -> int:
    return int(getattr(_mav, name, default))


MAV_TYPE_FIXED_WING = _code("MAV_TYPE_FIXED_WING", 1)
MAV_TYPE_QUADROTOR = _code("MAV_TYPE_QUADROTOR", 2)
MAV_TYPE_COAXIAL = _code("MAV_TYPE_COAXIAL", 3)
MAV_TYPE_HELICOPTER = _code("MAV_TYPE_HELICOPTER", 4)
MAV_TYPE_GCS = _code("MAV_TYPE_GCS", 6)
MAV_TYPE_GROUND_ROVER = _code("MAV_TYPE_GROUND_ROVER", 10)
MAV_TYPE_HEXAROTOR = _code("MAV_TYPE_HEXAROTOR", 13)
MAV_TYPE_OCTOROTOR = _code("MAV_TYPE_OCTOROTOR", 14)
MAV_TYPE_TRICOPTER = _code("MAV_TYPE_TRICOPTER", 15)

MAV_AUTOPILOT_INVALID = _code("MAV_AUTOPILOT_INVALID", 8)

PLANE_TYPES = frozenset({MAV_TYPE_FIXED_WING})
COPTER_TYPES = frozenset({
    MAV_TYPE_QUADROTOR, MAV_TYPE_HELICOPTER, MAV_TYPE_TRICOPTER,
    MAV_TYPE_COAXIAL, MAV_TYPE_HEXAROTOR, MAV_TYPE_OCTOROTOR,
})
ROVER_TYPES = frozenset({MAV_TYPE_GROUND_ROVER})

PLANE_MODES = MappingProxyType({
    0: "MANUAL", 1: "CIRCLE", 2: "STABILIZE", 3: "TRAINING",
    5: "FBW_A", 6: "FBW_B", 10: "AUTO", 11: "RTL", 12: "LOITER",
    15: "GUIDED", 16: "INITIALIZING",
})

COPTER_MODES = MappingProxyType({
    0: "STABILIZE",
    1: "ACRO",
    2: "ALT_HOLD",
    3: "AUTO",
    4: "GUIDED",
    5: "LOITER",
    6: "RTL",
    7: "CIRCLE",
    9: "LAND",
    10: "OF_LOITER",
    11: "DRIFT",
    13: "SPORT",
    14: "FLIP",
    15: "AUTOTUNE",
})

ROVER_MODES = MappingProxyType({
    0: "MANUAL", 2: "LEARNING", 3: "STEERING", 4: "HOLD",
    10: "AUTO", 11: "RTL", 15: "GUIDED", 16: "INITIALIZING",
})

NO_MODES = MappingProxyType({})


def invert(table):
    """Return a read-only name -> code view of a code -> name table."""
    return MappingProxyType({v: k for k, v in table.items()})


# RGB tuples per mode name, for plotting flight segments
MODE_COLORS = MappingProxyType({
    "MANUAL": (255, 0, 0),
    "AUTO": (0, 255, 0),
    "LOITER": (0, 0, 255),
    "FBWA": (255, 100, 0),
    "RTL": (255, 0, 100),
    "STABILIZE": (100, 255, 0),
    "LAND": (0, 255, 100),
    "STEERING": (100, 0, 255),
    "HOLD": (0, 100, 255),
    "ALT_HOLD": (255, 100, 100),
    "CIRCLE": (100, 255, 100),
    "GUIDED": (100, 100, 255),
    "ACRO": (255, 255, 0),
})

# Simple-mode menus: name -> whether the choice needs confirmation.
# "Arm"/"Disarm" are pseudo modes handled by the GCS, not mode codes.
SIMPLE_FLIGHT_MODES = MappingProxyType({
    "LAND": True, "RTL": False, "ALT_HOLD": False, "LOITER": False,
    "AUTO": True, "STABILIZE": False, "FBW_B": False, "DRIFT": False,
    "Disarm": True,
})
SIMPLE_GROUND_MODES = MappingProxyType({
    "Arm": True, "LOITER": False, "AUTO": True, "STABILIZE": False, "Disarm": False,
})
INITIALIZING_MODES = MappingProxyType({"Disarm": False})
PSEUDO_MODES = frozenset({"Arm", "Disarm"})

VEHICLE_TYPE_NAMES = MappingProxyType({
    MAV_TYPE_QUADROTOR: "quadcopter",
    MAV_TYPE_TRICOPTER: "tricopter",
    MAV_TYPE_COAXIAL: "coaxial",
    MAV_TYPE_HEXAROTOR: "hexarotor",
    MAV_TYPE_OCTOROTOR: "octorotor",
    MAV_TYPE_FIXED_WING: "fixed-wing",
    MAV_TYPE_GROUND_ROVER: "ground-rover",
    _code("MAV_TYPE_SUBMARINE", 12): "submarine",
    _code("MAV_TYPE_AIRSHIP", 7): "airship",
    _code("MAV_TYPE_FLAPPING_WING", 16): "flapping-wing",
    _code("MAV_TYPE_SURFACE_BOAT", 11): "boat",
    _code("MAV_TYPE_FREE_BALLOON", 8): "free-balloon",
    _code("MAV_TYPE_ANTENNA_TRACKER", 5): "antenna-tracker",
    _code("MAV_TYPE_GENERIC", 0): "generic",
    _code("MAV_TYPE_ROCKET", 9): "rocket",
    MAV_TYPE_HELICOPTER: "helicopter",
})

# MAV_AUTOPILOT_PIXHAWK was renumbered to RESERVED in later dialects; keep code 1
AUTOPILOT_NAMES = MappingProxyType({
    _code("MAV_AUTOPILOT_ARDUPILOTMEGA", 3): "apm",
    _code("MAV_AUTOPILOT_GENERIC", 0): "generic",
    _code("MAV_AUTOPILOT_PX4", 12): "px4",
    _code("MAV_AUTOPILOT_OPENPILOT", 4): "openpilot",
    1: "pixhawk",
    _code("MAV_AUTOPILOT_PPZ", 9): "ppz",
    _code("MAV_AUTOPILOT_UDB", 10): "udb",
    _code("MAV_AUTOPILOT_FP", 11): "fp",
})
