import pytest

from apiproxy.core import vehicle_tables as tables
from apiproxy.core.messages import TimestampedMessage
from apiproxy.core.model import BuildIdentityPolicy, TelemetryModel, VehicleSource, parse_build_identity


class FakeSource(VehicleSource):
    def __init__(self, vehicle_type=None, autopilot_type=None):
        self._vt = vehicle_type
        self._at = autopilot_type

    @property
    def vehicle_type(self):
        return self._vt

    @property
    def autopilot_type(self):
        return self._at


class FakeMsg:
    def __init__(self, mtype, **kwargs):
        self.type = mtype
        for k, v in kwargs.items():
            setattr(self, k, v)

    def get_type(self):
        return self.type


def vfr_hud(airspeed=0.0, groundspeed=0.0, throttle=0, alt=0.0):
    return FakeMsg("VFR_HUD", airspeed=airspeed, groundspeed=groundspeed, heading=0, throttle=throttle, alt=alt, climb=0.0)


def statustext(text):
    return FakeMsg("STATUSTEXT", severity=6, text=text)


def make_model(vehicle_type=None, autopilot_type=None, **kwargs):
    return TelemetryModel(FakeSource(vehicle_type, autopilot_type), **kwargs)


COPTER_CODES = [0, 1, 2, 3, 4, 5, 6, 7, 9, 10, 11, 13, 14, 15]


def test_unknown_vehicle_defaults_to_copter():
    m = make_model()
    assert m.is_copter
    assert m.is_copter_opt is None
    assert not m.is_plane
    assert not m.is_rover
    assert m.mode_to_string(5) == "LOITER"
    assert m.vehicle_type_name == "ArduCopter"


@pytest.mark.parametrize("vt", sorted(tables.COPTER_TYPES))
def test_copter_codes_map_and_others_are_unknown(vt):
    m = make_model(vt)
    for code in COPTER_CODES:
        assert m.mode_to_string(code) == tables.COPTER_MODES[code]
    for code in (8, 12, 16, 99, -1):
        assert m.mode_to_string(code) == "unknown"


def test_mode_to_string_is_pure():
    m = make_model(tables.MAV_TYPE_QUADROTOR)
    assert [m.mode_to_string(3) for _ in range(3)] == ["AUTO"] * 3
    other = make_model(tables.MAV_TYPE_QUADROTOR)
    other.update_model(vfr_hud(10, 10, 50))
    assert other.mode_to_string(3) == m.mode_to_string(3)


def test_plane_and_rover_tables():
    plane = make_model(tables.MAV_TYPE_FIXED_WING)
    assert plane.is_plane and not plane.is_copter
    assert plane.mode_to_string(5) == "FBW_A"
    assert plane.vehicle_type_name == "ArduPlane"
    rover = make_model(tables.MAV_TYPE_GROUND_ROVER)
    assert rover.is_rover and not rover.is_copter
    assert rover.mode_to_string(4) == "HOLD"
    assert rover.vehicle_type_name == "APMrover2"


def test_known_but_unclassified_vehicle_has_no_modes():
    boat = make_model(11)  # surface boat
    assert not boat.is_copter and not boat.is_plane and not boat.is_rover
    assert boat.mode_to_string(0) == "unknown"
    assert boat.mode_to_code("MANUAL") is None
    assert boat.human_vehicle_type == "boat"


def test_mode_to_code_reverses_table():
    m = make_model(tables.MAV_TYPE_FIXED_WING)
    assert m.mode_to_code("RTL") == 11
    assert m.mode_to_code("ALT_HOLD") is None


def test_human_names():
    m = make_model(tables.MAV_TYPE_HEXAROTOR, 3)
    assert m.human_vehicle_type == "hexarotor"
    assert m.human_autopilot_type == "apm"
    assert make_model().human_vehicle_type is None
    assert make_model().human_autopilot_type is None


def test_mode_color():
    assert TelemetryModel.mode_color("AUTO") == (0, 255, 0)
    assert TelemetryModel.mode_color("SPORT") is None


def test_selectable_modes_filtered_for_vehicle():
    copter = make_model(tables.MAV_TYPE_QUADROTOR)
    flying = copter.selectable_modes(flying=True)
    assert "LAND" in flying and "DRIFT" in flying and "Disarm" in flying
    assert "FBW_B" not in flying
    plane = make_model(tables.MAV_TYPE_FIXED_WING)
    assert "FBW_B" in plane.selectable_modes(flying=True)
    assert "LAND" not in plane.selectable_modes(flying=True)
    assert copter.selectable_modes(flying=False)["Arm"] is True
    assert copter.selectable_modes(flying=True, initializing=True) == {"Disarm": False}


def test_maxima_are_non_decreasing():
    m = make_model()
    seen = []
    for a, g in [(5.0, 3.0), (12.0, 1.0), (2.0, 9.0), (0.0, 0.0), (11.0, 8.5)]:
        m.update_model(vfr_hud(a, g))
        seen.append((m.max_air_speed, m.max_ground_speed))
    assert seen == sorted(seen)
    assert m.max_air_speed == 12.0
    assert m.max_ground_speed == 9.0


def test_max_altitude_tracks_vfr_hud_alt():
    m = make_model()
    for alt in (10.0, 42.5, 30.0):
        m.update_model(vfr_hud(alt=alt))
    assert m.max_altitude == 42.5


def test_zero_throttle_leaves_duration_absent():
    m = make_model()
    for t in (1000000, 2000000, 3000000):
        m.update_model(TimestampedMessage(t, vfr_hud(10, 10, throttle=0)))
    assert m.start_of_flight_time is None
    assert m.flight_duration is None


def test_flight_duration_from_throttle_window():
    m = make_model()
    m.update_model(TimestampedMessage(1000000, vfr_hud(throttle=5)))
    m.update_model(TimestampedMessage(3000000, vfr_hud(throttle=5)))
    assert m.flight_duration == pytest.approx(2.0)


def test_flight_window_starts_at_session_start():
    m = make_model()
    m.update_model(TimestampedMessage(500000, FakeMsg("HEARTBEAT")))
    m.update_model(TimestampedMessage(1000000, vfr_hud(throttle=0)))
    m.update_model(TimestampedMessage(2000000, vfr_hud(throttle=40)))
    m.update_model(TimestampedMessage(4000000, vfr_hud(throttle=40)))
    m.update_model(TimestampedMessage(9000000, vfr_hud(throttle=0)))
    assert m.start_time == 500000
    assert m.current_time == 9000000
    assert m.start_of_flight_time == 500000
    assert m.end_of_flight_time == 4000000
    assert m.flight_duration == pytest.approx(3.5)


def test_unrecognized_messages_are_ignored():
    m = make_model()
    m.update_model(FakeMsg("ATTITUDE", roll=0.1))
    m.update_model(object())
    assert m.start_time is None
    assert m.max_air_speed == 0.0


def test_status_text_parses_build_identity():
    m = make_model()
    m.update_model(statustext("ArduCopter V3.4.0 abc123"))
    assert (m.build_name, m.build_version, m.build_git) == ("ArduCopter", "V3.4.0", "abc123")


def test_status_text_accepts_bytes_and_parenthesised_hash():
    m = make_model()
    m.update_model(statustext(b"APM:Copter V3.2.1 (36b405fb)\x00\x00"))
    assert (m.build_name, m.build_version, m.build_git) == ("APM:Copter", "V3.2.1", "36b405fb")


def test_non_matching_status_text_is_ignored():
    m = make_model()
    for text in ("Initialising APM...", "PreArm: RC not calibrated", "ArduCopter V3.4.0", ""):
        m.update_model(statustext(text))
    assert m.build_name is None


def test_first_build_identity_wins_by_default():
    m = make_model()
    m.update_model(statustext("ArduCopter V3.4.0 abc123"))
    m.update_model(statustext("ArduCopter V3.5.1 def456"))
    assert m.build_version == "V3.4.0"
    assert m.build_git == "abc123"


def test_overwrite_policy_tracks_latest_identity():
    m = make_model(policy=BuildIdentityPolicy.OVERWRITE)
    m.update_model(statustext("ArduCopter V3.4.0 abc123"))
    m.update_model(statustext("ArduCopter V3.5.1 def456"))
    assert m.build_version == "V3.5.1"
    assert m.build_git == "def456"


def test_parse_build_identity_with_middle_tokens():
    assert parse_build_identity("ArduPlane V3.8.0 beta1 (1a2b3c)") == ("ArduPlane", "V3.8.0", "1a2b3c")
    assert parse_build_identity("hello world") is None


def test_summary():
    m = make_model(tables.MAV_TYPE_QUADROTOR, 3)
    m.update_model(TimestampedMessage(0, vfr_hud(7.0, 6.0, throttle=10, alt=20.0)))
    m.update_model(TimestampedMessage(1500000, vfr_hud(8.0, 5.0, throttle=10, alt=25.0)))
    s = m.summary()
    assert s["vehicle_type"] == "quadcopter"
    assert s["autopilot_type"] == "apm"
    assert s["max_air_speed"] == 8.0
    assert s["max_altitude"] == 25.0
    assert s["flight_duration"] == pytest.approx(1.5)
