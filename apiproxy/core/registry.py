import time
from typing import Dict, Optional, Tuple


class VehicleRegistry:
    """Bindings of (interface, sysid) to server vehicle ids.

    Rebinding the same pair is last-write-wins since hardware can be
    hot-swapped. Messages that arrive for a pair with no binding are counted
    in an unattributed bucket instead of being guessed at.
    """

    def __init__(self):
        self._store: Dict[Tuple[int, int], dict] = {}
        self._unattributed: Dict[Tuple[int, int], int] = {}

    def bind(self, vehicle_id: str, interface: int, sysid: int) -> Optional[str]:
        """Bind a pair to vehicle_id. Returns the previous vehicle id, if any."""
        key = (int(interface), int(sysid))
        now = time.time()
        prev = self._store.get(key)
        self._store[key] = {
            "vehicle_id": vehicle_id,
            "interface": key[0],
            "sysid": key[1],
            "first_bound": prev["first_bound"] if prev else now,
            "last_bound": now,
        }
        return prev["vehicle_id"] if prev else None

    def is_bound(self, interface: int) -> bool:
        return any(k[0] == interface for k in self._store)

    def vehicle_for(self, interface: int, sysid: int) -> Optional[str]:
        dev = self._store.get((interface, sysid))
        return dev["vehicle_id"] if dev else None

    def note_unattributed(self, interface: int, sysid: int) -> int:
        key = (interface, sysid)
        self._unattributed[key] = self._unattributed.get(key, 0) + 1
        return self._unattributed[key]

    def unattributed(self) -> Dict[Tuple[int, int], int]:
        return dict(self._unattributed)

    def snapshot(self) -> Dict[str, dict]:
        # JSON-friendly: "interface:sysid" -> binding
        return {f"{k[0]}:{k[1]}": dict(v) for k, v in self._store.items()}
