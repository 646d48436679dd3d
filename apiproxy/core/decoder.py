"""MAVLink frame decoding.

Wraps a pymavlink parser per interface. Parsers are stateful, so a frame split
across two `filter_mavlink` calls on the same interface still decodes.
"""
import logging
from typing import Dict, List

from pymavlink import mavutil


class FrameDecoder:
    def __init__(self):
        self._parsers: Dict[int, object] = {}
        self.errors = 0

    def _parser_for(self, interface: int):
        parser = self._parsers.get(interface)
        if parser is None:
            # MAVLink parser instance (no output file; we use parse_char)
            parser = mavutil.mavlink.MAVLink(None)
            self._parsers[interface] = parser
        return parser

    def decode(self, interface: int, data: bytes) -> List[object]:
        """Feed bytes for an interface and return the messages they complete."""
        parser = self._parser_for(interface)
        msgs = []
        for b in data:
            try:
                m = parser.parse_char(bytes([b]))
            except mavutil.mavlink.MAVError as e:
                self.errors += 1
                logging.debug(f"[decoder:{interface}] dropped bad frame: {e}")
                continue
            if m is None:
                continue
            if m.get_type() == "BAD_DATA":
                self.errors += 1
                continue
            msgs.append(m)
        return msgs

    def reset(self, interface: int):
        self._parsers.pop(interface, None)
