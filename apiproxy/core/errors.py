"""Errors raised by the session gateway.

All of them are surfaced synchronously to the caller; nothing here is retried
internally.
"""


class GatewayError(Exception):
    """Base class for gateway failures."""


class AuthenticationError(GatewayError):
    """The remote service rejected the supplied credentials."""


class ConnectivityError(GatewayError):
    """The remote service could not be reached."""


class NotAuthenticatedError(GatewayError):
    """An operation needing a session was called before a successful login."""


class UnboundInterfaceError(GatewayError):
    def __init__(self, interface: int):
        super().__init__(f"no vehicle bound to interface {interface}; call set_vehicle_id first")
        self.interface = interface


class SessionClosedError(GatewayError):
    """The gateway was closed; only close() may be called again."""
