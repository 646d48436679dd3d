from abc import ABC, abstractmethod


class GCSHooks(ABC):
    """Calls a GCS makes into the proxy, in this order:

    login_user, then set_vehicle_id for every connected vehicle (before any
    data from it is sent), then filter_mavlink for each packet. flush and
    close may be called at any time.
    """

    @abstractmethod
    def login_user(self, user_name: str, password: str):
        """Connect to the web service.

        Raises AuthenticationError or ConnectivityError.
        """

    @abstractmethod
    def set_vehicle_id(self, vehicle_id: str, from_interface: int, mavlink_sysid: int):
        """Associate a server vehicle id with a mavlink sysid on an interface.

        vehicle_id is a UUID; the server creates a vehicle record the first time
        it sees one. Use "gcs" for data from the GCS itself.
        """

    @abstractmethod
    def filter_mavlink(self, from_interface: int, data: bytes):
        """Called for every mavlink packet received from or sent to a vehicle.

        from_interface is -1 for packets generated by the GCS itself.
        """

    @abstractmethod
    def flush(self):
        """Send any queued messages immediately."""

    @abstractmethod
    def close(self):
        """Disconnect from the web service. Safe to call more than once."""
