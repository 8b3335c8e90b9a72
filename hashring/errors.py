from typing import Hashable


class RingError(Exception):
    pass


class EmptyRing(RingError):
    def __init__(self, msg: str = "Ring has no servers"):
        super().__init__(msg)


class PositionCollision(RingError):
    """Raised when a server's virtual nodes cannot all be placed.

    The ring is left exactly as it was before the failed call.
    """

    def __init__(self, server_id: Hashable, requested: int, placed: int, reason: str):
        self.server_id = server_id
        self.requested = requested
        self.placed = placed
        super().__init__(f"Could not place {requested} virtual nodes for {server_id!r} ({placed} placed): {reason}")
