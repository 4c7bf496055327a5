from __future__ import annotations

GENERIC_SERVER_ERROR = "Server error"


class DashboardError(Exception):
    pass


class TransportFailure(DashboardError):
    """The request never produced an HTTP response."""


class ServerFailure(DashboardError):
    def __init__(self, status: int, message: str | None = None) -> None:
        self.status = status
        self.message = message if message and message.strip() else GENERIC_SERVER_ERROR
        super().__init__(self.message)


class ShapeMismatch(DashboardError):
    """A successful response did not carry the expected record list."""
