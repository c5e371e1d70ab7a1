"""Domain errors raised by room operations and translated to HTTP in app.main."""

from __future__ import annotations


class RoomError(Exception):
    status_code = 400

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or self.__class__.__doc__ or "")
        self.detail = detail or (self.__class__.__doc__ or "").strip()


class ValidationFailed(RoomError):
    """Request rejected by validation."""

    status_code = 422


class NoRoomOpen(RoomError):
    """No room is open."""

    status_code = 404


class RoomMismatch(RoomError):
    """Room name does not match the open room."""

    status_code = 409


class ParticipantNotFound(RoomError):
    """Participant not found."""

    status_code = 404


class NotMatched(RoomError):
    """Participant is not in an active match."""

    status_code = 409


class InvalidTransition(RoomError):
    """Room status does not allow this operation."""

    status_code = 409


class TransactionConflict(RoomError):
    """Concurrent modification; retry the request."""

    status_code = 503
