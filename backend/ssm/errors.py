"""Errors raised by the session services.

Transport layers map these onto HTTP status codes or unicast ``error``
socket events; none of them is fatal to the process.
"""


class GameError(Exception):
    """Base class for rejected lobby/game actions."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFound(GameError):
    """Unknown lobby code."""

    status_code = 404


class Unauthorized(GameError):
    """A non-host attempted a host-only action."""

    status_code = 403


class InvalidInput(GameError):
    """Malformed or incomplete request payload."""

    status_code = 400


class PreconditionFailed(GameError):
    """Not enough players or images to proceed."""

    status_code = 409
