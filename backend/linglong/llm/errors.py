"""
Errors raised by the AI turn gateway.

The session coordinator catches GatewayError at its boundary and turns it
into the message shown to the player.
"""


class GatewayError(Exception):
    """Base class for failures of a turn with the game master."""


class GatewayTransportError(GatewayError):
    """The remote model could not be reached or the request failed."""


class MalformedTurnResultError(GatewayError):
    """The remote model answered, but not with a valid turn payload.

    Attributes:
        raw_response: The text received from the model, if any
    """

    def __init__(self, message: str, raw_response: str | None = None):
        super().__init__(message)
        self.raw_response = raw_response
