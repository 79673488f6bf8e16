"""
Protocol definitions for the AI turn gateway.

The session coordinator only depends on these interfaces, so tests can
drive it with a scripted gateway instead of a real model.

Component Flow:
    Player action -> SessionCoordinator -> instruction text
                                                |
                                                v
                              TurnGateway.send_turn(channel, text)
                                                |
                                                v
                                 TurnResult -> coordinator state
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from linglong.models.game import TurnResult


@runtime_checkable
class TurnChannel(Protocol):
    """A stateful conversation with the game master.

    One channel exists per playthrough. The channel remembers every
    committed exchange so the game master keeps the story context.
    """

    channel_id: str
    history: list[dict[str, str]]


@runtime_checkable
class TurnGateway(Protocol):
    """Protocol for exchanging turns with the remote game master.

    Example implementations:
        - GameMasterGateway: LiteLLM-backed chat with JSON turn results
        - ScriptedGateway: queued results for tests
    """

    def open_channel(self) -> TurnChannel:
        """Open a fresh channel seeded with the game master instructions."""
        ...

    async def send_turn(self, channel: TurnChannel, prompt: str) -> "TurnResult":
        """Send free-form prompt text and receive a structured turn result.

        Raises:
            GatewayTransportError: The remote service could not be reached
            MalformedTurnResultError: The reply is not a valid turn payload
        """
        ...
