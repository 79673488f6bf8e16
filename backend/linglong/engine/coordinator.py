"""
Session coordinator - Owns the game phase state machine for one player.

The game master (behind a TurnGateway) owns the story: scene, characters
and investigation points. The coordinator tracks the client-side phase,
turns player actions into instructions, and reconciles each turn result
with its own state.

Phases:
    STARTING -> NARRATIVE -> INVESTIGATION <-> DIALOGUE
    (start_new_game resets to STARTING from anywhere)

Two guards are evaluated whenever a turn result arrives, never at dispatch:
    - the session must still be alive and on the same playthrough
    - while a clue popup is open, full turn results are dropped
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from linglong.llm.errors import GatewayError
from linglong.llm.prompt_loader import PromptLoader, get_loader
from linglong.models.game import (
    CollectedClue,
    GamePhase,
    InvestigationPoint,
    Message,
    NarrativeLine,
    PendingInvestigation,
    Scene,
    Sender,
    SessionSnapshot,
    TurnResult,
)

if TYPE_CHECKING:
    from linglong.engine.protocols import TurnChannel, TurnGateway
    from linglong.models.case import CaseFile

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_MESSAGE = "与AI通信时发生未知错误。请检查您的API密钥和网络连接。"

CLUE_DELIMITER = "、"


class SessionCoordinator:
    """Manages the phase state machine for a single playthrough session.

    Attributes:
        phase: Current game phase
        scene: Current scene, None until the first turn succeeds
        narrative: The narrative line currently displayed
        dialogue_history: Messages of the current dialogue
        active_character: Who the player is talking to (DIALOGUE only)
        collected_clues: Clues gathered during this playthrough
        pending_investigation: Investigated point awaiting acknowledgment
        error: Message of the last failed request, None otherwise
    """

    def __init__(
        self,
        gateway: "TurnGateway",
        case: "CaseFile",
        case_id: str,
        session_id: str | None = None,
        prompt_loader: PromptLoader | None = None,
    ):
        self.session_id = session_id or str(uuid.uuid4())
        self.case_id = case_id
        self.case = case
        self.gateway = gateway
        self.prompt_loader = prompt_loader or get_loader()

        self.channel: "TurnChannel | None" = None
        self.error: str | None = None

        # Liveness flag and playthrough counter checked by every continuation
        self._alive = True
        self._epoch = 0
        # Outstanding requests of the current playthrough
        self._in_flight = 0

        self._reset_state()

    def _reset_state(self) -> None:
        """Reset the playthrough state"""
        self.phase = GamePhase.STARTING
        self.scene: Scene | None = None
        self.narrative = NarrativeLine()
        self.dialogue_history: list[Message] = []
        self.active_character: str | None = None
        self.collected_clues: list[CollectedClue] = []
        self.pending_investigation: PendingInvestigation | None = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def partner_name(self) -> str:
        return self.case.partner.name

    @property
    def is_loading(self) -> bool:
        """True while any request of the current playthrough is outstanding"""
        return self._in_flight > 0

    @property
    def is_alive(self) -> bool:
        return self._alive

    def snapshot(self) -> SessionSnapshot:
        """Get a read-only view of the session"""
        return SessionSnapshot(
            session_id=self.session_id,
            case_id=self.case_id,
            partner=self.partner_name,
            phase=self.phase,
            scene=self.scene,
            narrative=self.narrative,
            dialogue_history=list(self.dialogue_history),
            active_character=self.active_character,
            collected_clues=list(self.collected_clues),
            pending_investigation=self.pending_investigation,
            is_loading=self.is_loading,
            error=self.error,
        )

    def teardown(self) -> None:
        """End the session; results still in flight will be discarded"""
        self._alive = False
        logger.info(f"Session {self.session_id} torn down")

    # =========================================================================
    # Turn plumbing
    # =========================================================================

    def _is_current(self, epoch: int) -> bool:
        return self._alive and epoch == self._epoch

    def _render(self, filename: str, **values: object) -> str:
        return self.prompt_loader.render("game_master", filename, **values)

    async def _request_turn(self, prompt: str) -> TurnResult | None:
        """
        Send a turn on the current channel.

        Returns:
            The turn result, or None if the request failed or the session
            moved on (torn down or restarted) before the result arrived
        """
        epoch = self._epoch
        channel = self.channel

        self._in_flight += 1
        self.error = None
        logger.info(f"Session {self.session_id}: sending turn ({self.phase.value})")
        logger.debug(f"Prompt: {prompt}")

        try:
            result = await self.gateway.send_turn(channel, prompt)
        except GatewayError as e:
            if self._is_current(epoch):
                logger.error(f"Session {self.session_id}: turn failed: {e}")
                self.error = str(e)
            return None
        except Exception as e:
            if self._is_current(epoch):
                logger.exception(
                    f"Session {self.session_id}: unexpected error during turn: {e}"
                )
                self.error = UNKNOWN_ERROR_MESSAGE
            return None
        finally:
            # A restart resets the counter; stale requests must not touch it
            if self._is_current(epoch):
                self._in_flight -= 1

        if not self._is_current(epoch):
            logger.info(
                f"Session {self.session_id}: discarding turn result from an abandoned playthrough"
            )
            return None

        return result

    def _apply_turn(self, result: TurnResult) -> bool:
        """
        Apply a full turn result to narrative, scene and phase.

        Returns:
            False if the result was dropped because a clue popup is open
        """
        if self.pending_investigation is not None:
            logger.warning(
                f"Session {self.session_id}: clue popup open, ignoring turn result"
            )
            return False

        phase = result.game_phase
        active_character = self.active_character

        if phase == GamePhase.DIALOGUE and active_character is None:
            # The game master opened a dialogue on its own
            speaker = result.speaker.strip()
            if speaker and speaker not in (self.case.narrator_label, self.case.player_label):
                active_character = speaker
            else:
                logger.warning(
                    f"Session {self.session_id}: DIALOGUE declared without a character, "
                    f"staying in INVESTIGATION"
                )
                phase = GamePhase.INVESTIGATION

        self.narrative = NarrativeLine(speaker=result.speaker, content=result.narrative)
        self.scene = result.scene
        self.phase = phase

        if phase == GamePhase.DIALOGUE:
            self.active_character = active_character
        else:
            self.active_character = None
            self.dialogue_history = []

        logger.info(
            f"Session {self.session_id}: phase={phase.value}, location={result.scene.location}, "
            f"points={len(result.scene.investigation_points)}"
        )
        return True

    # =========================================================================
    # Operations
    # =========================================================================

    async def start_new_game(self) -> None:
        """Reset everything, open a fresh channel and request the opening turn"""
        if not self._alive:
            logger.warning(f"Session {self.session_id}: cannot start a game after teardown")
            return

        self._epoch += 1
        self._in_flight = 0
        self._reset_state()
        self.channel = None
        self.error = None

        logger.info(f"Session {self.session_id}: starting new game (case '{self.case_id}')")

        try:
            self.channel = self.gateway.open_channel()
        except Exception as e:
            logger.exception(f"Session {self.session_id}: failed to open channel: {e}")
            self.error = str(e) or UNKNOWN_ERROR_MESSAGE
            return

        result = await self._request_turn(self._render("opening_prompt.txt"))
        if result is not None:
            self._apply_turn(result)

    def advance_narrative(self) -> bool:
        """Move from NARRATIVE to INVESTIGATION once the player has read on"""
        if self.phase != GamePhase.NARRATIVE:
            logger.debug(f"Session {self.session_id}: advance ignored in {self.phase.value}")
            return False

        self.phase = GamePhase.INVESTIGATION
        return True

    async def investigate(self, point: InvestigationPoint) -> PendingInvestigation | None:
        """
        Ask the game master to describe one investigation point.

        The description is held as the pending investigation until the
        player dismisses the clue popup. Phase, scene and history are
        not touched by this turn.
        """
        if self.phase != GamePhase.INVESTIGATION or self.channel is None:
            logger.warning(f"Session {self.session_id}: cannot investigate in {self.phase.value}")
            return None
        if self.pending_investigation is not None:
            logger.warning(f"Session {self.session_id}: a clue popup is already open")
            return None
        if self.scene is None or self.scene.get_point(point.id) is None:
            logger.warning(f"Session {self.session_id}: no investigation point '{point.id}' here")
            return None

        result = await self._request_turn(
            self._render("investigate_prompt.txt", point_name=point.name)
        )
        if result is None:
            return None

        if self.pending_investigation is not None:
            logger.warning(
                f"Session {self.session_id}: another clue popup opened meanwhile, "
                f"dropping description of '{point.id}'"
            )
            return None

        self.pending_investigation = PendingInvestigation(
            point=point, description=result.narrative
        )
        return self.pending_investigation

    def dismiss_investigation_popup(self) -> CollectedClue | None:
        """Turn the pending investigation into a collected clue"""
        pending = self.pending_investigation
        if pending is None:
            logger.debug(f"Session {self.session_id}: no clue popup to dismiss")
            return None

        clue = pending.to_clue()
        self.collected_clues.append(clue)
        if self.scene is not None:
            self.scene = self.scene.without_point(pending.point.id)
        self.pending_investigation = None

        logger.info(f"Session {self.session_id}: collected clue '{clue.id}' ({clue.name})")
        return clue

    def _can_open_dialogue(self) -> bool:
        if self.channel is None or self.phase != GamePhase.INVESTIGATION:
            logger.warning(f"Session {self.session_id}: cannot start dialogue in {self.phase.value}")
            return False
        if self.active_character is not None:
            logger.warning(
                f"Session {self.session_id}: already talking to {self.active_character}"
            )
            return False
        return True

    async def _open_dialogue(self, character: str, prompt: str) -> None:
        # Enter DIALOGUE before the game master confirms
        self.dialogue_history = []
        self.active_character = character
        self.phase = GamePhase.DIALOGUE

        result = await self._request_turn(prompt)
        if result is not None:
            self._apply_turn(result)

    async def start_dialogue(self, character: str) -> None:
        """Start talking to a character"""
        character = character.strip()
        if not character:
            logger.warning(f"Session {self.session_id}: dialogue needs a character name")
            return
        if not self._can_open_dialogue():
            return

        await self._open_dialogue(
            character, self._render("start_dialogue_prompt.txt", character=character)
        )

    async def consult_partner(self) -> None:
        """Ask the partner for advice based on the clues found so far"""
        if not self._can_open_dialogue():
            return

        if self.collected_clues:
            clues_text = self._render(
                "known_clues.txt",
                clue_names=CLUE_DELIMITER.join(c.name for c in self.collected_clues),
            )
        else:
            clues_text = self._render("no_clues.txt")

        await self._open_dialogue(
            self.partner_name,
            self._render(
                "consult_partner_prompt.txt",
                partner_name=self.partner_name,
                clues_text=clues_text,
            ),
        )

    async def send_dialogue_message(self, text: str) -> None:
        """
        Send a line of dialogue to the active character.

        The reply only extends the dialogue history; scene and narrative
        stay as they are and the phase stays DIALOGUE whatever the game
        master declares.
        """
        character = self.active_character
        if not character or self.channel is None:
            logger.warning(f"Session {self.session_id}: no active dialogue")
            return
        if not text.strip():
            logger.warning(f"Session {self.session_id}: ignoring empty dialogue message")
            return

        self.dialogue_history.append(
            Message(sender=Sender.PLAYER, content=text, speaker=self.case.player_label)
        )

        result = await self._request_turn(text)
        if result is None:
            return

        if self.active_character != character:
            logger.info(
                f"Session {self.session_id}: dialogue with {character} ended, dropping reply"
            )
            return

        self.dialogue_history.append(
            Message(
                sender=Sender.STORYTELLER,
                content=result.narrative,
                speaker=result.speaker,
            )
        )
        if result.game_phase != GamePhase.DIALOGUE:
            logger.debug(
                f"Session {self.session_id}: game master declared {result.game_phase.value} "
                f"mid-dialogue, keeping DIALOGUE"
            )
        self.phase = GamePhase.DIALOGUE

    async def end_dialogue(self) -> None:
        """Leave the dialogue and ask for a short description of the scene"""
        if self.phase != GamePhase.DIALOGUE:
            logger.warning(f"Session {self.session_id}: no dialogue to end")
            return

        self.active_character = None
        self.phase = GamePhase.INVESTIGATION
        self.dialogue_history = []

        if self.channel is None:
            return

        result = await self._request_turn(self._render("end_dialogue_prompt.txt"))
        if result is not None:
            self._apply_turn(result)
