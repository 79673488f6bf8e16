"""
Game master gateway - the AI turn channel backed by LiteLLM.

Each playthrough opens one GameMasterChannel seeded with the system prompt
rendered for the case. Turns are sent as free-form text; the reply must be a
JSON object matching TURN_RESPONSE_SCHEMA and is validated into a TurnResult.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field

from pydantic import ValidationError

from linglong.llm.client import get_completion, parse_json_response, get_model_string
from linglong.llm.errors import GatewayTransportError, MalformedTurnResultError
from linglong.llm.prompt_loader import PromptLoader, get_loader
from linglong.llm.session_logger import SessionLogger, session_logging_enabled
from linglong.models.case import CaseFile
from linglong.models.game import TurnResult

logger = logging.getLogger(__name__)


# JSON schema for the game master's reply, matching TurnResult
TURN_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "narrative": {
            "type": "string",
            "description": "The main story text or dialogue content for the current turn. This is what the player sees.",
        },
        "speaker": {
            "type": "string",
            "description": "The name of the character who is speaking. Use the narrator label for narration.",
        },
        "gamePhase": {
            "type": "string",
            "enum": ["NARRATIVE", "INVESTIGATION", "DIALOGUE"],
            "description": "The phase of the game after this turn. NARRATIVE for story progression, INVESTIGATION for exploring the scene, DIALOGUE for conversations.",
        },
        "scene": {
            "type": "object",
            "description": "The complete, updated state of the current scene.",
            "properties": {
                "location": {
                    "type": "string",
                    "description": "The name of the current location (e.g., '书房' - Study Room).",
                },
                "locationImagePrompt": {
                    "type": "string",
                    "description": "A detailed, descriptive English prompt for generating a background image for this location.",
                },
                "characters": {
                    "type": "array",
                    "description": "Names of all characters present in the current location, excluding the partner.",
                    "items": {"type": "string"},
                },
                "investigationPoints": {
                    "type": "array",
                    "description": "Points of interest the player can investigate in the scene, each with a unique id.",
                    "items": {
                        "type": "object",
                        "properties": {
                            "id": {
                                "type": "string",
                                "description": "A unique identifier for the investigation point (e.g., 'desk_clue_1').",
                            },
                            "name": {
                                "type": "string",
                                "description": "The name displayed to the player (e.g., '桌上的信件' - Letter on the desk).",
                            },
                        },
                        "required": ["id", "name"],
                    },
                },
            },
            "required": ["location", "locationImagePrompt", "characters", "investigationPoints"],
        },
    },
    "required": ["narrative", "speaker", "gamePhase", "scene"],
}


def parse_turn_result(raw_response: str | None) -> TurnResult:
    """
    Parse and validate a raw game master reply.

    Raises:
        MalformedTurnResultError: If the reply is not JSON or misses the schema
    """
    try:
        data = parse_json_response(raw_response)
    except ValueError as e:
        raise MalformedTurnResultError(str(e), raw_response) from e

    try:
        return TurnResult.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        )
        raise MalformedTurnResultError(
            f"Failed to parse AI response. The response did not match the turn schema ({problems}).",
            raw_response,
        ) from e


@dataclass
class GameMasterChannel:
    """Conversation state for one playthrough.

    Attributes:
        channel_id: Unique id, also used to name the session log
        system_prompt: Game master instructions sent with every turn
        history: Committed user/assistant messages, oldest first
        session_logger: Optional turn log writer
    """

    channel_id: str
    system_prompt: str
    history: list[dict[str, str]] = field(default_factory=list)
    session_logger: SessionLogger | None = None

    def build_messages(self, prompt: str) -> list[dict[str, str]]:
        """Messages for the next turn: system prompt, history, new prompt."""
        return [
            {"role": "system", "content": self.system_prompt},
            *self.history,
            {"role": "user", "content": prompt},
        ]


class GameMasterGateway:
    """LLM-backed implementation of the TurnGateway protocol.

    Example:
        >>> gateway = GameMasterGateway(case, case_id="linglong-fu")
        >>> channel = gateway.open_channel()
        >>> result = await gateway.send_turn(channel, "游戏开始")
    """

    def __init__(
        self,
        case: CaseFile,
        case_id: str,
        prompt_loader: PromptLoader | None = None,
        session_logs: bool | None = None,
    ):
        """Initialize the gateway.

        Args:
            case: The case the game master narrates
            case_id: Case identifier, used for session log folders
            prompt_loader: Prompt source, defaults to the global loader
            session_logs: Write per-channel logs; defaults to LINGLONG_SESSION_LOGS
        """
        self.case = case
        self.case_id = case_id
        self.prompt_loader = prompt_loader or get_loader()
        self.session_logs = (
            session_logging_enabled() if session_logs is None else session_logs
        )

    def build_system_prompt(self) -> str:
        """Render the game master system prompt for this case."""
        constraints = "\n".join(f"- {rule}" for rule in self.case.constraints) or "- None"
        return self.prompt_loader.render(
            "game_master",
            "system_prompt.txt",
            title=self.case.title,
            setting=self.case.setting.strip(),
            tone=self.case.tone,
            partner_name=self.case.partner.name,
            partner_description=self.case.partner.description.strip(),
            narrator_label=self.case.narrator_label,
            constraints=constraints,
            response_schema=json.dumps(TURN_RESPONSE_SCHEMA, indent=2, ensure_ascii=False),
        )

    def open_channel(self) -> GameMasterChannel:
        """Open a fresh channel seeded with the game master instructions."""
        channel_id = str(uuid.uuid4())
        channel = GameMasterChannel(
            channel_id=channel_id,
            system_prompt=self.build_system_prompt(),
        )
        if self.session_logs:
            channel.session_logger = SessionLogger(channel_id, self.case_id)
        logger.info(f"Opened game master channel {channel_id} for case '{self.case_id}'")
        return channel

    async def send_turn(self, channel: GameMasterChannel, prompt: str) -> TurnResult:
        """Send one turn and return the validated result.

        The exchange is only added to the channel history when the reply
        is a valid turn, so a failed turn can simply be retried.
        """
        messages = channel.build_messages(prompt)
        logger.info(
            f"Turn on channel {channel.channel_id}: {len(channel.history) // 2} prior turn(s)"
        )

        try:
            raw_response = await get_completion(
                messages, response_format={"type": "json_object"}
            )
        except Exception as e:
            raise GatewayTransportError(
                f"Failed to reach the AI game master ({type(e).__name__}: {e})"
            ) from e

        result = parse_turn_result(raw_response)

        channel.history.append({"role": "user", "content": prompt})
        channel.history.append({"role": "assistant", "content": raw_response})

        if channel.session_logger is not None:
            channel.session_logger.log_turn(
                system_prompt=channel.system_prompt,
                user_prompt=prompt,
                raw_response=raw_response,
                parsed_response=result.model_dump(mode="json", by_alias=True),
                model=get_model_string(),
            )

        return result
