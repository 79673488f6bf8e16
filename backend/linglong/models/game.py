"""
Game session models - Pydantic models for the detective game state

Field names are snake_case in Python. The turn contract with the game master
and the API payloads use camelCase, so every camelCase field carries an alias
and models accept either form.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GamePhase(str, Enum):
    """Coarse UI mode gating which controls are active."""

    STARTING = "STARTING"
    NARRATIVE = "NARRATIVE"
    INVESTIGATION = "INVESTIGATION"
    DIALOGUE = "DIALOGUE"


# Phases the game master may declare in a turn (STARTING is client-only)
ACTIVE_PHASES = (GamePhase.NARRATIVE, GamePhase.INVESTIGATION, GamePhase.DIALOGUE)


class Sender(str, Enum):
    """Who wrote a dialogue message"""

    PLAYER = "player"
    STORYTELLER = "storyteller"


class CamelModel(BaseModel):
    """Base model accepting both field names and camelCase aliases"""

    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Scene Models
# =============================================================================


class InvestigationPoint(CamelModel):
    """A clickable scene hotspot that yields a clue when investigated"""

    id: str
    name: str


class Scene(CamelModel):
    """The complete state of the current location, replaced on every full turn"""

    location: str
    location_image_prompt: str = Field(alias="locationImagePrompt")
    characters: list[str] = Field(default_factory=list)  # Excludes the partner
    investigation_points: list[InvestigationPoint] = Field(
        default_factory=list, alias="investigationPoints"
    )

    @field_validator("investigation_points")
    @classmethod
    def check_unique_point_ids(
        cls, points: list[InvestigationPoint]
    ) -> list[InvestigationPoint]:
        """Investigation point ids identify points within a scene."""
        seen: set[str] = set()
        for point in points:
            if point.id in seen:
                raise ValueError(f"Duplicate investigation point id: {point.id}")
            seen.add(point.id)
        return points

    def get_point(self, point_id: str) -> InvestigationPoint | None:
        """Find an investigation point by id"""
        for point in self.investigation_points:
            if point.id == point_id:
                return point
        return None

    def without_point(self, point_id: str) -> Scene:
        """Copy of this scene with the given investigation point removed"""
        return self.model_copy(
            update={
                "investigation_points": [
                    p for p in self.investigation_points if p.id != point_id
                ]
            }
        )


# =============================================================================
# Clue and Dialogue Models
# =============================================================================


class CollectedClue(CamelModel):
    """Record of an investigated point, kept for the rest of the playthrough"""

    id: str
    name: str
    description: str


class PendingInvestigation(CamelModel):
    """An investigated point awaiting the player's acknowledgment"""

    point: InvestigationPoint
    description: str

    def to_clue(self) -> CollectedClue:
        return CollectedClue(
            id=self.point.id,
            name=self.point.name,
            description=self.description,
        )


class Message(CamelModel):
    """Single entry of a dialogue sub-session"""

    sender: Sender
    content: str
    speaker: str | None = None


class NarrativeLine(CamelModel):
    """The narrative currently displayed to the player"""

    speaker: str = ""
    content: str = ""


# =============================================================================
# Turn Contract
# =============================================================================


class TurnResult(CamelModel):
    """Structured result of one turn with the game master"""

    narrative: str = Field(
        description="The main story text or dialogue content for the current turn. "
        "This is what the player sees."
    )
    speaker: str = Field(
        description="The name of the character who is speaking. "
        "Use the narrator label for narration."
    )
    game_phase: GamePhase = Field(
        alias="gamePhase",
        description="The phase of the game after this turn: NARRATIVE for story "
        "progression, INVESTIGATION for exploring the scene, DIALOGUE for "
        "conversations.",
    )
    scene: Scene = Field(description="The complete, updated state of the current scene.")

    @field_validator("game_phase")
    @classmethod
    def check_active_phase(cls, phase: GamePhase) -> GamePhase:
        """The game master can only declare one of the active phases."""
        if phase not in ACTIVE_PHASES:
            raise ValueError(
                "gamePhase must be one of NARRATIVE, INVESTIGATION, DIALOGUE "
                f"(got {phase.value})"
            )
        return phase


# =============================================================================
# Session Snapshot
# =============================================================================


class SessionSnapshot(CamelModel):
    """Read-only view of a session, returned by the game API"""

    session_id: str = Field(alias="sessionId")
    case_id: str = Field(alias="caseId")
    partner: str
    phase: GamePhase
    scene: Scene | None = None
    narrative: NarrativeLine = Field(default_factory=NarrativeLine)
    dialogue_history: list[Message] = Field(
        default_factory=list, alias="dialogueHistory"
    )
    active_character: str | None = Field(default=None, alias="activeCharacter")
    collected_clues: list[CollectedClue] = Field(
        default_factory=list, alias="collectedClues"
    )
    pending_investigation: PendingInvestigation | None = Field(
        default=None, alias="pendingInvestigation"
    )
    is_loading: bool = Field(default=False, alias="isLoading")
    error: str | None = None
