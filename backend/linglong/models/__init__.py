"""Pydantic models for Linglong Fu"""

from linglong.models.game import (
    GamePhase,
    Sender,
    Scene,
    InvestigationPoint,
    CollectedClue,
    PendingInvestigation,
    Message,
    NarrativeLine,
    TurnResult,
    SessionSnapshot,
)
from linglong.models.case import CaseFile, PartnerCharacter

__all__ = [
    # Game models
    "GamePhase",
    "Sender",
    "Scene",
    "InvestigationPoint",
    "CollectedClue",
    "PendingInvestigation",
    "Message",
    "NarrativeLine",
    "TurnResult",
    "SessionSnapshot",
    # Case models
    "CaseFile",
    "PartnerCharacter",
]
