"""
Case models - Pydantic models for case YAML files
"""

from pydantic import BaseModel, Field


class PartnerCharacter(BaseModel):
    """The fixed companion who is always available for consultation"""
    name: str
    description: str = ""


class CaseFile(BaseModel):
    """A detective case: setting and fixed cast used to brief the game master"""
    title: str
    setting: str
    tone: str = "mysterious"
    partner: PartnerCharacter
    narrator_label: str = "旁白"  # Speaker name the game master uses for narration
    player_label: str = "你"  # Speaker name shown on the player's own messages
    constraints: list[str] = Field(default_factory=list)  # Extra rules for the game master
