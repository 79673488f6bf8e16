"""
Game API endpoints - Drive a playthrough session from the browser

Every endpoint returns the session snapshot. Failed turns with the game
master are not HTTP errors: they are reported in the snapshot's `error`
field so the UI can show them.
"""

import logging
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field

from linglong.engine.case import CaseLoader, get_default_case_id
from linglong.engine.coordinator import SessionCoordinator
from linglong.engine.protocols import TurnGateway
from linglong.llm.gateway import GameMasterGateway
from linglong.models.case import CaseFile
from linglong.models.game import CamelModel, SessionSnapshot

logger = logging.getLogger(__name__)

router = APIRouter()

# In-memory game sessions (for prototype - would use Redis/DB in production)
game_sessions: dict[str, SessionCoordinator] = {}

GatewayFactory = Callable[[CaseFile, str], TurnGateway]


def get_case_loader() -> CaseLoader:
    return CaseLoader()


def get_gateway_factory() -> GatewayFactory:
    """Builds the turn gateway for a new session (overridden in tests)"""
    return GameMasterGateway


class NewGameRequest(CamelModel):
    """Request to start a new game"""

    case_id: str | None = Field(default=None, alias="caseId")


class InvestigateRequest(CamelModel):
    """Request to investigate a point of the current scene"""

    point_id: str = Field(alias="pointId")


class StartDialogueRequest(CamelModel):
    """Request to start talking to a character"""

    character: str


class DialogueMessageRequest(CamelModel):
    """A line the player says in the current dialogue"""

    text: str


def get_session(session_id: str) -> SessionCoordinator:
    """Look up a live session"""
    session = game_sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Game session not found")
    return session


@router.post("/new", response_model=SessionSnapshot)
async def new_game(
    request: NewGameRequest,
    loader: CaseLoader = Depends(get_case_loader),
    gateway_factory: GatewayFactory = Depends(get_gateway_factory),
):
    """Start a new game session"""
    case_id = request.case_id or get_default_case_id()
    try:
        case = loader.load_case(case_id)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail=f"Case '{case_id}' not found")
    except ValueError as e:
        logger.error(f"Invalid case '{case_id}': {e}")
        raise HTTPException(status_code=500, detail=str(e))

    session = SessionCoordinator(gateway_factory(case, case_id), case, case_id)
    game_sessions[session.session_id] = session

    await session.start_new_game()
    return session.snapshot()


@router.get("/{session_id}", response_model=SessionSnapshot)
async def get_state(session: SessionCoordinator = Depends(get_session)):
    """Get current session state"""
    return session.snapshot()


@router.post("/{session_id}/restart", response_model=SessionSnapshot)
async def restart_game(session: SessionCoordinator = Depends(get_session)):
    """Start a fresh playthrough of the same case"""
    await session.start_new_game()
    return session.snapshot()


@router.post("/{session_id}/advance", response_model=SessionSnapshot)
async def advance_narrative(session: SessionCoordinator = Depends(get_session)):
    """Continue past the narrative into the investigation"""
    session.advance_narrative()
    return session.snapshot()


@router.post("/{session_id}/investigate", response_model=SessionSnapshot)
async def investigate(
    request: InvestigateRequest,
    session: SessionCoordinator = Depends(get_session),
):
    """Investigate a point of the current scene"""
    point = session.scene.get_point(request.point_id) if session.scene else None
    if point is None:
        raise HTTPException(
            status_code=404,
            detail=f"Investigation point '{request.point_id}' not found",
        )

    await session.investigate(point)
    return session.snapshot()


@router.post("/{session_id}/clue/dismiss", response_model=SessionSnapshot)
async def dismiss_clue(session: SessionCoordinator = Depends(get_session)):
    """Close the clue popup and keep the clue"""
    session.dismiss_investigation_popup()
    return session.snapshot()


@router.post("/{session_id}/dialogue/start", response_model=SessionSnapshot)
async def start_dialogue(
    request: StartDialogueRequest,
    session: SessionCoordinator = Depends(get_session),
):
    """Start talking to a character"""
    await session.start_dialogue(request.character)
    return session.snapshot()


@router.post("/{session_id}/dialogue/partner", response_model=SessionSnapshot)
async def consult_partner(session: SessionCoordinator = Depends(get_session)):
    """Ask the partner for advice"""
    await session.consult_partner()
    return session.snapshot()


@router.post("/{session_id}/dialogue/message", response_model=SessionSnapshot)
async def send_dialogue_message(
    request: DialogueMessageRequest,
    session: SessionCoordinator = Depends(get_session),
):
    """Say something to the active character"""
    await session.send_dialogue_message(request.text)
    return session.snapshot()


@router.post("/{session_id}/dialogue/end", response_model=SessionSnapshot)
async def end_dialogue(session: SessionCoordinator = Depends(get_session)):
    """Leave the current dialogue"""
    await session.end_dialogue()
    return session.snapshot()


@router.delete("/{session_id}")
async def end_session(session: SessionCoordinator = Depends(get_session)):
    """Abandon the session; results still in flight are discarded"""
    session.teardown()
    game_sessions.pop(session.session_id, None)
    return {"status": "ended", "session_id": session.session_id}
