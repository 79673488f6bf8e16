"""
Shared pytest fixtures for the Linglong Fu backend tests.

This module provides:
- sample_case: CaseFile with a known partner and labels
- opening_turn: NARRATIVE turn result with two investigation points
- gateway: ScriptedGateway for deterministic turns
- coordinator: SessionCoordinator wired to the scripted gateway
- Custom markers for test categorization
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Add backend to path for imports
backend_path = Path(__file__).parent.parent
if str(backend_path) not in sys.path:
    sys.path.insert(0, str(backend_path))

from linglong.engine.coordinator import SessionCoordinator  # noqa: E402
from linglong.models.case import CaseFile, PartnerCharacter  # noqa: E402
from linglong.models.game import GamePhase, TurnResult  # noqa: E402
from tests.mocks.gateway import ScriptedGateway, build_turn_result  # noqa: E402


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line(
        "markers", "e2e: marks tests as end-to-end tests requiring real LLM"
    )


# =============================================================================
# Case Fixtures
# =============================================================================


@pytest.fixture
def sample_case() -> CaseFile:
    """Create a minimal case for testing."""
    return CaseFile(
        title="测试案卷",
        setting="A quiet Ming Dynasty manor where the master was found dead.",
        tone="neutral",
        partner=PartnerCharacter(
            name="岳玲珑",
            description="The player's partner, a genius detective.",
        ),
        narrator_label="旁白",
        player_label="你",
        constraints=["Keep responses brief for testing"],
    )


# =============================================================================
# Turn Result Fixtures
# =============================================================================


@pytest.fixture
def opening_turn() -> TurnResult:
    """Opening NARRATIVE turn whose scene already holds two investigation points."""
    return build_turn_result(
        narrative="岳玲珑推开书房的门，一股霉味扑面而来。",
        phase=GamePhase.NARRATIVE,
        location="书房",
        characters=["李捕头", "管家"],
        points=[("desk_letter", "桌上的信件"), ("broken_vase", "碎裂的花瓶")],
    )


@pytest.fixture
def investigation_turn() -> TurnResult:
    """INVESTIGATION turn in the same study."""
    return build_turn_result(
        narrative="你回到了书房，四下寂静。",
        phase=GamePhase.INVESTIGATION,
        location="书房",
        points=[("desk_letter", "桌上的信件"), ("broken_vase", "碎裂的花瓶")],
    )


# =============================================================================
# Gateway / Coordinator Fixtures
# =============================================================================


@pytest.fixture
def gateway() -> ScriptedGateway:
    """Create an empty scripted gateway; tests queue their own turns."""
    return ScriptedGateway()


@pytest.fixture
def coordinator(gateway: ScriptedGateway, sample_case: CaseFile) -> SessionCoordinator:
    """Create a coordinator for a fresh session."""
    return SessionCoordinator(
        gateway=gateway,
        case=sample_case,
        case_id="test-case",
        session_id="test-session-001",
    )

