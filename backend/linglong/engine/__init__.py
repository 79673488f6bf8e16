"""Game engine components.

- `coordinator.py`: SessionCoordinator, the phase state machine of a playthrough
- `case.py`: CaseLoader for YAML case files
- `protocols.py`: TurnGateway / TurnChannel interfaces
"""

from linglong.engine.case import CaseLoader, get_default_case_id
from linglong.engine.coordinator import SessionCoordinator

__all__ = [
    "CaseLoader",
    "get_default_case_id",
    "SessionCoordinator",
]
