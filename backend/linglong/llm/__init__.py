"""LLM integration components.

- `client.py`: LiteLLM client wrapper
- `gateway.py`: GameMasterGateway, the AI turn channel
- `errors.py`: Gateway failure types
- `prompt_loader.py`: Prompt template loading utility
- `session_logger.py`: Per-channel turn logs

Import the gateway from its submodule:
    from linglong.llm.gateway import GameMasterGateway
"""

from linglong.llm.client import get_completion, parse_json_response, get_model_string
from linglong.llm.errors import (
    GatewayError,
    GatewayTransportError,
    MalformedTurnResultError,
)
from linglong.llm.prompt_loader import get_loader

__all__ = [
    "get_completion",
    "parse_json_response",
    "get_model_string",
    "GatewayError",
    "GatewayTransportError",
    "MalformedTurnResultError",
    "get_loader",
]
