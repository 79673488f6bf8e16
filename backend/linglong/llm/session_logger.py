"""
Channel-based LLM interaction logger.

Creates human-readable log files for each game master channel with
clearly separated turns. Enabled with LINGLONG_SESSION_LOGS=1.
"""

from __future__ import annotations

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any


# Get project root and logs directory
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent


def session_logging_enabled() -> bool:
    """Whether per-session turn logs should be written"""
    return os.getenv("LINGLONG_SESSION_LOGS", "").lower() in ("1", "true", "yes")


def get_logs_dir() -> Path:
    """Get the directory session logs are written to"""
    return Path(os.getenv("LINGLONG_LOGS_DIR", PROJECT_ROOT / "logs"))


class SessionLogger:
    """Logs the turns of one game master channel to a dedicated file."""

    def __init__(self, channel_id: str, case_id: str, logs_dir: Path | None = None):
        self.channel_id = channel_id
        self.case_id = case_id
        self.logs_dir = Path(logs_dir) if logs_dir is not None else get_logs_dir()
        self.turn_count = 0
        self.log_file: Path | None = None

    def _ensure_log_file(self, system_prompt: str) -> Path:
        """Create the log file on first turn."""
        if self.log_file is None:
            # Create case-specific directory
            case_dir = self.logs_dir / self.case_id
            case_dir.mkdir(parents=True, exist_ok=True)

            started = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            self.log_file = case_dir / f"{started}_{self.channel_id}.log"

            with open(self.log_file, "w", encoding="utf-8") as f:
                f.write("Linglong Fu Session Log\n")
                f.write("=======================\n")
                f.write(f"Channel ID: {self.channel_id}\n")
                f.write(f"Case: {self.case_id}\n")
                f.write(f"Started: {datetime.now().isoformat()}\n")
                f.write("\n")
                f.write("─── SYSTEM PROMPT ───\n")
                f.write(system_prompt)
                f.write("\n\n")

        return self.log_file

    def log_turn(
        self,
        system_prompt: str,
        user_prompt: str,
        raw_response: str,
        parsed_response: dict[str, Any],
        model: str,
    ) -> None:
        """Log a turn exchanged with the game master."""
        log_file = self._ensure_log_file(system_prompt)
        self.turn_count += 1

        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        with open(log_file, "a", encoding="utf-8") as f:
            f.write("═" * 70 + "\n")
            f.write(f"TURN #{self.turn_count} | {timestamp} | {model}\n")
            f.write("═" * 70 + "\n\n")

            f.write("─── USER PROMPT ───\n")
            f.write(user_prompt)
            f.write("\n\n")

            f.write("─── RAW RESPONSE ───\n")
            f.write(raw_response or "(empty)")
            f.write("\n\n")

            f.write("─── PARSED RESULT ───\n")
            try:
                f.write(json.dumps(parsed_response, indent=2, ensure_ascii=False))
            except (TypeError, ValueError):
                f.write(str(parsed_response))
            f.write("\n\n")

            # Phase and scene summary for skimming
            scene = parsed_response.get("scene") or {}
            points = scene.get("investigationPoints") or []
            f.write("─── SUMMARY ───\n")
            f.write(f"Phase: {parsed_response.get('gamePhase', '?')}\n")
            f.write(f"Speaker: {parsed_response.get('speaker', '')}\n")
            f.write(f"Location: {scene.get('location', '')}\n")
            if points:
                f.write("Investigation points:\n")
                for point in points:
                    f.write(f"  - {point.get('id')}: {point.get('name')}\n")
            f.write("\n")
