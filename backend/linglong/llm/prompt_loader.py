"""
Prompt Loader - Game master prompt templates, hot reloaded from text files.

Prompts are organized in subdirectories:
- game_master/ - System prompt and the instructions sent on each turn

Templates use str.format placeholders, e.g. {partner_name}. Editing a
template takes effect on the next turn without restarting the server.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class _Template:
    text: str
    mtime: float


class PromptLoader:
    """Caches prompt templates and re-reads them when the file changes."""

    def __init__(self, prompts_dir: Optional[Path] = None):
        """
        Args:
            prompts_dir: Directory holding one subdirectory per prompt category.
                Defaults to prompts/ next to this module.
        """
        self.prompts_dir = Path(prompts_dir) if prompts_dir else Path(__file__).parent / "prompts"
        self._templates: Dict[Tuple[str, str], _Template] = {}
        self._preload()

    def _preload(self) -> None:
        # Templates read at startup survive a later deletion of the file
        if not self.prompts_dir.exists():
            logger.warning(f"Prompts directory does not exist: {self.prompts_dir}")
            return

        for path in sorted(self.prompts_dir.glob("*/*.txt")):
            try:
                self._read(path.parent.name, path.name)
            except OSError as e:
                logger.error(f"Failed to load prompt {path.parent.name}/{path.name}: {e}")

        logger.info(f"Loaded {len(self._templates)} prompt file(s) from {self.prompts_dir}")

    def _read(self, category: str, filename: str) -> str:
        path = self.prompts_dir / category / filename
        text = path.read_text(encoding="utf-8")
        self._templates[(category, filename)] = _Template(text, path.stat().st_mtime)
        return text

    def get_prompt(self, category: str, filename: str) -> str:
        """
        Get a raw template, re-reading it if the file changed since last read.

        Raises:
            FileNotFoundError: If the template was never loaded and has no file
        """
        key = (category, filename)
        path = self.prompts_dir / category / filename
        cached = self._templates.get(key)

        if not path.exists():
            if cached is None:
                raise FileNotFoundError(f"Prompt file not found: {path}")
            logger.warning(f"Prompt file deleted, using cached version: {category}/{filename}")
            return cached.text

        if cached is None or path.stat().st_mtime > cached.mtime:
            if cached is not None:
                logger.info(f"Hot reloading modified prompt: {category}/{filename}")
            return self._read(category, filename)

        return cached.text

    def render(self, category: str, filename: str, **values: object) -> str:
        """Get a template and fill its placeholders."""
        template = self.get_prompt(category, filename)
        try:
            return template.format(**values).strip()
        except KeyError as e:
            raise ValueError(
                f"Prompt {category}/{filename} needs a value for {e.args[0]}"
            ) from e


# Shared instance used by the coordinator and gateway
_loader: Optional[PromptLoader] = None


def get_loader() -> PromptLoader:
    """Get the shared prompt loader, creating it on first use."""
    global _loader
    if _loader is None:
        _loader = PromptLoader()
    return _loader
