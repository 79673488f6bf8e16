"""
Case loader - Load and validate YAML case files
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from linglong.models.case import CaseFile

logger = logging.getLogger(__name__)

DEFAULT_CASE_ID = "linglong-fu"


def get_default_case_id() -> str:
    """Get the case used when a new game does not name one"""
    return os.getenv("LINGLONG_DEFAULT_CASE", DEFAULT_CASE_ID)


class CaseLoader:
    """Loads detective cases from YAML files"""

    def __init__(self, cases_dir: str | Path | None = None):
        """Initialize with cases directory path"""
        if cases_dir is None:
            cases_dir = os.getenv("LINGLONG_CASES_DIR")
        if cases_dir is None:
            # Default to cases/ relative to project root
            project_root = Path(__file__).parent.parent.parent.parent
            cases_dir = project_root / "cases"
        self.cases_dir = Path(cases_dir)

    def list_cases(self) -> list[dict]:
        """List available cases with metadata"""
        cases = []

        if not self.cases_dir.exists():
            return cases

        for case_path in sorted(self.cases_dir.iterdir()):
            if not (case_path / "case.yaml").exists():
                continue
            try:
                case = self.load_case(case_path.name)
            except (ValueError, yaml.YAMLError) as e:
                logger.warning(f"Skipping unreadable case '{case_path.name}': {e}")
                continue
            setting = case.setting.strip()
            cases.append({
                "id": case_path.name,
                "title": case.title,
                "partner": case.partner.name,
                "description": setting[:200] + "..." if len(setting) > 200 else setting,
            })

        return cases

    def load_case(self, case_id: str) -> CaseFile:
        """
        Load a case from its YAML file.

        Args:
            case_id: The case identifier (folder name in cases/)

        Returns:
            CaseFile with the case content

        Raises:
            FileNotFoundError: If the case doesn't exist
            ValueError: If the case file is malformed
        """
        case_yaml = self.cases_dir / case_id / "case.yaml"

        if not case_yaml.exists():
            raise FileNotFoundError(f"Case '{case_id}' not found at {case_yaml}")

        with open(case_yaml, encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Case '{case_id}' must be a YAML mapping")

        try:
            case = CaseFile(**data)
        except ValidationError as e:
            raise ValueError(f"Case '{case_id}' validation failed:\n{e}") from e

        logger.debug(f"Loaded case '{case_id}': {case.title}")
        return case
