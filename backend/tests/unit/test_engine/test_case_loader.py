"""Unit tests for CaseLoader."""

from pathlib import Path

import pytest

from linglong.engine.case import DEFAULT_CASE_ID, CaseLoader, get_default_case_id


def write_case(cases_dir: Path, case_id: str, content: str) -> None:
    case_dir = cases_dir / case_id
    case_dir.mkdir(parents=True)
    (case_dir / "case.yaml").write_text(content, encoding="utf-8")


VALID_CASE = """
title: 测试案卷
setting: A quiet manor.
partner:
  name: 岳玲珑
  description: The player's partner.
constraints:
  - Write in Chinese.
"""


class TestLoadCase:
    def test_loads_valid_case(self, tmp_path) -> None:
        write_case(tmp_path, "manor", VALID_CASE)

        case = CaseLoader(tmp_path).load_case("manor")

        assert case.title == "测试案卷"
        assert case.partner.name == "岳玲珑"
        assert case.constraints == ["Write in Chinese."]
        assert case.narrator_label == "旁白"

    def test_missing_case(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            CaseLoader(tmp_path).load_case("nowhere")

    def test_non_mapping_case(self, tmp_path) -> None:
        write_case(tmp_path, "listy", "- just\n- a list\n")

        with pytest.raises(ValueError, match="YAML mapping"):
            CaseLoader(tmp_path).load_case("listy")

    def test_invalid_case(self, tmp_path) -> None:
        write_case(tmp_path, "no-partner", "title: x\nsetting: y\n")

        with pytest.raises(ValueError, match="validation failed"):
            CaseLoader(tmp_path).load_case("no-partner")

    def test_bundled_default_case(self) -> None:
        """The default case ships with the project and loads."""
        case = CaseLoader().load_case(DEFAULT_CASE_ID)

        assert case.partner.name == "岳玲珑"
        assert case.narrator_label == "旁白"


class TestListCases:
    def test_lists_valid_cases(self, tmp_path) -> None:
        write_case(tmp_path, "manor", VALID_CASE)
        (tmp_path / "not-a-case").mkdir()

        cases = CaseLoader(tmp_path).list_cases()

        assert cases == [
            {
                "id": "manor",
                "title": "测试案卷",
                "partner": "岳玲珑",
                "description": "A quiet manor.",
            }
        ]

    def test_skips_broken_cases(self, tmp_path) -> None:
        write_case(tmp_path, "broken", "title: [unclosed\n")
        write_case(tmp_path, "manor", VALID_CASE)

        cases = CaseLoader(tmp_path).list_cases()

        assert [c["id"] for c in cases] == ["manor"]

    def test_truncates_long_setting(self, tmp_path) -> None:
        write_case(
            tmp_path,
            "long",
            "title: t\nsetting: " + "x" * 300 + "\npartner:\n  name: p\n",
        )

        description = CaseLoader(tmp_path).list_cases()[0]["description"]

        assert description == "x" * 200 + "..."

    def test_missing_directory(self, tmp_path) -> None:
        assert CaseLoader(tmp_path / "missing").list_cases() == []


class TestConfiguration:
    def test_cases_dir_from_env(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("LINGLONG_CASES_DIR", str(tmp_path))

        assert CaseLoader().cases_dir == tmp_path

    def test_default_case_id(self, monkeypatch) -> None:
        monkeypatch.delenv("LINGLONG_DEFAULT_CASE", raising=False)
        assert get_default_case_id() == "linglong-fu"

        monkeypatch.setenv("LINGLONG_DEFAULT_CASE", "manor")
        assert get_default_case_id() == "manor"
