"""Unit tests for PromptLoader."""

import os

import pytest

from linglong.llm.prompt_loader import PromptLoader


@pytest.fixture
def prompts_dir(tmp_path):
    category = tmp_path / "game_master"
    category.mkdir()
    (category / "greeting.txt").write_text("你好，{name}。\n", encoding="utf-8")
    return tmp_path


class TestPromptLoader:
    def test_get_prompt(self, prompts_dir) -> None:
        loader = PromptLoader(prompts_dir)

        assert loader.get_prompt("game_master", "greeting.txt") == "你好，{name}。\n"

    def test_render_fills_placeholders(self, prompts_dir) -> None:
        loader = PromptLoader(prompts_dir)

        assert loader.render("game_master", "greeting.txt", name="岳玲珑") == "你好，岳玲珑。"

    def test_render_missing_value(self, prompts_dir) -> None:
        loader = PromptLoader(prompts_dir)

        with pytest.raises(ValueError, match="name"):
            loader.render("game_master", "greeting.txt")

    def test_missing_prompt(self, prompts_dir) -> None:
        loader = PromptLoader(prompts_dir)

        with pytest.raises(FileNotFoundError):
            loader.get_prompt("game_master", "missing.txt")

    def test_hot_reload(self, prompts_dir) -> None:
        """A modified prompt file is picked up without restarting."""
        loader = PromptLoader(prompts_dir)
        path = prompts_dir / "game_master" / "greeting.txt"
        loader.get_prompt("game_master", "greeting.txt")

        path.write_text("再会，{name}。", encoding="utf-8")
        mtime = path.stat().st_mtime + 10
        os.utime(path, (mtime, mtime))

        assert loader.get_prompt("game_master", "greeting.txt") == "再会，{name}。"

    def test_unchanged_prompt_served_from_cache(self, prompts_dir) -> None:
        """A file whose mtime did not advance is not read again."""
        loader = PromptLoader(prompts_dir)
        path = prompts_dir / "game_master" / "greeting.txt"
        mtime = path.stat().st_mtime

        path.write_text("改过了", encoding="utf-8")
        os.utime(path, (mtime, mtime))

        assert loader.get_prompt("game_master", "greeting.txt") == "你好，{name}。\n"

    def test_missing_prompts_dir(self, tmp_path) -> None:
        loader = PromptLoader(tmp_path / "missing")

        with pytest.raises(FileNotFoundError):
            loader.get_prompt("game_master", "greeting.txt")

    def test_deleted_prompt_uses_cache(self, prompts_dir) -> None:
        loader = PromptLoader(prompts_dir)
        (prompts_dir / "game_master" / "greeting.txt").unlink()

        assert loader.get_prompt("game_master", "greeting.txt") == "你好，{name}。\n"


class TestBundledPrompts:
    """The prompts shipped with the package render with the values the engine passes."""

    @pytest.fixture
    def loader(self) -> PromptLoader:
        return PromptLoader()

    def test_system_prompt(self, loader) -> None:
        prompt = loader.render(
            "game_master",
            "system_prompt.txt",
            title="玲珑府",
            setting="Ming Dynasty",
            tone="mysterious",
            partner_name="岳玲珑",
            partner_description="A genius detective.",
            narrator_label="旁白",
            constraints="- Write in Chinese.",
            response_schema="{}",
        )

        assert "岳玲珑" in prompt
        assert "'旁白'" in prompt
        assert "{" not in prompt.replace("{}", "")

    @pytest.mark.parametrize(
        "filename, values",
        [
            ("opening_prompt.txt", {}),
            ("investigate_prompt.txt", {"point_name": "桌上的信件"}),
            ("start_dialogue_prompt.txt", {"character": "管家"}),
            ("known_clues.txt", {"clue_names": "信件"}),
            ("no_clues.txt", {}),
            (
                "consult_partner_prompt.txt",
                {"partner_name": "岳玲珑", "clues_text": "我们目前还没有发现任何线索。"},
            ),
            ("end_dialogue_prompt.txt", {}),
        ],
    )
    def test_turn_prompts(self, loader, filename, values) -> None:
        prompt = loader.render("game_master", filename, **values)

        assert prompt
        for value in values.values():
            assert value in prompt
