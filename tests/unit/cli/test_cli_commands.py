"""CLI サブコマンドのテスト。

GitRepository をインメモリ実装に差し替え、終了コードと出力チャネルを検証する。
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from reviewcode.cli import app
from reviewcode.git import GitCommandError
from reviewcode.models import ExitCode

if TYPE_CHECKING:
    from tests.unit.conftest import FakeRepository

PATCH_GIT_REPOSITORY = "reviewcode.cli._app.GitRepository"

runner = CliRunner()

_DIFF = (
    "diff --git a/src/a.py b/src/a.py\n"
    "--- a/src/a.py\n"
    "+++ b/src/a.py\n"
    "@@ -4,3 +4,4 @@\n"
    "     setup()\n"
    "+foo\n"
    "     run()\n"
    "     teardown()\n"
)

_LOCK_DIFF = (
    "diff --git a/yarn.lock b/yarn.lock\n"
    "--- a/yarn.lock\n"
    "+++ b/yarn.lock\n"
    "@@ -1 +1 @@\n"
    "-a\n"
    "+b\n"
)


@pytest.fixture
def cli_repo(
    repo: FakeRepository, isolated_config: Path
) -> Iterator[FakeRepository]:
    """CLI が生成する GitRepository をインメモリ実装に差し替える。"""
    with patch(PATCH_GIT_REPOSITORY, return_value=repo):
        yield repo


class TestAppCallback:
    """--version / --help。"""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.output.strip()

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("resolve", "diff", "map", "filter", "prepare"):
            assert command in result.output


class TestResolveCommand:
    """resolve サブコマンド。"""

    def test_area(self, cli_repo: FakeRepository) -> None:
        result = runner.invoke(app, ["resolve", "security"])
        assert result.exit_code == ExitCode.SUCCESS
        data = json.loads(result.output)
        assert data["mode"] == "area"
        assert data["area"] == "security"

    def test_find_keyword(self, cli_repo: FakeRepository) -> None:
        result = runner.invoke(app, ["resolve", "find", "42"])
        data = json.loads(result.output)
        assert data == {
            "file_pattern": None,
            "find_mode": True,
            "force_mode": False,
            "mode": "pr",
            "pr_number": 42,
            "pr_url": None,
        }

    def test_prompt_exits_zero(self, cli_repo: FakeRepository) -> None:
        cli_repo.uncommitted = True
        cli_repo.ahead = 1
        result = runner.invoke(app, ["resolve"])
        assert result.exit_code == ExitCode.SUCCESS
        assert json.loads(result.output)["mode"] == "prompt"

    def test_choice_option(self, cli_repo: FakeRepository) -> None:
        result = runner.invoke(app, ["resolve", "--choice", "branch_plus_uncommitted"])
        assert result.exit_code == ExitCode.SUCCESS
        assert json.loads(result.output)["mode"] == "branch_plus_uncommitted"

    def test_base_branch_from_env(
        self, cli_repo: FakeRepository, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("REVIEW_CODE_BASE_BRANCH", "develop")
        cli_repo.ahead = 1
        result = runner.invoke(app, ["resolve"])
        assert json.loads(result.output)["base_branch"] == "develop"

    def test_output_indent_from_config(
        self, cli_repo: FakeRepository, isolated_config: Path
    ) -> None:
        (isolated_config / ".review-code").mkdir()
        (isolated_config / ".review-code" / "config.toml").write_text(
            "output_indent = 2\n", encoding="utf-8"
        )
        result = runner.invoke(app, ["resolve", "security"])
        assert result.output.startswith('{\n  "')

    def test_no_changes(self, cli_repo: FakeRepository) -> None:
        cli_repo.current = "main"
        result = runner.invoke(app, ["resolve"])
        assert result.exit_code == ExitCode.NO_CHANGES
        assert '"mode":"error"' in result.output
        assert "Error: No changes to review" in result.output

    def test_invalid_range_end(self, cli_repo: FakeRepository) -> None:
        result = runner.invoke(app, ["resolve", "main..nope"])
        assert result.exit_code == ExitCode.INPUT_ERROR
        assert "Invalid end ref: nope" in result.output

    def test_missing_base_branch(self, cli_repo: FakeRepository) -> None:
        cli_repo.base = "trunk"
        cli_repo.ahead = 1
        result = runner.invoke(app, ["resolve"])
        assert result.exit_code == ExitCode.INPUT_ERROR
        assert "Invalid base branch: trunk" in result.output

    def test_too_many_arguments(self, cli_repo: FakeRepository) -> None:
        result = runner.invoke(app, ["resolve", "a", "b", "c"])
        assert result.exit_code == ExitCode.INPUT_ERROR
        assert "Too many arguments" in result.output

    def test_git_failure(self, cli_repo: FakeRepository) -> None:
        with patch.object(
            cli_repo, "current_branch", side_effect=GitCommandError("boom")
        ):
            result = runner.invoke(app, ["resolve"])
        assert result.exit_code == ExitCode.EXECUTION_ERROR
        assert "git failed: boom" in result.output

    def test_invalid_config(
        self, cli_repo: FakeRepository, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("DIFF_CONTEXT_LINES", "many")
        result = runner.invoke(app, ["resolve", "security"])
        assert result.exit_code == ExitCode.INPUT_ERROR
        assert "Invalid configuration" in result.output


class TestDiffCommand:
    """diff サブコマンド。"""

    def test_body_and_metadata(self, cli_repo: FakeRepository) -> None:
        cli_repo.uncommitted = True
        cli_repo.unstaged_diff = _DIFF
        result = runner.invoke(app, ["diff", "--context-lines", "3"])
        assert result.exit_code == ExitCode.SUCCESS
        assert "+foo" in result.output
        assert "DIFF_TYPE: local (unstaged)" in result.output
        assert "-U3" in cli_repo.calls[0][1]

    def test_glob_argument(self, cli_repo: FakeRepository) -> None:
        cli_repo.uncommitted = True
        result = runner.invoke(app, ["diff", "*.py"])
        assert result.exit_code == ExitCode.SUCCESS
        assert "DIFF_TYPE: local (uncommitted), filtered by: *.py" in result.output

    def test_profile_option(self, cli_repo: FakeRepository) -> None:
        cli_repo.uncommitted = True
        runner.invoke(app, ["diff", "--profile", "extended"])
        assert ":!go.sum" in cli_repo.calls[0][1]

    def test_non_diff_target_printed_as_json(self, cli_repo: FakeRepository) -> None:
        result = runner.invoke(app, ["diff", "17"])
        assert result.exit_code == ExitCode.SUCCESS
        assert json.loads(result.output)["pr_number"] == 17

    def test_git_failure(self, cli_repo: FakeRepository) -> None:
        cli_repo.uncommitted = True
        with patch.object(cli_repo, "diff", side_effect=GitCommandError("bad")):
            result = runner.invoke(app, ["diff"])
        assert result.exit_code == ExitCode.EXECUTION_ERROR
        assert "Diff generation failed: bad" in result.output


class TestMapCommand:
    """map サブコマンド。"""

    def test_targets_with_diff_on_stdin(self, isolated_config: Path) -> None:
        result = runner.invoke(
            app,
            ["map", "-t", "src/a.py:5", "-t", "other.py:1", "-t", "src/a.py:9999"],
            input=_DIFF,
        )
        assert result.exit_code == ExitCode.SUCCESS
        assert json.loads(result.output) == {
            "mappings": [
                {"path": "src/a.py", "line": 5, "side": "RIGHT", "position": 2},
                {"path": "other.py", "line": 1, "error": "file not in diff"},
                {"path": "src/a.py", "line": 9999, "error": "line not in diff"},
            ]
        }

    def test_diff_file(self, isolated_config: Path) -> None:
        diff_file = isolated_config / "review.diff"
        diff_file.write_text(_DIFF, encoding="utf-8")
        result = runner.invoke(
            app, ["map", "--diff-file", str(diff_file), "--target", "src/a.py:4"]
        )
        assert json.loads(result.output)["mappings"][0]["position"] == 1

    def test_json_stdin(self, isolated_config: Path) -> None:
        payload = json.dumps(
            {"diff": _DIFF, "targets": [{"path": "src/a.py", "line": 6}]}
        )
        result = runner.invoke(app, ["map"], input=payload)
        assert result.exit_code == ExitCode.SUCCESS
        assert json.loads(result.output)["mappings"][0]["position"] == 3

    def test_json_stdin_ignores_comment_fields(self, isolated_config: Path) -> None:
        payload = json.dumps(
            {
                "diff": _DIFF,
                "targets": [
                    {"path": "src/a.py", "line": 5, "body": "rename foo"},
                    {"path": "src/a.py", "line": 6, "side": "RIGHT"},
                ],
                "commit_id": "abc1234",
            }
        )
        result = runner.invoke(app, ["map"], input=payload)
        assert result.exit_code == ExitCode.SUCCESS
        mappings = json.loads(result.output)["mappings"]
        assert [m["position"] for m in mappings] == [2, 3]

    def test_invalid_json_stdin(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["map"], input="not json")
        assert result.exit_code == ExitCode.INPUT_ERROR
        assert "Invalid map input" in result.output

    def test_invalid_target(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["map", "-t", "src/a.py"], input=_DIFF)
        assert result.exit_code == ExitCode.INPUT_ERROR
        assert "Expected <path>:<line>" in result.output

    def test_diff_file_without_targets(self, isolated_config: Path) -> None:
        diff_file = isolated_config / "review.diff"
        diff_file.write_text(_DIFF, encoding="utf-8")
        result = runner.invoke(app, ["map", "--diff-file", str(diff_file)])
        assert result.exit_code == ExitCode.INPUT_ERROR
        assert "No targets given" in result.output


class TestFilterCommand:
    """filter サブコマンド。"""

    def test_drops_lock_file(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["filter"], input=_DIFF + _LOCK_DIFF)
        assert result.exit_code == ExitCode.SUCCESS
        assert result.output == _DIFF

    def test_pattern(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["filter", "--pattern", "docs/*"], input=_DIFF)
        assert result.exit_code == ExitCode.SUCCESS
        assert result.output == ""


class TestPrepareCommand:
    """prepare サブコマンド。"""

    def test_bundle(self, cli_repo: FakeRepository) -> None:
        cli_repo.uncommitted = True
        cli_repo.unstaged_diff = _DIFF
        result = runner.invoke(app, ["prepare", "-t", "src/a.py:5"])
        assert result.exit_code == ExitCode.SUCCESS
        data = json.loads(result.output)
        assert data["status"] == "ready"
        assert data["target"]["mode"] == "local"
        assert data["metadata"] == "DIFF_TYPE: local (unstaged)"
        assert data["summary"] == {"files": 1, "additions": 1, "deletions": 0}
        assert data["repository"] == "octo/widgets"
        assert data["positions"] == [
            {"path": "src/a.py", "line": 5, "side": "RIGHT", "position": 2}
        ]

    def test_ambiguous_current_branch(self, cli_repo: FakeRepository) -> None:
        result = runner.invoke(app, ["prepare", "feature"])
        assert result.exit_code == ExitCode.SUCCESS
        data = json.loads(result.output)
        assert data["status"] == "ambiguous"
        assert data["diff"] is None

    def test_invalid_pr(self, cli_repo: FakeRepository) -> None:
        result = runner.invoke(app, ["prepare", "0"])
        assert result.exit_code == ExitCode.INPUT_ERROR
        assert "Invalid PR number" in result.output

    def test_find_flag(self, cli_repo: FakeRepository) -> None:
        cli_repo.current = "main"
        result = runner.invoke(app, ["prepare", "--find"])
        assert result.exit_code == ExitCode.SUCCESS
        assert json.loads(result.output)["status"] == "find"
