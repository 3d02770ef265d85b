"""ユニットテスト共通フィクスチャ。"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pytest


@dataclass
class FakeRepository:
    """RepositoryReader のインメモリ実装。

    refs は ref 名 → オブジェクト種別（commit / tag / tree など）。
    diff は ``--cached`` の有無で staged_diff / unstaged_diff を返す。
    """

    refs: dict[str, str] = field(
        default_factory=lambda: {
            "main": "commit",
            "develop": "commit",
            "feature": "commit",
        }
    )
    branches: set[str] = field(default_factory=lambda: {"main", "feature"})
    current: str = "feature"
    base: str = "main"
    uncommitted: bool = False
    ahead: int = 0
    divergence: tuple[int, int] | None = None
    remote: str | None = "octo/widgets"
    fork_point: str = "abc1234"
    staged_diff: str = ""
    unstaged_diff: str = ""
    show_output: str = ""
    calls: list[tuple[str, tuple[str, ...]]] = field(default_factory=list)

    def verify_ref(self, ref: str) -> bool:
        return ref == "HEAD" or ref in self.refs

    def ref_type(self, ref: str) -> str:
        if ref == "HEAD":
            return "commit"
        return self.refs.get(ref, "unknown")

    def is_branch(self, name: str) -> bool:
        return name in self.branches

    def current_branch(self) -> str:
        return self.current

    def default_base_branch(self) -> str:
        return self.base

    def has_uncommitted_changes(self) -> bool:
        return self.uncommitted

    def commits_ahead_of(self, base: str) -> int:
        return self.ahead

    def upstream_divergence(self) -> tuple[int, int] | None:
        return self.divergence

    def merge_base(self, base: str, head: str = "HEAD") -> str:
        self.calls.append(("merge-base", (base, head)))
        return self.fork_point

    def diff(self, args: list[str]) -> str:
        self.calls.append(("diff", tuple(args)))
        return self.staged_diff if "--cached" in args else self.unstaged_diff

    def show(self, args: list[str]) -> str:
        self.calls.append(("show", tuple(args)))
        return self.show_output

    def remote_repository(self) -> str | None:
        return self.remote


@pytest.fixture
def repo() -> FakeRepository:
    """feature ブランチをチェックアウトした既定状態のリポジトリ。"""
    return FakeRepository()


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """ユーザー設定・プロジェクト設定・環境変数の影響を受けない作業ディレクトリ。"""
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for name in (
        "DIFF_CONTEXT_LINES",
        "REVIEW_CODE_BASE_BRANCH",
        "REVIEW_CODE_EXCLUSION_PROFILE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(work)
    return work
