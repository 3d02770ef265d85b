"""ターゲット解決と差分生成が参照するリポジトリ状態の窓口。

全ての問い合わせはカレントディレクトリの git リポジトリに対する読み取り専用の
subprocess 呼び出しであり、結果はキャッシュしない。
"""

from __future__ import annotations

import re
from typing import Final, Protocol

from reviewcode.git._runner import GitCommandError, git_succeeds, run_git

_ORIGIN_HEAD_PREFIX: Final[str] = "refs/remotes/origin/"

_FALLBACK_BASE_BRANCHES: Final[tuple[str, ...]] = (
    "main",
    "origin/main",
    "master",
    "origin/master",
)
"""origin/HEAD から既定ブランチを特定できない場合の探索順。"""

_DEFAULT_BASE_BRANCH: Final[str] = "main"

_GITHUB_REMOTE_RE: Final[re.Pattern[str]] = re.compile(
    r"^(?:https://|ssh://git@|git@)github\.com[:/]"
    r"(?P<owner>[A-Za-z0-9_.-]+)/(?P<repo>[A-Za-z0-9_.-]+?)(?:\.git)?/?$"
)


def parse_github_remote(url: str) -> str | None:
    """GitHub のリモート URL から ``owner/repo`` を抽出する。

    SSH（git@github.com:org/repo.git）と HTTPS の両形式に対応する。
    owner は小文字に正規化する。GitHub 以外の URL は None。
    """
    match = _GITHUB_REMOTE_RE.match(url.strip())
    if match is None:
        return None
    return f"{match.group('owner').lower()}/{match.group('repo')}"


class RepositoryReader(Protocol):
    """ターゲット解決と差分生成が必要とするリポジトリ問い合わせのプロトコル。"""

    def verify_ref(self, ref: str) -> bool: ...

    def ref_type(self, ref: str) -> str: ...

    def is_branch(self, name: str) -> bool: ...

    def current_branch(self) -> str: ...

    def default_base_branch(self) -> str: ...

    def has_uncommitted_changes(self) -> bool: ...

    def commits_ahead_of(self, base: str) -> int: ...

    def upstream_divergence(self) -> tuple[int, int] | None: ...

    def merge_base(self, base: str, head: str = "HEAD") -> str: ...

    def diff(self, args: list[str]) -> str: ...

    def show(self, args: list[str]) -> str: ...

    def remote_repository(self) -> str | None: ...


class GitRepository:
    """カレントディレクトリの git リポジトリへの読み取り専用アクセス。"""

    def verify_ref(self, ref: str) -> bool:
        """ref がコミットに解決できるかを返す。

        オプションと解釈される ``-`` 始まりの文字列は常に False。
        """
        if not ref or ref.startswith("-"):
            return False
        return git_succeeds(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"])

    def ref_type(self, ref: str) -> str:
        """``git cat-file -t`` によるオブジェクト種別。判定できなければ "unknown"。"""
        if ref.startswith("-"):
            return "unknown"
        try:
            return run_git(["cat-file", "-t", ref]).strip() or "unknown"
        except GitCommandError:
            return "unknown"

    def is_branch(self, name: str) -> bool:
        """name がローカルブランチまたはリモート追跡ブランチかを返す。"""
        return any(
            git_succeeds(["show-ref", "--verify", "--quiet", f"{namespace}{name}"])
            for namespace in ("refs/heads/", "refs/remotes/")
        )

    def current_branch(self) -> str:
        """チェックアウト中のブランチ名。

        detached HEAD（CI で一般的）の場合は短縮 SHA を返す。
        """
        name = run_git(["branch", "--show-current"]).strip()
        if name:
            return name
        try:
            return run_git(["rev-parse", "--short", "HEAD"]).strip() or "unknown"
        except GitCommandError:
            return "unknown"

    def default_base_branch(self) -> str:
        """リポジトリの既定ベースブランチを推定する。

        origin/HEAD が指すブランチをローカル、リモート追跡の順で試し、
        見つからなければ main / master 系を順に試す。最後の手段は "main"。
        """
        try:
            symbolic = run_git(["symbolic-ref", "refs/remotes/origin/HEAD"]).strip()
        except GitCommandError:
            symbolic = ""

        if symbolic.startswith(_ORIGIN_HEAD_PREFIX):
            name = symbolic.removeprefix(_ORIGIN_HEAD_PREFIX)
            for candidate in (name, f"origin/{name}"):
                if self.verify_ref(candidate):
                    return candidate

        for candidate in _FALLBACK_BASE_BRANCHES:
            if self.verify_ref(candidate):
                return candidate
        return _DEFAULT_BASE_BRANCH

    def has_uncommitted_changes(self) -> bool:
        """staged / unstaged / untracked のいずれかが存在するか。"""
        return bool(run_git(["status", "--porcelain"]).strip())

    def commits_ahead_of(self, base: str) -> int:
        """HEAD から到達可能で base から到達不能なコミット数。

        Raises:
            GitCommandError: base を解決できない場合。
        """
        output = run_git(["rev-list", "--count", f"{base}..HEAD"])
        return int(output.strip() or "0")

    def upstream_divergence(self) -> tuple[int, int] | None:
        """上流ブランチとの差を (ahead, behind) で返す。上流がなければ None。

        ローカルの追跡情報のみを参照し、fetch は行わない。
        """
        try:
            upstream = run_git(
                ["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"]
            ).strip()
        except GitCommandError:
            return None
        if not upstream:
            return None
        ahead = int(run_git(["rev-list", "--count", f"{upstream}..HEAD"]).strip())
        behind = int(run_git(["rev-list", "--count", f"HEAD..{upstream}"]).strip())
        return ahead, behind

    def merge_base(self, base: str, head: str = "HEAD") -> str:
        """base と head のマージベース SHA。

        Raises:
            GitCommandError: 共通祖先がない場合など。
        """
        merge_base = run_git(["merge-base", base, head]).strip()
        if not merge_base:
            raise GitCommandError(
                f"git merge-base returned empty output for '{base}' and '{head}'"
            )
        return merge_base

    def diff(self, args: list[str]) -> str:
        return run_git(["diff", *args])

    def show(self, args: list[str]) -> str:
        return run_git(["show", *args])

    def remote_repository(self) -> str | None:
        """origin の URL から ``owner/repo`` を返す。リモートがなければ None。"""
        try:
            url = run_git(["config", "--get", "remote.origin.url"]).strip()
        except GitCommandError:
            return None
        return parse_github_remote(url) if url else None
