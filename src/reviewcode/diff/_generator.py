"""差分生成 — 解決済み ReviewTarget から git diff を実行する。

モードごとに git の呼び出しを選び、共通フラグと pathspec 除外を付加する。
空の結果（除外パスのみの変更、同一 ref 同士など）はエラーではない。
"""

from __future__ import annotations

import logging
from typing import Final

from reviewcode.diff._exclusions import get_exclusion_patterns
from reviewcode.git import GitRepository, RepositoryReader
from reviewcode.models.config import DEFAULT_CONTEXT_LINES, ExclusionProfile
from reviewcode.models.diff import DiffResult
from reviewcode.models.target import (
    BranchPlusUncommittedTarget,
    BranchTarget,
    CommitTarget,
    LocalTarget,
    RangeTarget,
    ReviewTarget,
)

logger = logging.getLogger(__name__)

METADATA_PREFIX: Final[str] = "DIFF_TYPE: "

_ALL_PATHS: Final[str] = "."


class UnsupportedTargetError(ValueError):
    """ローカルの git から差分を生成できないモードが渡された。"""


def build_metadata(diff_type: str, detail: str, file_pattern: str | None = None) -> str:
    """``DIFF_TYPE: <type> (<detail>)[, filtered by: <glob>]`` を組み立てる。"""
    metadata = f"{METADATA_PREFIX}{diff_type} ({detail})"
    if file_pattern:
        metadata += f", filtered by: {file_pattern}"
    return metadata


def build_diff_options(context_lines: int = DEFAULT_CONTEXT_LINES) -> list[str]:
    """全モード共通の git diff フラグ。

    削除のみのファイルは対象外とする。ユーザー設定の diff.noprefix などに関係なく
    a/ b/ 接頭辞で出力させる。
    """
    return [
        "--no-color",
        "--no-ext-diff",
        "--src-prefix=a/",
        "--dst-prefix=b/",
        f"-U{context_lines}",
        "--diff-filter=d",
    ]


def build_pathspecs(
    profile: ExclusionProfile | str, file_pattern: str | None = None
) -> list[str]:
    """``--`` 以降に渡す pathspec 引数。

    Raises:
        ValueError: 未知のプロファイル名の場合。
    """
    return ["--", file_pattern or _ALL_PATHS, *get_exclusion_patterns(profile)]


def generate_diff(
    target: ReviewTarget,
    *,
    profile: ExclusionProfile | str = ExclusionProfile.COMMON,
    context_lines: int = DEFAULT_CONTEXT_LINES,
    repo: RepositoryReader | None = None,
) -> DiffResult:
    """ターゲットに対応する差分とメタデータ行を生成する。

    Args:
        target: 差分を持つモード（range / branch / commit / local /
            branch_plus_uncommitted）の ReviewTarget。
        profile: pathspec 除外プロファイル。
        context_lines: ``-U`` に渡すコンテキスト行数。
        repo: git 問い合わせ先。None の場合はカレントディレクトリ。

    Returns:
        本文・メタデータ・差分種別を持つ DiffResult。

    Raises:
        UnsupportedTargetError: 差分を生成できないモードの場合。
        ValueError: 未知のプロファイル名の場合。
        GitCommandError: git の実行に失敗した場合。
    """
    repo = repo if repo is not None else GitRepository()
    options = build_diff_options(context_lines)
    pathspecs = build_pathspecs(profile, target.file_pattern)

    if isinstance(target, RangeTarget):
        body = repo.diff([*options, target.range, *pathspecs])
        result = _result(body, "range", target.range, target.file_pattern)
    elif isinstance(target, BranchTarget):
        spec = f"{target.base_branch}...{target.branch}"
        body = repo.diff([*options, spec, *pathspecs])
        result = _result(body, "branch", spec, target.file_pattern)
    elif isinstance(target, CommitTarget):
        # マージコミットは第1親との差分を対象とする
        body = repo.show(
            ["--format=", "-m", "--first-parent", *options, target.commit, *pathspecs]
        )
        result = _result(body, "commit", target.commit, target.file_pattern)
    elif isinstance(target, LocalTarget):
        result = _generate_local(repo, options, pathspecs, target.file_pattern)
    elif isinstance(target, BranchPlusUncommittedTarget):
        fork_point = repo.merge_base(target.base_branch, "HEAD")
        body = repo.diff([*options, fork_point, *pathspecs])
        detail = f"{target.base_branch}...{target.branch} + local"
        result = _result(body, "branch + uncommitted", detail, target.file_pattern)
    else:
        raise UnsupportedTargetError(
            f"Mode '{target.mode}' has no local diff to generate"
        )

    logger.debug("%s (%d bytes)", result.metadata, len(result.body))
    return result


def _generate_local(
    repo: RepositoryReader,
    options: list[str],
    pathspecs: list[str],
    file_pattern: str | None,
) -> DiffResult:
    staged = repo.diff(["--cached", *options, *pathspecs])
    unstaged = repo.diff([*options, *pathspecs])

    body = _join_diffs(staged, unstaged)
    if staged and unstaged:
        detail = "staged + unstaged"
        # ファイルごとの section を1つに保つ
        if repo.verify_ref("HEAD"):
            body = repo.diff([*options, "HEAD", *pathspecs])
    elif staged:
        detail = "staged"
    elif unstaged:
        detail = "unstaged"
    else:
        detail = "uncommitted"

    return _result(body, "local", detail, file_pattern)


def _join_diffs(*bodies: str) -> str:
    parts = [body if body.endswith("\n") else body + "\n" for body in bodies if body]
    return "".join(parts)


def _result(
    body: str, diff_type: str, detail: str, file_pattern: str | None
) -> DiffResult:
    return DiffResult(
        body=body,
        metadata=build_metadata(diff_type, detail, file_pattern),
        diff_type=diff_type,
    )
