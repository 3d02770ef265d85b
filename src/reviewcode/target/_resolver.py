"""引数からレビュー対象を一意に決定する。

検出器を優先順に評価し、最初に ReviewTarget を返したものを採用する。
検出器が None を返した場合は次の検出器へ進み、全検出器が一致しなかった場合のみ
InvalidArgumentError とする。
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Final

from reviewcode.git import GitRepository, RepositoryReader
from reviewcode.models.target import PromptChoice, ReviewTarget
from reviewcode.target._detectors import (
    DETECTORS,
    Detector,
    ResolveRequest,
    is_glob_pattern,
)
from reviewcode.target._errors import InvalidArgumentError

logger = logging.getLogger(__name__)

FIND_KEYWORD: Final[str] = "find"
"""先頭に置くと find モードを有効にし、残りの引数をずらすキーワード。"""


def parse_positionals(args: Sequence[str]) -> tuple[str | None, str | None, bool]:
    """位置引数を (arg, file_pattern, find) に分解する。

    ``find`` が先頭にある場合は find モードとし、2番目をターゲット、
    3番目をファイルパターンとして扱う。

    Raises:
        InvalidArgumentError: 位置引数が多すぎる場合。
    """
    values = [a for a in args if a]
    find = False
    if values and values[0] == FIND_KEYWORD:
        find = True
        values = values[1:]
    if len(values) > 2:
        raise InvalidArgumentError(
            f"Too many arguments: {' '.join(args)}. "
            "Use: review-code [find] [<target>] [<file-pattern>]"
        )
    arg = values[0] if values else None
    file_pattern = values[1] if len(values) > 1 else None
    return arg, file_pattern, find


def build_request(
    arg: str | None,
    file_pattern: str | None = None,
    *,
    force: bool = False,
    find: bool = False,
    choice: PromptChoice | None = None,
    base_branch: str | None = None,
    repo: RepositoryReader | None = None,
) -> ResolveRequest:
    """入力を正規化して ResolveRequest を構築する。

    glob メタ文字を含む引数は ref ではなくファイルパターンとして扱い、
    引数なしとして解決を続ける。
    """
    normalized = arg.strip() if arg else None
    if normalized and is_glob_pattern(normalized) and file_pattern is None:
        if repo is not None and repo.verify_ref(normalized):
            logger.warning(
                "Argument '%s' looks like a file pattern but also resolves as a "
                "git ref; treating it as a file pattern",
                normalized,
            )
        file_pattern, normalized = normalized, None

    return ResolveRequest(
        arg=normalized or None,
        file_pattern=file_pattern or None,
        force=force,
        find=find,
        choice=choice,
        base_branch=base_branch,
    )


def resolve_request(
    request: ResolveRequest,
    repo: RepositoryReader,
    detectors: Sequence[Detector] = DETECTORS,
) -> ReviewTarget:
    """検出器を順に評価して ReviewTarget を返す。

    Raises:
        TargetResolutionError: 検出器が致命的エラーを送出した場合、
            または全検出器が一致しなかった場合。
        GitCommandError: git コマンドが失敗した場合。
    """
    for detector in detectors:
        if not detector.matches(request):
            continue
        target = detector.build(request, repo)
        if target is not None:
            logger.debug("Resolved '%s' with %s detector", request.arg, detector.name)
            return target

    raise InvalidArgumentError(
        f"Invalid argument: {request.arg}. Not a valid PR, git ref, range, or area."
    )


def resolve_target(
    arg: str | None,
    file_pattern: str | None = None,
    *,
    force: bool = False,
    find: bool = False,
    choice: PromptChoice | None = None,
    base_branch: str | None = None,
    repo: RepositoryReader | None = None,
) -> ReviewTarget:
    """引数とフラグからレビュー対象を解決する。

    Args:
        arg: 自由形式の引数（PR 番号、URL、範囲、ref、領域キーワード、glob）。
        file_pattern: 差分を絞り込む glob。
        force: prompt / 曖昧なコミット指定を既定の選択で解決する。
        find: 変更がない場合に find モードへ縮退する。
        choice: 以前の prompt 結果に対する回答。
        base_branch: 設定されたベースブランチ。None の場合は自動検出。
        repo: リポジトリアクセス。None の場合はカレントディレクトリ。

    Returns:
        解決された ReviewTarget。ambiguous / prompt はエラーではなく結果として返る。

    Raises:
        TargetResolutionError: 解決に失敗した場合。
        GitCommandError: git コマンドが失敗した場合。
    """
    repository = repo if repo is not None else GitRepository()
    request = build_request(
        arg,
        file_pattern,
        force=force,
        find=find,
        choice=choice,
        base_branch=base_branch,
        repo=repository,
    )
    return resolve_request(request, repository)
