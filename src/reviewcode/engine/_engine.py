"""レビュー準備パイプライン。

ターゲット解決 → 差分生成 → 位置マッピングを1回の線形処理で行い、
呼び出し側エージェントに渡す ReviewBundle を構築する。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Literal

from reviewcode.diff import generate_diff, parse_unified_diff
from reviewcode.git import GitRepository, RepositoryReader
from reviewcode.models._base import ReviewCodeBaseModel
from reviewcode.models.config import ReviewCodeConfig
from reviewcode.models.diff import DiffSummary
from reviewcode.models.position import PositionQuery, PositionResult
from reviewcode.models.target import BranchTarget, PromptChoice, ReviewTarget, has_diff
from reviewcode.position import build_position_map, lookup_position
from reviewcode.target import resolve_target

logger = logging.getLogger(__name__)

BundleStatus = Literal[
    "ready", "ambiguous", "prompt", "prompt_pull", "find", "area", "pr"
]


class ReviewBundle(ReviewCodeBaseModel):
    """レビュー準備の結果。

    Attributes:
        status: 呼び出し側が次に取るべき行動。ready 以外は差分を持たないか、
            判断を求めている（prompt_pull はリモートが先行している）。
        target: 解決されたレビュー対象。
        diff: 差分本文。差分を持たないモードでは None。
        metadata: ``DIFF_TYPE:`` メタデータ行。
        summary: 差分の集計値。
        repository: origin の ``owner/repo``。
        positions: 問い合わせごとの位置マッピング結果。
    """

    status: BundleStatus
    target: ReviewTarget
    diff: str | None = None
    metadata: str | None = None
    summary: DiffSummary | None = None
    repository: str | None = None
    positions: tuple[PositionResult, ...] = ()


def bundle_status(target: ReviewTarget) -> BundleStatus:
    """ターゲットのモードから ReviewBundle.status を決定する。"""
    if isinstance(target, BranchTarget) and target.remote_ahead:
        return "prompt_pull"
    if target.mode in ("ambiguous", "prompt", "find", "area", "pr"):
        return target.mode
    return "ready"


def prepare_review(
    arg: str | None,
    file_pattern: str | None = None,
    *,
    force: bool = False,
    find: bool = False,
    choice: PromptChoice | None = None,
    config: ReviewCodeConfig | None = None,
    repo: RepositoryReader | None = None,
    queries: Iterable[PositionQuery] = (),
) -> ReviewBundle:
    """引数を解決し、差分と位置マッピングを1つの結果にまとめる。

    Args:
        arg: 自由形式のレビュー対象引数。
        file_pattern: 差分を絞り込む glob。
        force: prompt / 曖昧なコミット指定を既定の選択で解決する。
        find: 変更がない場合に find モードへ縮退する。
        choice: 以前の prompt 結果に対する回答。
        config: 解決済み設定。None の場合はデフォルト値。
        repo: リポジトリアクセス。None の場合はカレントディレクトリ。
        queries: 生成した差分に対して解決する位置の問い合わせ。

    Returns:
        ReviewBundle。ambiguous / prompt もエラーではなく結果として返る。

    Raises:
        TargetResolutionError: ターゲット解決に失敗した場合。
        GitCommandError: git コマンドが失敗した場合。
    """
    config = config if config is not None else ReviewCodeConfig()
    repository = repo if repo is not None else GitRepository()

    target = resolve_target(
        arg,
        file_pattern,
        force=force,
        find=find,
        choice=choice,
        base_branch=config.base_branch,
        repo=repository,
    )
    status = bundle_status(target)
    remote = repository.remote_repository()

    if not has_diff(target):
        logger.debug("Target mode '%s' has no local diff", target.mode)
        return ReviewBundle(status=status, target=target, repository=remote)

    result = generate_diff(
        target,
        profile=config.exclusion_profile,
        context_lines=config.context_lines,
        repo=repository,
    )
    parsed = parse_unified_diff(result.body)
    position_map = build_position_map(parsed)

    return ReviewBundle(
        status=status,
        target=target,
        diff=result.body,
        metadata=result.metadata,
        summary=DiffSummary.from_diff(parsed),
        repository=remote,
        positions=tuple(lookup_position(position_map, q) for q in queries),
    )
