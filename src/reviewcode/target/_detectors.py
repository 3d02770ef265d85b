"""ターゲット検出器 — (述語, 構築関数) の順序付きリスト。

述語は ResolveRequest のみを見る純粋関数であり、リポジトリに触れない。
構築関数は git に問い合わせ、ReviewTarget を返すか、None を返して次の検出器へ
処理を委ねるか、致命的エラーを送出する。
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Final

from reviewcode.git import RepositoryReader
from reviewcode.models.target import (
    AmbiguousTarget,
    AreaTarget,
    BranchPlusUncommittedTarget,
    BranchTarget,
    CommitTarget,
    FindTarget,
    LocalTarget,
    PRTarget,
    PromptChoice,
    PromptTarget,
    RangeTarget,
    ReviewArea,
    ReviewTarget,
)
from reviewcode.target._errors import (
    InvalidArgumentError,
    NoChangesError,
    PRIdentifierError,
    RefError,
)

logger = logging.getLogger(__name__)

AREA_KEYWORDS: Final[frozenset[str]] = frozenset(area.value for area in ReviewArea)
"""領域別レビューのキーワード。"""

_DIGITS_RE: Final[re.Pattern[str]] = re.compile(r"[0-9]+", re.ASCII)

_PR_URL_RE: Final[re.Pattern[str]] = re.compile(
    r"^https://github\.com/[^/]+/[^/]+/pull/([0-9]+)([/?#].*)?$", re.ASCII
)
"""GitHub PR URL。/files 等の後続パス、クエリ、アンカーを許容する。"""

_GLOB_CHARS: Final[frozenset[str]] = frozenset("*?[")

_RANGE_SEPARATORS: Final[tuple[str, ...]] = ("...", "..")

_IMPLICIT_RANGE_REF: Final[str] = "HEAD"

NO_CHANGES_MESSAGE: Final[str] = (
    "No changes to review. Use review-code <commit|branch|range>"
)


@dataclass(frozen=True)
class ResolveRequest:
    """正規化済みの解決リクエスト。"""

    arg: str | None
    file_pattern: str | None = None
    force: bool = False
    find: bool = False
    choice: PromptChoice | None = None
    base_branch: str | None = None

    def common(self) -> dict[str, object]:
        """全バリアント共通のフィールド値。"""
        return {
            "file_pattern": self.file_pattern,
            "find_mode": self.find,
            "force_mode": self.force,
        }


@dataclass(frozen=True)
class Detector:
    """名前付きの (述語, 構築関数) ペア。"""

    name: str
    matches: Callable[[ResolveRequest], bool]
    build: Callable[[ResolveRequest, RepositoryReader], ReviewTarget | None]


def is_glob_pattern(token: str) -> bool:
    """glob メタ文字を含むトークンかを返す。git の ref 名はこれらを含めない。"""
    return bool(set(token) & _GLOB_CHARS)


def is_pr_number(token: str) -> bool:
    """ASCII 数字のみで構成されるかを返す。"""
    return _DIGITS_RE.fullmatch(token) is not None


def _base_branch(request: ResolveRequest, repo: RepositoryReader) -> str:
    return request.base_branch or repo.default_base_branch()


def _require_arg(request: ResolveRequest) -> str:
    if request.arg is None:
        raise InvalidArgumentError("Missing argument for this detector")
    return request.arg


# --- 1. 領域キーワード ---


def _matches_area(request: ResolveRequest) -> bool:
    return request.arg in AREA_KEYWORDS


def _build_area(request: ResolveRequest, repo: RepositoryReader) -> ReviewTarget:
    return AreaTarget(area=ReviewArea(request.arg), **request.common())


# --- 2. PR ---


def _matches_pr(request: ResolveRequest) -> bool:
    if request.arg is None:
        return False
    return is_pr_number(request.arg) or _PR_URL_RE.match(request.arg) is not None


def _build_pr(request: ResolveRequest, repo: RepositoryReader) -> ReviewTarget:
    arg = _require_arg(request)
    url_match = _PR_URL_RE.match(arg)
    raw_number = url_match.group(1) if url_match else arg
    pr_url = arg if url_match else None

    # JSON やシェル文脈に埋め込まれるため、抽出後に改めて数字のみであることを検証する
    if not is_pr_number(raw_number):
        raise PRIdentifierError(
            f"Invalid PR number extracted from '{arg}'. "
            "Use a PR number or https://github.com/<owner>/<repo>/pull/<number>."
        )
    pr_number = int(raw_number)
    if pr_number <= 0:
        raise PRIdentifierError(
            f"Invalid PR number: {raw_number}. PR numbers start at 1."
        )
    return PRTarget(pr_number=pr_number, pr_url=pr_url, **request.common())


# --- 3. コミット範囲 ---


def _matches_range(request: ResolveRequest) -> bool:
    return request.arg is not None and ".." in request.arg


def split_range(arg: str) -> tuple[str, str, str]:
    """範囲文字列を (start_ref, end_ref, separator) に分割する。

    三点区切りを優先して判定する。空の側は HEAD とみなす（git と同じ解釈）。
    """
    separator = next(sep for sep in _RANGE_SEPARATORS if sep in arg)
    start_ref, end_ref = arg.split(separator, 1)
    return (
        start_ref or _IMPLICIT_RANGE_REF,
        end_ref or _IMPLICIT_RANGE_REF,
        separator,
    )


def _build_range(request: ResolveRequest, repo: RepositoryReader) -> ReviewTarget:
    arg = _require_arg(request)
    start_ref, end_ref, separator = split_range(arg)

    if not repo.verify_ref(start_ref):
        raise RefError(f"Invalid start ref: {start_ref}", ref=start_ref, side="start")
    if not repo.verify_ref(end_ref):
        raise RefError(f"Invalid end ref: {end_ref}", ref=end_ref, side="end")

    return RangeTarget(
        range=arg,
        start_ref=start_ref,
        end_ref=end_ref,
        separator=separator,  # type: ignore[arg-type]
        **request.common(),
    )


# --- 4. 単一 ref ---


def _matches_ref(request: ResolveRequest) -> bool:
    return request.arg is not None and not is_glob_pattern(request.arg)


def _build_ref(
    request: ResolveRequest, repo: RepositoryReader
) -> ReviewTarget | None:
    arg = _require_arg(request)
    if not repo.verify_ref(arg):
        return None

    ref_type = repo.ref_type(arg)
    is_branch = repo.is_branch(arg)
    is_current = arg == repo.current_branch()
    base_branch = _base_branch(request, repo)

    if is_branch and not is_current:
        return BranchTarget(
            branch=arg,
            base_branch=base_branch,
            ref_type=ref_type,
            scope="explicit",
            **request.common(),
        )

    if not is_current and request.force and ref_type in ("commit", "tag"):
        return CommitTarget(commit=arg, ref_type=ref_type, **request.common())

    # 自身との差分は空になるため、黙って空 diff を返さず判断を呼び出し側に委ねる
    if is_current:
        reason = "Current branch - unclear if reviewing uncommitted vs branch changes"
        options: tuple[str, ...] = tuple(choice.value for choice in PromptChoice)
    elif ref_type == "commit":
        reason = "Commit hash - unclear if reviewing single commit vs range to HEAD"
        options = ("commit", f"{arg}..HEAD")
    elif ref_type == "tag":
        reason = "Tag - unclear if reviewing tag vs range to HEAD"
        options = ("commit", f"{arg}..HEAD")
    else:
        reason = f"Ref of type '{ref_type}' cannot be reviewed directly"
        options = (f"{arg}..HEAD",)

    return AmbiguousTarget(
        arg=arg,
        ref_type=ref_type,
        is_branch=is_branch,
        is_current=is_current,
        base_branch=base_branch,
        reason=reason,
        options=options,
        **request.common(),
    )


# --- 5. 引数なし ---


def _matches_no_arg(request: ResolveRequest) -> bool:
    return request.arg is None


def _is_on_base(current_branch: str, base_branch: str) -> bool:
    return base_branch in (current_branch, f"origin/{current_branch}")


def _remote_ahead(repo: RepositoryReader, branch: str) -> bool:
    divergence = repo.upstream_divergence()
    if divergence is None:
        return False
    ahead, behind = divergence
    if behind > 0 and ahead > 0:
        logger.warning(
            "Branch '%s' has diverged from remote (local ahead by %d, behind by %d)",
            branch,
            ahead,
            behind,
        )
    return behind > 0


def _verify_base(repo: RepositoryReader, current: str, base: str) -> None:
    """比較対象のベースブランチが存在することを確認する。

    ベース上にいる場合（初回コミット前のリポジトリを含む）は比較しないため確認しない。
    """
    if _is_on_base(current, base) or repo.verify_ref(base):
        return
    raise RefError(
        f"Invalid base branch: {base}. "
        "Set base_branch in .review-code/config.toml or pass --base-branch.",
        ref=base,
    )


def _build_for_choice(
    request: ResolveRequest, repo: RepositoryReader, current: str, base: str
) -> ReviewTarget:
    if request.choice == PromptChoice.LOCAL:
        return LocalTarget(**request.common())
    _verify_base(repo, current, base)
    if request.choice == PromptChoice.BRANCH_PLUS_UNCOMMITTED:
        return BranchPlusUncommittedTarget(
            branch=current, base_branch=base, **request.common()
        )
    return BranchTarget(
        branch=current,
        base_branch=base,
        scope="auto",
        remote_ahead=_remote_ahead(repo, current),
        **request.common(),
    )


def _build_no_arg(request: ResolveRequest, repo: RepositoryReader) -> ReviewTarget:
    current = repo.current_branch()
    base = _base_branch(request, repo)

    if request.choice is not None:
        return _build_for_choice(request, repo, current, base)

    _verify_base(repo, current, base)
    has_uncommitted = repo.has_uncommitted_changes()
    commits_ahead = 0 if _is_on_base(current, base) else repo.commits_ahead_of(base)

    if has_uncommitted and commits_ahead == 0:
        return LocalTarget(**request.common())

    if has_uncommitted:
        if request.force:
            return LocalTarget(**request.common())
        return PromptTarget(
            current_branch=current,
            base_branch=base,
            has_uncommitted=True,
            **request.common(),
        )

    if commits_ahead > 0:
        return BranchTarget(
            branch=current,
            base_branch=base,
            scope="auto",
            remote_ahead=_remote_ahead(repo, current),
            **request.common(),
        )

    if request.find:
        return FindTarget(base_branch=base, **request.common())
    raise NoChangesError(NO_CHANGES_MESSAGE)


DETECTORS: Final[tuple[Detector, ...]] = (
    Detector("area", _matches_area, _build_area),
    Detector("pr", _matches_pr, _build_pr),
    Detector("range", _matches_range, _build_range),
    Detector("ref", _matches_ref, _build_ref),
    Detector("no_arg", _matches_no_arg, _build_no_arg),
)
"""優先順に並んだ検出器。"""
