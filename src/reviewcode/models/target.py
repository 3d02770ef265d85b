"""レビュー対象の記述子モデル。

引数解決の結果を mode をタグとする判別共用体で表現する。
各バリアントは不変であり、呼び出しごとに新しく生成される。
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal, Union

from pydantic import Field, field_validator

from reviewcode.models._base import ReviewCodeBaseModel, normalize_enum_value


class ReviewMode(StrEnum):
    """レビュー対象モード。ReviewTarget の discriminator 値に対応する。"""

    AREA = "area"
    PR = "pr"
    RANGE = "range"
    BRANCH = "branch"
    COMMIT = "commit"
    LOCAL = "local"
    BRANCH_PLUS_UNCOMMITTED = "branch_plus_uncommitted"
    AMBIGUOUS = "ambiguous"
    PROMPT = "prompt"
    FIND = "find"


class ReviewArea(StrEnum):
    """領域別レビューのキーワード。"""

    SECURITY = "security"
    PERFORMANCE = "performance"
    MAINTAINABILITY = "maintainability"
    TESTING = "testing"
    COMPATIBILITY = "compatibility"
    ARCHITECTURE = "architecture"


class PromptChoice(StrEnum):
    """prompt 結果に対して呼び出し側が選べる回答。"""

    LOCAL = "local"
    BRANCH = "branch"
    BRANCH_PLUS_UNCOMMITTED = "branch_plus_uncommitted"


DIFF_MODES: frozenset[ReviewMode] = frozenset(
    {
        ReviewMode.RANGE,
        ReviewMode.BRANCH,
        ReviewMode.COMMIT,
        ReviewMode.LOCAL,
        ReviewMode.BRANCH_PLUS_UNCOMMITTED,
    }
)
"""git diff を生成できるモード。"""


class _TargetBase(ReviewCodeBaseModel):
    """全バリアント共通のオプションフィールド。"""

    file_pattern: str | None = Field(default=None, min_length=1)
    find_mode: bool = False
    force_mode: bool = False


class AreaTarget(_TargetBase):
    """領域キーワード指定。リポジトリ状態に依存しない。"""

    mode: Literal["area"] = "area"
    area: ReviewArea

    @field_validator("area", mode="before")
    @classmethod
    def normalize_area(cls, v: object) -> object:
        return normalize_enum_value(v, ReviewArea)


class PRTarget(_TargetBase):
    """PR 番号または PR URL 指定。差分取得は外部 CLI が担当する。"""

    mode: Literal["pr"] = "pr"
    pr_number: int = Field(gt=0)
    pr_url: str | None = None


class RangeTarget(_TargetBase):
    """``A..B`` / ``A...B`` 形式のコミット範囲。"""

    mode: Literal["range"] = "range"
    range: str = Field(min_length=1)
    start_ref: str = Field(min_length=1)
    end_ref: str = Field(min_length=1)
    separator: Literal["..", "..."] = ".."


class BranchTarget(_TargetBase):
    """ブランチとベースブランチの差分。

    scope は引数で明示された場合 explicit、引数なしから推定された場合 auto。
    """

    mode: Literal["branch"] = "branch"
    branch: str = Field(min_length=1)
    base_branch: str = Field(min_length=1)
    ref_type: str = "commit"
    scope: Literal["explicit", "auto"] = "explicit"
    remote_ahead: bool = False


class CommitTarget(_TargetBase):
    """単一コミット（またはタグが指すコミット）。"""

    mode: Literal["commit"] = "commit"
    commit: str = Field(min_length=1)
    ref_type: str = "commit"


class LocalTarget(_TargetBase):
    """未コミットの変更（staged + unstaged）。"""

    mode: Literal["local"] = "local"
    scope: Literal["uncommitted"] = "uncommitted"


class BranchPlusUncommittedTarget(_TargetBase):
    """ブランチのコミット済み変更と未コミット変更の合算。"""

    mode: Literal["branch_plus_uncommitted"] = "branch_plus_uncommitted"
    branch: str = Field(min_length=1)
    base_branch: str = Field(min_length=1)


class AmbiguousTarget(_TargetBase):
    """判定不能な ref。呼び出し側が options から選択して再実行する。"""

    mode: Literal["ambiguous"] = "ambiguous"
    arg: str = Field(min_length=1)
    ref_type: str
    is_branch: bool
    is_current: bool
    base_branch: str = Field(min_length=1)
    reason: str
    options: tuple[str, ...] = ()


class PromptTarget(_TargetBase):
    """引数なしでローカル変更とブランチ変更が両方ある状態。"""

    mode: Literal["prompt"] = "prompt"
    current_branch: str = Field(min_length=1)
    base_branch: str = Field(min_length=1)
    has_uncommitted: bool = True
    options: tuple[PromptChoice, ...] = tuple(PromptChoice)


class FindTarget(_TargetBase):
    """find モードで差分がない場合の縮退結果。"""

    mode: Literal["find"] = "find"
    base_branch: str = Field(min_length=1)


ReviewTarget = Annotated[
    Union[
        AreaTarget,
        PRTarget,
        RangeTarget,
        BranchTarget,
        CommitTarget,
        LocalTarget,
        BranchPlusUncommittedTarget,
        AmbiguousTarget,
        PromptTarget,
        FindTarget,
    ],
    Field(discriminator="mode"),
]
"""レビュー対象の判別共用体。mode フィールドの値で型を自動選択する。"""


def has_diff(target: ReviewTarget) -> bool:
    """ターゲットがローカルの git から差分を生成できるモードかを返す。"""
    return ReviewMode(target.mode) in DIFF_MODES
