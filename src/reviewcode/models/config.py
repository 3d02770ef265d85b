"""設定管理モデル。

設定項目の定義とバリデーション。全レイヤーのマージ後に一度だけ構築される。
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

from pydantic import Field, field_validator

from reviewcode.models._base import ReviewCodeBaseModel, normalize_enum_value

DEFAULT_CONTEXT_LINES: Final[int] = 1
"""diff のコンテキスト行数の既定値（git の既定は 3）。"""


class ExclusionProfile(StrEnum):
    """pathspec 除外パターンの名前付きセット。"""

    COMMON = "common"
    EXTENDED = "extended"


class ReviewCodeConfig(ReviewCodeBaseModel):
    """全設定項目を統合した不変モデル。

    デフォルト値のみで有効なインスタンスを構築可能。
    base_branch が None の場合はリポジトリから自動検出する。
    """

    base_branch: str | None = Field(default=None, min_length=1)
    context_lines: int = Field(default=DEFAULT_CONTEXT_LINES, ge=0)
    exclusion_profile: ExclusionProfile = ExclusionProfile.COMMON
    output_indent: int | None = Field(default=None, ge=0)

    @field_validator("exclusion_profile", mode="before")
    @classmethod
    def normalize_profile(cls, v: object) -> object:
        return normalize_enum_value(v, ExclusionProfile)
