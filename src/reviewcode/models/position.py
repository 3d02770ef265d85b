"""差分位置マッピングの入出力モデル。

GitHub の PR レビューコメント API が要求する position 座標を表す。
"""

from __future__ import annotations

from typing import Literal, Union

from pydantic import ConfigDict, Field

from reviewcode.models._base import ReviewCodeBaseModel

FILE_NOT_IN_DIFF: Literal["file not in diff"] = "file not in diff"
LINE_NOT_IN_DIFF: Literal["line not in diff"] = "line not in diff"


class PositionQuery(ReviewCodeBaseModel):
    """新しい側（RIGHT）のファイル行番号による問い合わせ。

    レビューコメントの本文など、位置特定に関係しないキーは無視する。
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    path: str = Field(min_length=1)
    line: int = Field(gt=0)


class PositionHit(ReviewCodeBaseModel):
    """diff 内で見つかった行の position。"""

    path: str
    line: int
    side: Literal["RIGHT"] = "RIGHT"
    position: int = Field(ge=1)


class PositionMiss(ReviewCodeBaseModel):
    """diff 内で見つからなかった問い合わせ。兄弟クエリの処理は中断しない。"""

    path: str
    line: int
    error: Literal["file not in diff", "line not in diff"]


PositionResult = Union[PositionHit, PositionMiss]
"""問い合わせ1件ごとの結果。"""


class PositionRequest(ReviewCodeBaseModel):
    """``map`` コマンドの標準入力 JSON ``{"diff": ..., "targets": [...]}``。"""

    model_config = ConfigDict(extra="ignore", frozen=True)

    diff: str
    targets: tuple[PositionQuery, ...] = ()


class PositionReport(ReviewCodeBaseModel):
    """``{"mappings": [...]}`` 形式の出力レコード。"""

    mappings: tuple[PositionResult, ...] = ()
