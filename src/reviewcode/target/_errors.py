"""ターゲット解決の例外階層。

エラーメッセージは解決方法のヒントを含む。
"""

from __future__ import annotations

from typing import Literal


class TargetResolutionError(Exception):
    """ターゲット解決の致命的エラーの基底クラス。"""


class RefError(TargetResolutionError):
    """git ref を解決できない。

    range モードでは side で開始側・終了側を区別する。
    """

    def __init__(
        self, message: str, *, ref: str, side: Literal["start", "end"] | None = None
    ) -> None:
        super().__init__(message)
        self.ref = ref
        self.side = side


class PRIdentifierError(TargetResolutionError):
    """PR 番号または PR URL が不正。"""


class NoChangesError(TargetResolutionError):
    """引数なしで、レビュー対象の変更が存在しない。"""


class InvalidArgumentError(TargetResolutionError):
    """どの検出器にも一致しない引数。"""
