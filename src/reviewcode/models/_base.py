"""ドメインモデルの基底クラス。

解決済みの記述子はすべて不変で、未知のフィールドを受け付けない。
"""

from enum import StrEnum
from typing import TypeVar

from pydantic import BaseModel, ConfigDict


class ReviewCodeBaseModel(BaseModel):
    """extra="forbid" / frozen=True を共有する基底クラス。"""

    model_config = ConfigDict(extra="forbid", frozen=True)


E = TypeVar("E", bound=StrEnum)


def normalize_enum_value(v: object, enum_cls: type[E]) -> object:
    """文字列を enum_cls の正規の値に寄せる（大文字小文字は区別しない）。

    一致しない入力はそのまま返し、判定は pydantic のバリデーションに任せる。
    """
    if not isinstance(v, str):
        return v
    by_folded = {member.value.casefold(): member.value for member in enum_cls}
    return by_folded.get(v.casefold(), v)
