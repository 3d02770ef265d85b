"""設定ソースのローダー。

TOML ファイルのパースと環境変数の読み取りを担当する（バリデーションは
ReviewCodeConfig が担当）。
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Final

_TOOL_SECTION_KEY: str = "tool"
_PROJECT_SECTION_KEY: str = "review-code"

ENV_VARIABLES: Final[dict[str, str]] = {
    "DIFF_CONTEXT_LINES": "context_lines",
    "REVIEW_CODE_BASE_BRANCH": "base_branch",
    "REVIEW_CODE_EXCLUSION_PROFILE": "exclusion_profile",
}
"""環境変数名 → 設定キーの対応表。"""


def load_toml_config(path: Path) -> dict[str, object]:
    """TOML 設定ファイルを読み込み辞書として返す。

    Raises:
        tomllib.TOMLDecodeError: TOML 構文エラーの場合。
        PermissionError: 読み取り権限がない場合。
        FileNotFoundError: ファイルが存在しない場合。
    """
    with path.open("rb") as f:
        return tomllib.load(f)


def load_pyproject_config(path: Path) -> dict[str, object] | None:
    """pyproject.toml から [tool.review-code] セクションを読み込む。

    セクションが存在しない場合は None を返す。

    Raises:
        tomllib.TOMLDecodeError: TOML 構文エラーの場合。
        FileNotFoundError: ファイルが存在しない場合。
        PermissionError: 読み取り権限がない場合。
    """
    with path.open("rb") as f:
        data = tomllib.load(f)
    tool = data.get(_TOOL_SECTION_KEY)
    if not isinstance(tool, dict):
        return None
    section = tool.get(_PROJECT_SECTION_KEY)
    if not isinstance(section, dict):
        return None
    return section


def load_env_config(environ: Mapping[str, str] | None = None) -> dict[str, object]:
    """環境変数から設定レイヤーを構築する。

    空文字列の環境変数は未指定として扱う。値の型変換は pydantic に委ねる。

    Args:
        environ: 参照する環境変数。None の場合は os.environ。

    Returns:
        設定キーをキーとする辞書。
    """
    source = os.environ if environ is None else environ
    return {
        key: value
        for env_name, key in ENV_VARIABLES.items()
        if (value := source.get(env_name, "").strip())
    }
