"""設定リゾルバー。

複数の設定ソースを項目単位でマージし ReviewCodeConfig を構築する。
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from reviewcode.config._loader import (
    load_env_config,
    load_pyproject_config,
    load_toml_config,
)
from reviewcode.config._locator import (
    find_config_file,
    find_pyproject_toml,
    get_user_config_path,
)
from reviewcode.models.config import ReviewCodeConfig


def merge_config_layers(
    *layers: dict[str, object] | None,
) -> dict[str, object]:
    """複数の設定レイヤーを項目単位でマージする。

    後のレイヤーが先のレイヤーを上書きする。None のレイヤーはスキップされる。

    Args:
        layers: マージ対象の設定辞書。低優先度から高優先度の順。

    Returns:
        マージ済みの設定辞書。
    """
    result: dict[str, object] = {}
    for layer in layers:
        if layer is None:
            continue
        result.update(layer)
    return result


def filter_cli_overrides(cli_options: dict[str, object]) -> dict[str, object]:
    """CLI オプション辞書から None 値（未指定）を除外する。"""
    return {k: v for k, v in cli_options.items() if v is not None}


def resolve_config(
    start_dir: Path | None = None,
    cli_overrides: dict[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ReviewCodeConfig:
    """設定ソースを解決し ReviewCodeConfig を構築する。

    優先順位: CLI > 環境変数 > .review-code/config.toml
    > pyproject.toml [tool.review-code] > ~/.config/review-code/config.toml
    > デフォルト値

    設定ファイルが存在しない場合は該当レイヤーをスキップする。

    Args:
        start_dir: 探索開始ディレクトリ。None の場合はカレントディレクトリ。
        cli_overrides: CLI オプションの辞書。None 値は未指定扱い。
        environ: 環境変数。None の場合は os.environ。

    Returns:
        解決済みの ReviewCodeConfig インスタンス。

    Raises:
        pydantic.ValidationError: マージ後の設定が不正な場合。
        tomllib.TOMLDecodeError: 設定ファイルの TOML 構文が不正な場合。
        PermissionError: 設定ファイルの読み取り権限がない場合。
    """
    origin = start_dir if start_dir is not None else Path.cwd()

    pyproject_path = find_pyproject_toml(origin)
    layers = (
        _read_optional(get_user_config_path()),
        load_pyproject_config(pyproject_path) if pyproject_path else None,
        _read_optional(find_config_file(origin)),
        load_env_config(environ),
        filter_cli_overrides(cli_overrides) if cli_overrides else None,
    )
    return ReviewCodeConfig(**merge_config_layers(*layers))  # type: ignore[arg-type]


def _read_optional(path: Path | None) -> dict[str, object] | None:
    """存在しない設定ファイルは None（レイヤーなし）として扱う。"""
    if path is None:
        return None
    try:
        return load_toml_config(path)
    except FileNotFoundError:
        return None
