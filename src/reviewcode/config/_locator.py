"""設定ファイルの探索。

.review-code/ と pyproject.toml はカレントディレクトリから親方向に探す。
ユーザー設定は ~/.config/review-code/ に固定。
"""

from __future__ import annotations

from pathlib import Path
from typing import Final

PROJECT_DIR_NAME: Final[str] = ".review-code"
CONFIG_FILE_NAME: Final[str] = "config.toml"
PYPROJECT_FILE_NAME: Final[str] = "pyproject.toml"


def _walk_up(start: Path, name: str, *, want_dir: bool) -> Path | None:
    """start とその祖先から name を探し、最も近いものを返す。

    Raises:
        OSError: 探索パス上のアクセス権限エラー等。
    """
    for directory in (start.resolve(), *start.resolve().parents):
        candidate = directory / name
        if candidate.is_dir() if want_dir else candidate.is_file():
            return candidate
    return None


def find_project_root(start: Path) -> Path | None:
    """.review-code/ を持つ最も近いディレクトリ。"""
    marker = _walk_up(start, PROJECT_DIR_NAME, want_dir=True)
    return marker.parent if marker is not None else None


def find_config_file(start: Path) -> Path | None:
    """プロジェクト設定 .review-code/config.toml のパス。

    ファイル自体の存在は確認しない。プロジェクトルートがなければ None。
    """
    root = find_project_root(start)
    if root is None:
        return None
    return root / PROJECT_DIR_NAME / CONFIG_FILE_NAME


def find_pyproject_toml(start: Path) -> Path | None:
    return _walk_up(start, PYPROJECT_FILE_NAME, want_dir=False)


def get_user_config_path() -> Path:
    """~/.config/review-code/config.toml

    Raises:
        RuntimeError: ホームディレクトリを特定できない場合。
    """
    return Path.home() / ".config" / "review-code" / CONFIG_FILE_NAME
