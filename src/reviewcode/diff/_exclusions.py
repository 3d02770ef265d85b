"""差分から除外するノイズファイルの pathspec テーブル。

common はロックファイル・minify 済みコード・ビルド出力のみ、
extended はスナップショット・生成物・エディタファイルまで含む。
"""

from __future__ import annotations

import fnmatch
from collections.abc import Mapping
from types import MappingProxyType
from typing import Final

from reviewcode.models.config import ExclusionProfile

EXCLUDE_PREFIX: Final[str] = ":!"

_COMMON_PATTERNS: Final[tuple[str, ...]] = (
    # ロックファイル
    ":!package-lock.json",
    ":!pnpm-lock.yaml",
    ":!yarn.lock",
    ":!Cargo.lock",
    # minify 済みコード
    ":!*.min.js",
    ":!*.min.css",
    # ビルド出力
    ":!dist/",
    ":!build/",
    ":!.generated/",
)

_EXTENDED_ONLY_PATTERNS: Final[tuple[str, ...]] = (
    # スナップショット
    ":!*.ambr",
    ":!*.snap",
    ":!**/__snapshots__/**",
    # ロックファイル
    ":!uv.lock",
    ":!poetry.lock",
    ":!Gemfile.lock",
    ":!Pipfile.lock",
    ":!composer.lock",
    ":!go.sum",
    # 生成物・コンパイル済み
    ":!*.pyc",
    ":!**/__pycache__/**",
    ":!*.map",
    ":!*.js.map",
    ":!*.css.map",
    ":!*.wasm",
    # ビルド成果物
    ":!target/**",
    ":!*.tsbuildinfo",
    ":!.next/**",
    ":!out/**",
    # エディタ
    ":!.DS_Store",
    ":!*.swp",
    ":!*.swo",
    ":!*~",
)

EXCLUSION_PROFILES: Final[Mapping[ExclusionProfile, tuple[str, ...]]] = (
    MappingProxyType(
        {
            ExclusionProfile.COMMON: _COMMON_PATTERNS,
            ExclusionProfile.EXTENDED: _COMMON_PATTERNS + _EXTENDED_ONLY_PATTERNS,
        }
    )
)
"""プロファイル名 → pathspec 除外パターン。実行時に変更されない。"""

_WILDCARD_CHARS: Final[frozenset[str]] = frozenset("*?[")


def get_exclusion_patterns(profile: ExclusionProfile | str) -> tuple[str, ...]:
    """プロファイルの pathspec 除外パターンを返す。

    Raises:
        ValueError: 未知のプロファイル名の場合。
    """
    try:
        return EXCLUSION_PROFILES[ExclusionProfile(profile)]
    except ValueError:
        valid = ", ".join(p.value for p in ExclusionProfile)
        raise ValueError(
            f"Unknown exclusion profile: {profile}. Valid profiles: {valid}"
        ) from None


def pathspec_matches(path: str, pattern: str) -> bool:
    """git の既定 pathspec 規則で path が pattern に一致するかを返す。

    ワイルドカードを含まないパターンはパスそのものかディレクトリ接頭辞に一致する。
    ワイルドカードを含むパターンは fnmatch で照合し、``*`` は ``/`` にも一致する。
    ``:!`` 接頭辞は無視する。
    """
    spec = pattern.removeprefix(EXCLUDE_PREFIX)
    if spec in ("", "."):
        return True
    if not set(spec) & _WILDCARD_CHARS:
        prefix = spec.rstrip("/")
        return path == prefix or path.startswith(prefix + "/")
    return fnmatch.fnmatchcase(path, spec)


def is_excluded(path: str, patterns: tuple[str, ...]) -> bool:
    """path がいずれかの除外パターンに一致するか。"""
    return any(
        pathspec_matches(path, p) for p in patterns if p.startswith(EXCLUDE_PREFIX)
    )
