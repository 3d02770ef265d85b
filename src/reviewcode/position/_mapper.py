"""差分位置マッパー — (path, line) を GitHub の diff position に変換する。

新しい側（RIGHT）の行番号のみを扱う。削除行は対応表に載らない。
結果は (diff, queries) の純粋関数であり、呼び出し間でキャッシュしない。
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from reviewcode.diff import parse_unified_diff
from reviewcode.models.diff import LineKind, UnifiedDiff
from reviewcode.models.position import (
    FILE_NOT_IN_DIFF,
    LINE_NOT_IN_DIFF,
    PositionHit,
    PositionMiss,
    PositionQuery,
    PositionResult,
)

PositionMap = Mapping[str, Mapping[int, int]]
"""path → (新しい側の行番号 → diff position)。"""


def build_position_map(diff: UnifiedDiff) -> dict[str, dict[int, int]]:
    """パース済み差分から RIGHT 側の対応表を構築する。

    同じパスが複数のファイルセクションに現れた場合、後のセクションの値で上書きする。
    """
    position_map: dict[str, dict[int, int]] = {}
    for file_diff in diff.files:
        lines = position_map.setdefault(file_diff.path, {})
        for hunk in file_diff.hunks:
            for line in hunk.lines:
                if line.kind == LineKind.REMOVED or line.new_line_no is None:
                    continue
                lines[line.new_line_no] = line.diff_position
    return position_map


def lookup_position(position_map: PositionMap, query: PositionQuery) -> PositionResult:
    """対応表から1件の問い合わせを解決する。"""
    lines = position_map.get(query.path)
    if lines is None:
        return PositionMiss(path=query.path, line=query.line, error=FILE_NOT_IN_DIFF)
    position = lines.get(query.line)
    if position is None:
        return PositionMiss(path=query.path, line=query.line, error=LINE_NOT_IN_DIFF)
    return PositionHit(path=query.path, line=query.line, position=position)


def map_positions(
    diff_text: str, queries: Iterable[PositionQuery]
) -> tuple[PositionResult, ...]:
    """unified diff に対して問い合わせを一括で解決する。

    Args:
        diff_text: unified diff テキスト。
        queries: 新しい側の (path, line) 問い合わせ。

    Returns:
        queries と同じ順序・同じ件数の結果。ミスは値として返し、他の問い合わせを中断しない。
    """
    position_map = build_position_map(parse_unified_diff(diff_text))
    return tuple(lookup_position(position_map, query) for query in queries)


def parse_query(spec: str) -> PositionQuery:
    """``path:line`` 形式の文字列を PositionQuery に変換する。

    パスにコロンを含む場合に備え、最後のコロンで分割する。

    Raises:
        ValueError: 形式が不正な場合。
    """
    path, sep, line = spec.rpartition(":")
    if not sep or not path or not line.isdigit():
        raise ValueError(f"Invalid target '{spec}'. Expected <path>:<line>")
    return PositionQuery(path=path, line=int(line))
