"""差分位置マッパーのテスト。"""

import pytest

from reviewcode.diff import parse_unified_diff
from reviewcode.models import PositionHit, PositionMiss, PositionQuery
from reviewcode.position import (
    build_position_map,
    lookup_position,
    map_positions,
    parse_query,
)

_SRC_A_DIFF = (
    "diff --git a/src/a.py b/src/a.py\n"
    "index 1111111..2222222 100644\n"
    "--- a/src/a.py\n"
    "+++ b/src/a.py\n"
    "@@ -4,3 +4,4 @@ def main():\n"
    "     setup()\n"
    "+foo\n"
    "     run()\n"
    "     teardown()\n"
)

_MULTI_HUNK_DIFF = (
    "diff --git a/lib/util.py b/lib/util.py\n"
    "--- a/lib/util.py\n"
    "+++ b/lib/util.py\n"
    "@@ -1,2 +1,2 @@\n"
    "-old = 1\n"
    "+new = 1\n"
    " keep = 2\n"
    "@@ -20,2 +20,3 @@\n"
    " x = 1\n"
    "+y = 2\n"
    " z = 3\n"
)


class TestConcreteScenario:
    """src/a.py の line 5 が最初の hunk の2番目のエントリ。"""

    def test_hit(self) -> None:
        (result,) = map_positions(_SRC_A_DIFF, [PositionQuery(path="src/a.py", line=5)])
        assert result == PositionHit(path="src/a.py", line=5, side="RIGHT", position=2)

    def test_file_not_in_diff(self) -> None:
        (result,) = map_positions(_SRC_A_DIFF, [PositionQuery(path="other.py", line=5)])
        assert result == PositionMiss(
            path="other.py", line=5, error="file not in diff"
        )

    def test_line_not_in_diff(self) -> None:
        (result,) = map_positions(
            _SRC_A_DIFF, [PositionQuery(path="src/a.py", line=9999)]
        )
        assert result == PositionMiss(
            path="src/a.py", line=9999, error="line not in diff"
        )

    def test_context_lines_addressable(self) -> None:
        queries = [PositionQuery(path="src/a.py", line=n) for n in (4, 6, 7)]
        results = map_positions(_SRC_A_DIFF, queries)
        assert [r.position for r in results if isinstance(r, PositionHit)] == [1, 3, 4]


class TestPositionSemantics:
    """position の数え方。"""

    def test_consecutive_additions_strictly_increase(self) -> None:
        added = "".join(f"+line {i}\n" for i in range(6))
        diff_text = (
            "diff --git a/n.py b/n.py\n"
            "--- a/n.py\n"
            "+++ b/n.py\n"
            "@@ -10,0 +11,6 @@\n" + added
        )
        results = map_positions(
            diff_text, [PositionQuery(path="n.py", line=11 + i) for i in range(6)]
        )
        positions = [r.position for r in results if isinstance(r, PositionHit)]
        assert len(positions) == 6
        assert all(a < b for a, b in zip(positions, positions[1:]))

    def test_removed_lines_consume_position(self) -> None:
        (result,) = map_positions(
            _MULTI_HUNK_DIFF, [PositionQuery(path="lib/util.py", line=1)]
        )
        assert isinstance(result, PositionHit)
        assert result.position == 2

    def test_second_hunk_header_counts(self) -> None:
        """2つ目の hunk の先頭行は header 分を含めて 5。"""
        results = map_positions(
            _MULTI_HUNK_DIFF,
            [
                PositionQuery(path="lib/util.py", line=20),
                PositionQuery(path="lib/util.py", line=21),
            ],
        )
        assert [r.position for r in results if isinstance(r, PositionHit)] == [5, 6]

    def test_removed_only_line_not_addressable(self) -> None:
        """旧ファイル側にしか存在しない行番号は RIGHT では引けない。"""
        diff_text = (
            "diff --git a/r.py b/r.py\n"
            "--- a/r.py\n"
            "+++ b/r.py\n"
            "@@ -1,3 +1,1 @@\n"
            " a\n"
            "-b\n"
            "-c\n"
        )
        (result,) = map_positions(diff_text, [PositionQuery(path="r.py", line=2)])
        assert isinstance(result, PositionMiss)
        assert result.error == "line not in diff"

    def test_repeated_file_section_later_wins(self) -> None:
        """staged + unstaged の連結で同じパスが2回現れる場合。"""
        staged = (
            "diff --git a/a.py b/a.py\n"
            "--- a/a.py\n"
            "+++ b/a.py\n"
            "@@ -1,1 +1,2 @@\n"
            " a\n"
            "+b\n"
        )
        unstaged = (
            "diff --git a/a.py b/a.py\n"
            "--- a/a.py\n"
            "+++ b/a.py\n"
            "@@ -2,1 +2,2 @@\n"
            " b\n"
            "+c\n"
        )
        results = map_positions(
            staged + unstaged,
            [PositionQuery(path="a.py", line=n) for n in (1, 2, 3)],
        )
        assert [r.position for r in results if isinstance(r, PositionHit)] == [
            1,
            1,
            2,
        ]


class TestBatching:
    """問い合わせは独立に解決される。"""

    def test_order_and_count_preserved(self) -> None:
        queries = [
            PositionQuery(path="missing.py", line=1),
            PositionQuery(path="src/a.py", line=5),
            PositionQuery(path="src/a.py", line=5),
            PositionQuery(path="src/a.py", line=100),
        ]
        results = map_positions(_SRC_A_DIFF, queries)
        assert [(r.path, r.line) for r in results] == [
            (q.path, q.line) for q in queries
        ]
        assert isinstance(results[0], PositionMiss)
        assert results[1] == results[2]
        assert isinstance(results[3], PositionMiss)

    def test_deterministic(self) -> None:
        queries = [PositionQuery(path="lib/util.py", line=n) for n in range(1, 25)]
        assert map_positions(_MULTI_HUNK_DIFF, queries) == map_positions(
            _MULTI_HUNK_DIFF, queries
        )

    def test_empty_diff(self) -> None:
        (result,) = map_positions("", [PositionQuery(path="a.py", line=1)])
        assert isinstance(result, PositionMiss)
        assert result.error == "file not in diff"

    def test_no_queries(self) -> None:
        assert map_positions(_SRC_A_DIFF, []) == ()

    def test_build_and_lookup(self) -> None:
        position_map = build_position_map(parse_unified_diff(_SRC_A_DIFF))
        assert position_map == {"src/a.py": {4: 1, 5: 2, 6: 3, 7: 4}}
        hit = lookup_position(position_map, PositionQuery(path="src/a.py", line=7))
        assert isinstance(hit, PositionHit)


class TestParseQuery:
    """``path:line`` の解釈。"""

    def test_simple(self) -> None:
        assert parse_query("src/a.py:5") == PositionQuery(path="src/a.py", line=5)

    def test_colon_in_path(self) -> None:
        assert parse_query("c:/x/a.py:12") == PositionQuery(path="c:/x/a.py", line=12)

    @pytest.mark.parametrize("spec", ["src/a.py", "src/a.py:", ":5", "a.py:x"])
    def test_invalid(self, spec: str) -> None:
        with pytest.raises(ValueError, match="Expected <path>:<line>"):
            parse_query(spec)

    def test_zero_line_rejected(self) -> None:
        with pytest.raises(ValueError):
            parse_query("a.py:0")
