"""差分フィルタリング — 既に生成済みの unified diff からのセクション抽出。

gh pr diff のように git の pathspec を渡せない経路で取得した差分に対し、
git diff 生成時と同じ除外プロファイルとファイルパターンを適用する。
"""

from __future__ import annotations

import re
from typing import Final

from reviewcode.diff._exclusions import (
    get_exclusion_patterns,
    is_excluded,
    pathspec_matches,
)
from reviewcode.diff._parser import unquote_git_path
from reviewcode.models.config import ExclusionProfile

_DIFF_SECTION_RE: Final[re.Pattern[str]] = re.compile(r"^diff --git ", re.MULTILINE)
"""unified diff のファイル単位セクション区切りパターン。"""

_FILE_PATH_RE: Final[re.Pattern[str]] = re.compile(
    r'diff --git (?:"(?:[^"\\]|\\.)*"|a/.+) '
    r'(?:(?P<quoted>"(?:[^"\\]|\\.)*")|b/(?P<plain>.+))$'
)
"""diff --git ヘッダーからファイルパス（b/側）を抽出するパターン。"""


def filter_diff_sections(
    diff_text: str,
    profile: ExclusionProfile | str = ExclusionProfile.COMMON,
    file_pattern: str | None = None,
) -> str:
    """unified diff をファイル単位で分割し、除外されないセクションのみ抽出する。

    除外パターンに一致するファイルと、file_pattern が指定された場合は
    それに一致しないファイルを取り除く。残るセクションがなければ空文字列を返す。
    ``diff --git`` ヘッダーより前のテキストは捨てる。

    Args:
        diff_text: unified diff テキスト（git diff / gh pr diff の出力）。
        profile: 除外プロファイル名。
        file_pattern: git pathspec 互換のファイルパターン。

    Returns:
        フィルタリング後の diff テキスト。

    Raises:
        ValueError: 未知のプロファイル名の場合。
    """
    exclusions = get_exclusion_patterns(profile)
    if not diff_text:
        return ""

    positions = [m.start() for m in _DIFF_SECTION_RE.finditer(diff_text)]
    kept_sections: list[str] = []

    for idx, pos in enumerate(positions):
        end = positions[idx + 1] if idx + 1 < len(positions) else len(diff_text)
        section = diff_text[pos:end]

        file_path = _extract_file_path(section)
        if not file_path:
            continue
        if is_excluded(file_path, exclusions):
            continue
        if file_pattern and not pathspec_matches(file_path, file_pattern):
            continue
        kept_sections.append(section)

    return "".join(kept_sections)


def _extract_file_path(diff_section: str) -> str:
    """diff --git ヘッダーからファイルパス（b/側）を抽出する。

    Args:
        diff_section: ``diff --git`` で始まる単一ファイルのセクション。

    Returns:
        ファイルパス文字列。抽出できない場合は空文字列。
    """
    first_line = diff_section.split("\n", 1)[0].removesuffix("\r")
    match = _FILE_PATH_RE.match(first_line)
    if match is None:
        return ""
    quoted = match.group("quoted")
    if quoted:
        return unquote_git_path(quoted).removeprefix("b/")
    return match.group("plain")
