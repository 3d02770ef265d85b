"""unified diff パーサー。

バックトラックなしの単一前方走査で UnifiedDiff を構築する。
走査状態は明示的な _ParserState に保持する。

diff_position は GitHub のレビューコメント API と同じ定義に従う:
ファイル最初の ``@@`` ヘッダー直下の行が 1 で、以降は行種別に関係なく
（2つ目以降の ``@@`` ヘッダーを含めて）1 ずつ増え、次のファイルまでリセットされない。
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Final

from reviewcode.models.diff import DiffLine, FileDiff, Hunk, LineKind, UnifiedDiff

_QUOTED: Final[str] = r'"(?:[^"\\]|\\.)*"'

_DIFF_GIT_RE: Final[re.Pattern[str]] = re.compile(
    rf"^diff --git (?P<old>{_QUOTED}|a/.+) (?P<new>{_QUOTED}|b/.+)$"
)
_HUNK_RE: Final[re.Pattern[str]] = re.compile(
    r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@(.*)$"
)
_QUOTED_RE: Final[re.Pattern[str]] = re.compile(_QUOTED)
_ESCAPE_RE: Final[re.Pattern[bytes]] = re.compile(rb"\\([0-7]{3}|.)", re.DOTALL)

_C_ESCAPES: Final[dict[bytes, bytes]] = {
    b"a": b"\a",
    b"b": b"\b",
    b"f": b"\f",
    b"n": b"\n",
    b"r": b"\r",
    b"t": b"\t",
    b"v": b"\v",
    b'"': b'"',
    b"\\": b"\\",
}

_FILE_HEADER_PREFIX: Final[str] = "diff --git "
_HUNK_HEADER_PREFIX: Final[str] = "@@ "
_NO_NEWLINE_MARKER: Final[str] = "\\"
_DEV_NULL: Final[str] = "/dev/null"


def _decode_escape(match: re.Match[bytes]) -> bytes:
    token = match.group(1)
    if len(token) == 3:
        return bytes([int(token, 8)])
    return _C_ESCAPES.get(token, b"\\" + token)


def unquote_git_path(value: str) -> str:
    """git が C 形式で引用したパスを復元する。

    core.quotepath（既定で有効）の下では非 ASCII 文字が ``\\303\\251`` のような
    8進エスケープのバイト列になるため、バイトに戻してから UTF-8 で復号する。
    引用されていない値はそのまま返す。
    """
    path = value.strip()
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path
    raw = _ESCAPE_RE.sub(_decode_escape, path[1:-1].encode("utf-8"))
    return raw.decode("utf-8", errors="replace")


def _strip_side_prefix(path: str) -> str:
    return path[2:] if path.startswith(("a/", "b/")) else path


def _header_path(value: str) -> str | None:
    """``--- a/x`` / ``+++ b/x`` のパス部分を正規化する。/dev/null は None。"""
    quoted = _QUOTED_RE.match(value)
    raw = quoted.group(0) if quoted else value.split("\t", 1)[0]
    path = unquote_git_path(raw)
    if path == _DEV_NULL:
        return None
    return _strip_side_prefix(path)


def split_diff_lines(diff_text: str) -> list[str]:
    """diff を ``\\n`` のみで行に分割する。

    str.splitlines は ``\\f`` や U+2028 でも分割するため、内容にそれらを含む
    行が途中で切れてしまう。CRLF の ``\\r`` は行末から取り除く。
    """
    lines = diff_text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line.removesuffix("\r") for line in lines]


@dataclass
class _HunkState:
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    section: str
    old_line_no: int
    new_line_no: int
    old_remaining: int
    new_remaining: int
    lines: list[DiffLine] = field(default_factory=list)

    @property
    def exhausted(self) -> bool:
        return self.old_remaining <= 0 and self.new_remaining <= 0

    def to_hunk(self) -> Hunk:
        return Hunk(
            old_start=self.old_start,
            old_count=self.old_count,
            new_start=self.new_start,
            new_count=self.new_count,
            section=self.section,
            lines=tuple(self.lines),
        )


@dataclass
class _FileState:
    git_old_path: str | None
    git_new_path: str | None
    old_path: str | None = None
    new_path: str | None = None
    saw_old_header: bool = False
    saw_new_header: bool = False
    is_new: bool = False
    is_deleted: bool = False
    is_binary: bool = False
    is_rename: bool = False
    position: int = 0
    hunks: list[Hunk] = field(default_factory=list)

    def to_file_diff(self) -> FileDiff:
        old_path = self.old_path if self.saw_old_header else self.git_old_path
        new_path = self.new_path if self.saw_new_header else self.git_new_path
        if self.is_new:
            old_path = None
        if self.is_deleted:
            new_path = None
        path = new_path or old_path or self.git_new_path or self.git_old_path
        return FileDiff(
            path=path or "unknown",
            old_path=old_path,
            new_path=new_path,
            is_binary=self.is_binary,
            is_rename=self.is_rename,
            hunks=tuple(self.hunks),
        )


@dataclass
class _ParserState:
    """走査中の「現在のファイル」と「現在の hunk」。"""

    files: list[FileDiff] = field(default_factory=list)
    current_file: _FileState | None = None
    current_hunk: _HunkState | None = None

    def close_hunk(self) -> None:
        if self.current_hunk is not None and self.current_file is not None:
            self.current_file.hunks.append(self.current_hunk.to_hunk())
        self.current_hunk = None

    def close_file(self) -> None:
        self.close_hunk()
        if self.current_file is not None:
            self.files.append(self.current_file.to_file_diff())
        self.current_file = None


def _start_file(state: _ParserState, line: str) -> None:
    state.close_file()
    match = _DIFF_GIT_RE.match(line)
    old_path = new_path = None
    if match:
        old_path = _strip_side_prefix(unquote_git_path(match.group("old")))
        new_path = _strip_side_prefix(unquote_git_path(match.group("new")))
    state.current_file = _FileState(git_old_path=old_path, git_new_path=new_path)


def _start_hunk(
    state: _ParserState, file_state: _FileState, match: re.Match[str]
) -> None:
    state.close_hunk()
    if file_state.hunks:
        # 2つ目以降のヘッダー行も position を1つ消費する
        file_state.position += 1

    old_start = int(match.group(1))
    old_count = int(match.group(2) or "1")
    new_start = int(match.group(3))
    new_count = int(match.group(4) or "1")
    state.current_hunk = _HunkState(
        old_start=old_start,
        old_count=old_count,
        new_start=new_start,
        new_count=new_count,
        section=match.group(5).strip(),
        old_line_no=old_start,
        new_line_no=new_start,
        old_remaining=old_count,
        new_remaining=new_count,
    )


def _consume_hunk_line(hunk: _HunkState, file_state: _FileState, line: str) -> bool:
    """hunk 本体の1行を処理する。本体として解釈できなければ False。"""

    prefix = line[:1]
    if prefix == _NO_NEWLINE_MARKER:
        return True
    if prefix not in ("", " ", "+", "-"):
        return False

    file_state.position += 1
    content = line[1:]
    if prefix == "+":
        hunk.lines.append(
            DiffLine(
                kind=LineKind.ADDED,
                content=content,
                new_line_no=hunk.new_line_no,
                diff_position=file_state.position,
            )
        )
        hunk.new_line_no += 1
        hunk.new_remaining -= 1
    elif prefix == "-":
        hunk.lines.append(
            DiffLine(
                kind=LineKind.REMOVED,
                content=content,
                old_line_no=hunk.old_line_no,
                diff_position=file_state.position,
            )
        )
        hunk.old_line_no += 1
        hunk.old_remaining -= 1
    else:
        # 末尾空白を削られた空のコンテキスト行も context として扱う
        hunk.lines.append(
            DiffLine(
                kind=LineKind.CONTEXT,
                content=content,
                old_line_no=hunk.old_line_no,
                new_line_no=hunk.new_line_no,
                diff_position=file_state.position,
            )
        )
        hunk.old_line_no += 1
        hunk.new_line_no += 1
        hunk.old_remaining -= 1
        hunk.new_remaining -= 1
    return True


def _consume_file_header(file_state: _FileState, line: str) -> None:
    if line.startswith("--- "):
        file_state.saw_old_header = True
        file_state.old_path = _header_path(line[4:])
    elif line.startswith("+++ "):
        file_state.saw_new_header = True
        file_state.new_path = _header_path(line[4:])
    elif line.startswith("new file mode "):
        file_state.is_new = True
    elif line.startswith("deleted file mode "):
        file_state.is_deleted = True
    elif line.startswith("rename from "):
        file_state.is_rename = True
        file_state.git_old_path = unquote_git_path(line.removeprefix("rename from "))
    elif line.startswith("rename to "):
        file_state.is_rename = True
        file_state.git_new_path = unquote_git_path(line.removeprefix("rename to "))
    elif line.startswith("Binary files ") or line == "GIT binary patch":
        file_state.is_binary = True


def parse_unified_diff(diff_text: str) -> UnifiedDiff:
    """unified diff テキストをパースする。

    ``diff --git`` ヘッダーより前の行、および hunk のヘッダー件数を使い切った後の
    行（連結された diff 間の空行や区切り行など）は無視する。

    Args:
        diff_text: ``git diff`` / ``gh pr diff`` 形式のテキスト。

    Returns:
        ファイル出現順の UnifiedDiff。空入力は空の UnifiedDiff。

    Raises:
        pydantic.ValidationError: ヘッダーの行番号が負になるなど構造が不正な場合。
    """
    state = _ParserState()

    for line in split_diff_lines(diff_text):
        if line.startswith(_FILE_HEADER_PREFIX):
            _start_file(state, line)
            continue

        file_state = state.current_file
        if file_state is None:
            continue

        if line.startswith(_HUNK_HEADER_PREFIX):
            match = _HUNK_RE.match(line)
            if match:
                _start_hunk(state, file_state, match)
                continue

        hunk = state.current_hunk
        if hunk is not None:
            if not hunk.exhausted and _consume_hunk_line(hunk, file_state, line):
                continue
            if hunk.exhausted and line.startswith(_NO_NEWLINE_MARKER):
                continue
            state.close_hunk()

        if not file_state.hunks:
            _consume_file_header(file_state, line)

    state.close_file()
    return UnifiedDiff(files=tuple(state.files))
