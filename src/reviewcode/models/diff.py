"""unified diff のドメインモデル。

UnifiedDiff → FileDiff → Hunk → DiffLine の階層で、各要素はちょうど1つの親に属する。
diff_position はファイル単位で 1 から始まり、ファイル内ではリセットされない。
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import Field

from reviewcode.models._base import ReviewCodeBaseModel


class LineKind(StrEnum):
    """diff 行の種別。"""

    CONTEXT = "context"
    ADDED = "added"
    REMOVED = "removed"


FileStatus = Literal["added", "deleted", "renamed", "modified", "binary"]


class DiffLine(ReviewCodeBaseModel):
    """hunk 内の1行。

    old_line_no は context / removed、new_line_no は context / added でのみ設定される。
    """

    kind: LineKind
    content: str
    old_line_no: int | None = Field(default=None, ge=0)
    new_line_no: int | None = Field(default=None, ge=0)
    diff_position: int = Field(ge=1)


class Hunk(ReviewCodeBaseModel):
    """``@@ -old,+new @@`` ヘッダーで区切られた連続ブロック。"""

    old_start: int = Field(ge=0)
    old_count: int = Field(ge=0)
    new_start: int = Field(ge=0)
    new_count: int = Field(ge=0)
    section: str = ""
    lines: tuple[DiffLine, ...] = ()


class FileDiff(ReviewCodeBaseModel):
    """1ファイル分の差分。"""

    path: str = Field(min_length=1)
    old_path: str | None = None
    new_path: str | None = None
    is_binary: bool = False
    is_rename: bool = False
    hunks: tuple[Hunk, ...] = ()

    @property
    def additions(self) -> int:
        return sum(
            1
            for hunk in self.hunks
            for line in hunk.lines
            if line.kind == LineKind.ADDED
        )

    @property
    def deletions(self) -> int:
        return sum(
            1
            for hunk in self.hunks
            for line in hunk.lines
            if line.kind == LineKind.REMOVED
        )

    @property
    def status(self) -> FileStatus:
        if self.is_binary:
            return "binary"
        if self.old_path is None:
            return "added"
        if self.new_path is None:
            return "deleted"
        if self.is_rename or self.old_path != self.new_path:
            return "renamed"
        return "modified"


class UnifiedDiff(ReviewCodeBaseModel):
    """パース済み unified diff。ファイルは出現順に並ぶ。"""

    files: tuple[FileDiff, ...] = ()

    @property
    def additions(self) -> int:
        return sum(f.additions for f in self.files)

    @property
    def deletions(self) -> int:
        return sum(f.deletions for f in self.files)

    def file(self, path: str) -> FileDiff | None:
        """path に一致する最後のファイルセクションを返す。"""
        for file_diff in reversed(self.files):
            if file_diff.path == path:
                return file_diff
        return None


class DiffSummary(ReviewCodeBaseModel):
    """差分の集計値。"""

    files: int = Field(ge=0)
    additions: int = Field(ge=0)
    deletions: int = Field(ge=0)

    @classmethod
    def from_diff(cls, diff: UnifiedDiff) -> DiffSummary:
        return cls(
            files=len({f.path for f in diff.files}),
            additions=diff.additions,
            deletions=diff.deletions,
        )


class DiffResult(ReviewCodeBaseModel):
    """差分生成の結果。

    metadata は ``DIFF_TYPE: <type> (<detail>)[, filtered by: <glob>]`` 形式の1行で、
    本文とは別チャネルで呼び出し側に渡す。本文が空でも成功として扱う。
    """

    body: str = ""
    metadata: str = Field(min_length=1)
    diff_type: str = Field(min_length=1)
