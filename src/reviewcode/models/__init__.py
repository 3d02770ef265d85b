"""reviewcode ドメインモデルパッケージ。"""

from reviewcode.models._base import ReviewCodeBaseModel
from reviewcode.models.config import (
    DEFAULT_CONTEXT_LINES,
    ExclusionProfile,
    ReviewCodeConfig,
)
from reviewcode.models.diff import (
    DiffLine,
    DiffResult,
    DiffSummary,
    FileDiff,
    Hunk,
    LineKind,
    UnifiedDiff,
)
from reviewcode.models.exit_code import ExitCode
from reviewcode.models.position import (
    FILE_NOT_IN_DIFF,
    LINE_NOT_IN_DIFF,
    PositionHit,
    PositionMiss,
    PositionQuery,
    PositionReport,
    PositionRequest,
    PositionResult,
)
from reviewcode.models.target import (
    DIFF_MODES,
    AmbiguousTarget,
    AreaTarget,
    BranchPlusUncommittedTarget,
    BranchTarget,
    CommitTarget,
    FindTarget,
    LocalTarget,
    PRTarget,
    PromptChoice,
    PromptTarget,
    RangeTarget,
    ReviewArea,
    ReviewMode,
    ReviewTarget,
    has_diff,
)

__all__ = [
    "DEFAULT_CONTEXT_LINES",
    "DIFF_MODES",
    "FILE_NOT_IN_DIFF",
    "LINE_NOT_IN_DIFF",
    "AmbiguousTarget",
    "AreaTarget",
    "BranchPlusUncommittedTarget",
    "BranchTarget",
    "CommitTarget",
    "DiffLine",
    "DiffResult",
    "DiffSummary",
    "ExclusionProfile",
    "ExitCode",
    "FileDiff",
    "FindTarget",
    "Hunk",
    "LineKind",
    "LocalTarget",
    "PRTarget",
    "PositionHit",
    "PositionMiss",
    "PositionQuery",
    "PositionReport",
    "PositionRequest",
    "PositionResult",
    "PromptChoice",
    "PromptTarget",
    "RangeTarget",
    "ReviewArea",
    "ReviewCodeBaseModel",
    "ReviewCodeConfig",
    "ReviewMode",
    "ReviewTarget",
    "UnifiedDiff",
    "has_diff",
]
