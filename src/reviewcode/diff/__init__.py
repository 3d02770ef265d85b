"""差分生成・パース・フィルタリング。"""

from reviewcode.diff._exclusions import (
    EXCLUSION_PROFILES,
    get_exclusion_patterns,
    is_excluded,
    pathspec_matches,
)
from reviewcode.diff._filter import filter_diff_sections
from reviewcode.diff._generator import (
    METADATA_PREFIX,
    UnsupportedTargetError,
    build_diff_options,
    build_metadata,
    build_pathspecs,
    generate_diff,
)
from reviewcode.diff._parser import (
    parse_unified_diff,
    split_diff_lines,
    unquote_git_path,
)

__all__ = [
    "EXCLUSION_PROFILES",
    "METADATA_PREFIX",
    "UnsupportedTargetError",
    "build_diff_options",
    "build_metadata",
    "build_pathspecs",
    "filter_diff_sections",
    "generate_diff",
    "get_exclusion_patterns",
    "is_excluded",
    "parse_unified_diff",
    "pathspec_matches",
    "split_diff_lines",
    "unquote_git_path",
]
