"""レビュー対象の解決。"""

from reviewcode.target._detectors import (
    AREA_KEYWORDS,
    DETECTORS,
    Detector,
    ResolveRequest,
    is_glob_pattern,
    split_range,
)
from reviewcode.target._errors import (
    InvalidArgumentError,
    NoChangesError,
    PRIdentifierError,
    RefError,
    TargetResolutionError,
)
from reviewcode.target._resolver import (
    build_request,
    parse_positionals,
    resolve_request,
    resolve_target,
)

__all__ = [
    "AREA_KEYWORDS",
    "DETECTORS",
    "Detector",
    "InvalidArgumentError",
    "NoChangesError",
    "PRIdentifierError",
    "RefError",
    "ResolveRequest",
    "TargetResolutionError",
    "build_request",
    "is_glob_pattern",
    "parse_positionals",
    "resolve_request",
    "resolve_target",
    "split_range",
]
