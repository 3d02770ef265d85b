"""レビュー準備パイプライン。"""

from reviewcode.engine._engine import (
    BundleStatus,
    ReviewBundle,
    bundle_status,
    prepare_review,
)

__all__ = [
    "BundleStatus",
    "ReviewBundle",
    "bundle_status",
    "prepare_review",
]
