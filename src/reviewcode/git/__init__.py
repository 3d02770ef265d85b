"""git への読み取り専用アクセス。"""

from reviewcode.git._repository import (
    GitRepository,
    RepositoryReader,
    parse_github_remote,
)
from reviewcode.git._runner import (
    ALLOWED_GIT_SUBCOMMANDS,
    GitCommandError,
    git_succeeds,
    run_git,
)

__all__ = [
    "ALLOWED_GIT_SUBCOMMANDS",
    "GitCommandError",
    "GitRepository",
    "RepositoryReader",
    "git_succeeds",
    "parse_github_remote",
    "run_git",
]
