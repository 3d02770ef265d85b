"""git コマンドの読み取り専用実行。

ホワイトリスト検証により書き込み系コマンドを防止する。
失敗はリトライせず、そのまま GitCommandError として呼び出し側へ伝播する。
"""

from __future__ import annotations

import logging
import subprocess
from typing import Final

logger = logging.getLogger(__name__)

ALLOWED_GIT_SUBCOMMANDS: Final[frozenset[str]] = frozenset(
    {
        "diff",
        "show",
        "status",
        "merge-base",
        "rev-parse",
        "rev-list",
        "branch",
        "cat-file",
        "show-ref",
        "symbolic-ref",
        "config",
    }
)
"""読み取り専用の git サブコマンド。"""

_SUBPROCESS_TIMEOUT_SECONDS: Final[int] = 120
"""subprocess.run のタイムアウト秒数。"""


class GitCommandError(RuntimeError):
    """git コマンドの失敗。

    returncode は git が起動できなかった場合やタイムアウト時は None。
    """

    def __init__(
        self, message: str, *, returncode: int | None = None, stderr: str = ""
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


def _validate(args: list[str]) -> None:
    if not args or args[0] not in ALLOWED_GIT_SUBCOMMANDS:
        subcmd = args[0] if args else "(empty)"
        raise ValueError(f"git subcommand '{subcmd}' is not allowed")


def _run(args: list[str]) -> subprocess.CompletedProcess[str]:
    _validate(args)
    logger.debug("git %s", " ".join(args))
    try:
        return subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            check=False,
            timeout=_SUBPROCESS_TIMEOUT_SECONDS,
        )
    except FileNotFoundError:
        raise GitCommandError(
            "git command not found. Ensure git is installed and available in PATH."
        ) from None
    except subprocess.TimeoutExpired as e:
        raise GitCommandError(
            f"git command timed out after {_SUBPROCESS_TIMEOUT_SECONDS}s"
        ) from e


def run_git(args: list[str]) -> str:
    """git コマンドを読み取り専用で実行し stdout を返す。

    Args:
        args: git サブコマンドと引数のリスト（例: ["diff", "--cached"]）。

    Returns:
        git コマンドの stdout 出力。

    Raises:
        ValueError: args[0] がホワイトリスト外のサブコマンドの場合。
        GitCommandError: git コマンドが非ゼロで終了した場合、
            git が PATH 上に見つからない場合、またはタイムアウトした場合。
    """
    result = _run(args)
    if result.returncode != 0:
        stderr = result.stderr.strip()
        raise GitCommandError(
            f"git {args[0]} failed: {stderr}",
            returncode=result.returncode,
            stderr=stderr,
        )
    return result.stdout


def git_succeeds(args: list[str]) -> bool:
    """git コマンドが終了コード 0 で終わるかを返す。

    ``rev-parse --verify`` のような存在確認用。非ゼロ終了は False であり例外ではない。

    Raises:
        ValueError: args[0] がホワイトリスト外のサブコマンドの場合。
        GitCommandError: git が見つからない場合、またはタイムアウトした場合。
    """
    return _run(args).returncode == 0
