"""CliApp — Typer アプリケーション定義。

resolve / diff / map / filter / prepare の各サブコマンドを提供する。
構造化された結果は stdout に JSON で、人間向けのメッセージは stderr に出力する。
"""

from __future__ import annotations

import importlib.metadata
import logging
import sys
import tomllib
from pathlib import Path
from typing import Annotated, Literal, NoReturn

import typer
from pydantic import ValidationError

from reviewcode.config import resolve_config
from reviewcode.diff import filter_diff_sections, generate_diff
from reviewcode.engine import prepare_review
from reviewcode.git import GitCommandError, GitRepository
from reviewcode.models._base import ReviewCodeBaseModel
from reviewcode.models.config import ExclusionProfile, ReviewCodeConfig
from reviewcode.models.exit_code import ExitCode
from reviewcode.models.position import PositionQuery, PositionReport, PositionRequest
from reviewcode.models.target import PromptChoice, ReviewTarget, has_diff
from reviewcode.position import map_positions, parse_query
from reviewcode.target import (
    NoChangesError,
    TargetResolutionError,
    parse_positionals,
    resolve_target,
)

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

app = typer.Typer(
    name="review-code",
    help=(
        "Resolve what to review in a git repository, generate the filtered diff "
        "and map file lines to GitHub review-comment positions."
    ),
    add_completion=False,
    no_args_is_help=True,
)


class ErrorRecord(ReviewCodeBaseModel):
    """致命的エラー時に stdout へ出力する JSON レコード。"""

    mode: Literal["error"] = "error"
    error: str


# --- 共通オプション型 ---

TargetArgs = Annotated[
    list[str] | None,
    typer.Argument(
        help="[find] [<PR|URL|range|ref|area|glob>] [<file-pattern>]",
        show_default=False,
    ),
]
ForceOption = Annotated[
    bool,
    typer.Option("--force", help="Pick the default instead of asking (local / commit)."),
]
FindOption = Annotated[
    bool, typer.Option("--find", help="Degrade to find mode when nothing changed.")
]
ChoiceOption = Annotated[
    PromptChoice | None,
    typer.Option("--choice", help="Answer to a previous prompt result."),
]
BaseBranchOption = Annotated[
    str | None, typer.Option("--base-branch", help="Base branch for branch diffs.")
]
ProfileOption = Annotated[
    ExclusionProfile | None,
    typer.Option("--profile", help="Exclusion profile: common or extended."),
]
ContextLinesOption = Annotated[
    int | None,
    typer.Option("--context-lines", "-U", help="Diff context lines.", min=0),
]
QueryOption = Annotated[
    list[str] | None,
    typer.Option("--target", "-t", help="Position query as <path>:<line>."),
]


def _version_callback(value: bool) -> None:
    """--version 指定時にバージョン番号を出力して終了する。"""
    if value:
        print(importlib.metadata.version("review-code"))
        raise typer.Exit()


def main() -> None:
    """CLI エントリポイント。pyproject.toml の [project.scripts] から呼び出される。"""
    app()


@app.callback()
def _app_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log git invocations to stderr.")
    ] = False,
) -> None:
    """Review target resolution and diff position tooling."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=_LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


@app.command()
def resolve(
    args: TargetArgs = None,
    force: ForceOption = False,
    find: FindOption = False,
    choice: ChoiceOption = None,
    base_branch: BaseBranchOption = None,
) -> None:
    """Resolve an argument into a review target (JSON on stdout)."""
    config = _load_config(base_branch=base_branch)
    target = _resolve(args, force=force, find=find, choice=choice, config=config)
    print(target.model_dump_json(indent=config.output_indent))


@app.command()
def diff(
    args: TargetArgs = None,
    force: ForceOption = False,
    find: FindOption = False,
    choice: ChoiceOption = None,
    base_branch: BaseBranchOption = None,
    profile: ProfileOption = None,
    context_lines: ContextLinesOption = None,
) -> None:
    """Generate the filtered diff (body on stdout, DIFF_TYPE line on stderr).

    Targets without a local diff (area, pr, ambiguous, prompt, find) are
    printed as JSON instead.
    """
    config = _load_config(
        base_branch=base_branch,
        exclusion_profile=profile,
        context_lines=context_lines,
    )
    target = _resolve(args, force=force, find=find, choice=choice, config=config)
    if not has_diff(target):
        print(target.model_dump_json(indent=config.output_indent))
        return

    try:
        result = generate_diff(
            target,
            profile=config.exclusion_profile,
            context_lines=config.context_lines,
            repo=GitRepository(),
        )
    except GitCommandError as e:
        _fail(f"Diff generation failed: {e}", ExitCode.EXECUTION_ERROR)

    sys.stdout.write(result.body)
    print(result.metadata, file=sys.stderr)


@app.command(name="map")
def map_command(
    targets: QueryOption = None,
    diff_file: Annotated[
        Path | None,
        typer.Option(
            "--diff-file",
            help="Diff to map against. Defaults to stdin.",
            dir_okay=False,
        ),
    ] = None,
) -> None:
    """Map <path>:<line> queries to GitHub diff positions.

    Without --target, stdin must be JSON: {"diff": "...", "targets":
    [{"path": "...", "line": N}]}.
    """
    config = _load_config()
    diff_text, queries = _read_map_input(targets, diff_file)
    report = PositionReport(mappings=map_positions(diff_text, queries))
    print(report.model_dump_json(indent=config.output_indent))


@app.command(name="filter")
def filter_command(
    profile: ProfileOption = None,
    pattern: Annotated[
        str | None,
        typer.Option("--pattern", help="Keep only files matching this glob."),
    ] = None,
) -> None:
    """Drop excluded files from a diff read on stdin (e.g. gh pr diff output)."""
    config = _load_config(exclusion_profile=profile)
    filtered = filter_diff_sections(
        sys.stdin.read(), config.exclusion_profile, pattern or None
    )
    sys.stdout.write(filtered)


@app.command()
def prepare(
    args: TargetArgs = None,
    targets: QueryOption = None,
    force: ForceOption = False,
    find: FindOption = False,
    choice: ChoiceOption = None,
    base_branch: BaseBranchOption = None,
    profile: ProfileOption = None,
    context_lines: ContextLinesOption = None,
) -> None:
    """Resolve, diff and map in one pass (bundle JSON on stdout)."""
    config = _load_config(
        base_branch=base_branch,
        exclusion_profile=profile,
        context_lines=context_lines,
    )
    queries = _parse_queries(targets or [])
    arg, file_pattern, find_keyword = _parse_args(args)

    try:
        bundle = prepare_review(
            arg,
            file_pattern,
            force=force,
            find=find or find_keyword,
            choice=choice,
            config=config,
            repo=GitRepository(),
            queries=queries,
        )
    except NoChangesError as e:
        _fail(str(e), ExitCode.NO_CHANGES)
    except TargetResolutionError as e:
        _fail(str(e), ExitCode.INPUT_ERROR)
    except GitCommandError as e:
        _fail(f"git failed: {e}", ExitCode.EXECUTION_ERROR)

    print(bundle.model_dump_json(indent=config.output_indent))


# --- ヘルパー ---


def _fail(message: str, code: ExitCode) -> NoReturn:
    """エラーレコードを stdout、メッセージを stderr に出力して終了する。"""
    print(ErrorRecord(error=message).model_dump_json())
    print(f"Error: {message}", file=sys.stderr)
    raise typer.Exit(code=code)


def _load_config(**cli_overrides: object) -> ReviewCodeConfig:
    """CLI オプションを最優先レイヤーとして設定を解決する。"""
    try:
        return resolve_config(cli_overrides=cli_overrides)
    except (ValidationError, tomllib.TOMLDecodeError, TypeError) as e:
        _fail(
            f"Invalid configuration: {e}. "
            "Check .review-code/config.toml and [tool.review-code] in pyproject.toml.",
            ExitCode.INPUT_ERROR,
        )
    except PermissionError as e:
        _fail(f"Cannot read configuration file: {e}", ExitCode.INPUT_ERROR)


def _parse_args(args: list[str] | None) -> tuple[str | None, str | None, bool]:
    try:
        return parse_positionals(args or [])
    except TargetResolutionError as e:
        _fail(str(e), ExitCode.INPUT_ERROR)


def _resolve(
    args: list[str] | None,
    *,
    force: bool,
    find: bool,
    choice: PromptChoice | None,
    config: ReviewCodeConfig,
) -> ReviewTarget:
    arg, file_pattern, find_keyword = _parse_args(args)
    try:
        return resolve_target(
            arg,
            file_pattern,
            force=force,
            find=find or find_keyword,
            choice=choice,
            base_branch=config.base_branch,
            repo=GitRepository(),
        )
    except NoChangesError as e:
        _fail(str(e), ExitCode.NO_CHANGES)
    except TargetResolutionError as e:
        _fail(str(e), ExitCode.INPUT_ERROR)
    except GitCommandError as e:
        _fail(f"git failed: {e}", ExitCode.EXECUTION_ERROR)


def _parse_queries(specs: list[str]) -> tuple[PositionQuery, ...]:
    try:
        return tuple(parse_query(spec) for spec in specs)
    except ValueError as e:
        _fail(str(e), ExitCode.INPUT_ERROR)


def _read_map_input(
    targets: list[str] | None, diff_file: Path | None
) -> tuple[str, tuple[PositionQuery, ...]]:
    """map コマンドの (diff, queries) を CLI オプションまたは stdin JSON から得る。"""
    if targets:
        queries = _parse_queries(targets)
        if diff_file is None:
            return sys.stdin.read(), queries
        try:
            return diff_file.read_text(encoding="utf-8"), queries
        except OSError as e:
            _fail(f"Cannot read diff file: {e}", ExitCode.INPUT_ERROR)

    if diff_file is not None:
        _fail(
            "No targets given. Use --target <path>:<line> with --diff-file.",
            ExitCode.INPUT_ERROR,
        )
    try:
        request = PositionRequest.model_validate_json(sys.stdin.read())
    except ValidationError as e:
        _fail(
            f"Invalid map input: {e.errors()[0]['msg']}. "
            'Expected {"diff": "...", "targets": [{"path": "...", "line": N}]}.',
            ExitCode.INPUT_ERROR,
        )
    return request.diff, request.targets
