from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import NoReturn, get_args

import typer

from relpr import __version__
from relpr.cli.context import CLIContext, build_context
from relpr.core.config import TagStrategy
from relpr.core.errors import ErrorCode
from relpr.core.result import Err
from relpr.output.console import Style
from relpr.output.errors import print_release_error, release_error_exit_code
from relpr.services.release.bump import classify_bump
from relpr.services.release.errors import ReleaseError
from relpr.services.release.event import load_event
from relpr.services.release.model import ReconciliationOutcome
from relpr.services.release.outputs import outcome_outputs, write_github_outputs
from relpr.services.release.reconcile import reconcile
from relpr.services.release.semver import next_tag
from relpr.services.release.tags import ResolvedTag, latest_tag


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _fail(ctx: CLIContext, error: ReleaseError) -> NoReturn:
    print_release_error(error, ctx.console)
    raise typer.Exit(code=release_error_exit_code(error))


def _summarize(ctx: CLIContext, outcome: ReconciliationOutcome) -> None:
    match outcome.state:
        case "noop":
            ctx.console.info("nothing to do")
        case "pr_changed":
            ctx.console.success(f"release PR #{outcome.pr_number}: {outcome.pr_url}")
        case "release_required":
            ctx.console.success(
                f"release required: {outcome.current_tag or '(none)'} -> {outcome.next_tag}"
            )
    if outcome.state != "noop":
        ctx.console.print(
            f"current={outcome.current_tag or '-'} next={outcome.next_tag or '-'} "
            f"bump={outcome.bump_level}",
            Style.DIM,
        )


def _resolve_current(ctx: CLIContext) -> ResolvedTag | None:
    current = latest_tag(
        ctx.api,
        prefix=ctx.config.tag_prefix,
        strategy=ctx.config.tag_strategy,
        console=ctx.console,
    )
    if isinstance(current, Err):
        _fail(ctx, current.error)
    return current.value


@app.command("run")
def run_cmd(
    config_file: Path | None = typer.Option(None, "--config", help="TOML config file"),
    event_name: str | None = typer.Option(
        None, "--event-name", help="Override GITHUB_EVENT_NAME"
    ),
    event_path: Path | None = typer.Option(
        None, "--event-path", help="Override GITHUB_EVENT_PATH"
    ),
) -> None:
    """Reconcile the release PR for the current event and emit outputs."""
    ctx = build_context(config_file=config_file)

    event = load_event(event_name or ctx.env.event_name, event_path or ctx.env.event_path)
    if isinstance(event, Err):
        _fail(ctx, event.error)

    ctx.console.header(f"relpr {__version__}: {event.value.name or '(no event)'}")
    outcome = reconcile(ctx.reconcile_context(), event.value)
    if isinstance(outcome, Err):
        _fail(ctx, outcome.error)

    _summarize(ctx, outcome.value)
    outputs = outcome_outputs(outcome.value)
    if ctx.env.output_path is None:
        for key, value in outputs.items():
            ctx.console.print(f"{key}={value}", Style.DIM)
        return

    written = write_github_outputs(ctx.env.output_path, outputs)
    if isinstance(written, Err):
        ctx.console.error(written.error)
        raise typer.Exit(code=int(ErrorCode.IO_ERROR))


@app.command("latest-tag")
def latest_tag_cmd(
    config_file: Path | None = typer.Option(None, "--config", help="TOML config file"),
    prefix: str | None = typer.Option(None, "--prefix", help="Tag prefix (default: v)"),
    strategy: str | None = typer.Option(None, "--strategy", help="tags or release"),
) -> None:
    """Print the latest published tag (nothing when there is none)."""
    ctx = build_context(config_file=config_file)
    if strategy is not None and strategy not in get_args(TagStrategy):
        ctx.console.error(f"unknown strategy: {strategy} (expected tags or release)")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))
    ctx = _with_overrides(ctx, prefix=prefix, strategy=strategy)  # type: ignore[arg-type]

    current = _resolve_current(ctx)
    if current is not None:
        typer.echo(current.name)


@app.command("next-tag")
def next_tag_cmd(
    label: list[str] = typer.Option([], "--label", help="Label attached to the release PR"),
    config_file: Path | None = typer.Option(None, "--config", help="TOML config file"),
    prefix: str | None = typer.Option(None, "--prefix", help="Tag prefix (default: v)"),
) -> None:
    """Print the tag a release PR carrying LABEL(s) would produce."""
    ctx = build_context(config_file=config_file)
    ctx = _with_overrides(ctx, prefix=prefix, strategy=None)

    bump = classify_bump(label, ctx.config.labels)
    if bump == "unknown":
        labels = ", ".join(ctx.config.labels.names())
        ctx.console.error(f"no bump label given (expected one of {labels})")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    current = _resolve_current(ctx)
    typer.echo(next_tag(current.version if current else None, bump, ctx.config.tag_prefix))


def _with_overrides(
    ctx: CLIContext,
    *,
    prefix: str | None,
    strategy: TagStrategy | None,
) -> CLIContext:
    config = ctx.config
    if prefix is not None:
        config = replace(config, tag_prefix=prefix)
    if strategy is not None:
        config = replace(config, tag_strategy=strategy)
    return replace(ctx, config=config)


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)


def main() -> None:
    app()
