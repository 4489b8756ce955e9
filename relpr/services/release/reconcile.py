"""Event router: one inbound event in, one reconciliation outcome out.

Nothing is remembered between runs. Tags, the release branch and the open
release PR are looked up on the platform every time, which is what makes
repeated runs against unchanged state produce the same outcome.

    push (release PR merge)     -> release_required, no mutation
    push (anything else)        -> update or create the release PR -> pr_changed
    pull_request labeled/unlabeled on the release PR -> update -> pr_changed
    anything else               -> noop
"""

from __future__ import annotations

from dataclasses import dataclass

from relpr.core.config import ActionConfig, Repository
from relpr.core.result import Err, Ok, Result
from relpr.output.console import ConsoleProtocol, Style
from relpr.services.release.bump import classify_bump
from relpr.services.release.errors import ReleaseError
from relpr.services.release.event import LABEL_ACTIONS, InboundEvent
from relpr.services.release.github import GitHubApi, NotesRequest
from relpr.services.release.model import NOOP, BumpLevel, PullRequest, ReconciliationOutcome
from relpr.services.release.notes import fetch_release_notes, placeholder_tag
from relpr.services.release.pull_request import (
    create_release_pr,
    find_open_release_pr,
    update_release_pr,
)
from relpr.services.release.semver import next_tag
from relpr.services.release.tags import ResolvedTag, latest_tag
from relpr.services.release.template import PrTextInput, render_pr_text


@dataclass(frozen=True, slots=True)
class ReconcileContext:
    """Everything one run needs, passed explicitly."""

    config: ActionConfig
    repository: Repository
    api: GitHubApi
    console: ConsoleProtocol
    server_url: str = "https://github.com"


def release_branch_name(config: ActionConfig, current_tag: str) -> str:
    """Head branch for the release PR of the current cycle."""
    if config.branch_mode == "per-tag":
        return f"{config.release_branch}-{current_tag or 'initial'}"
    return config.release_branch


def is_release_branch(config: ActionConfig, ref: str) -> bool:
    if config.branch_mode == "per-tag":
        return ref.startswith(f"{config.release_branch}-")
    return ref == config.release_branch


def is_release_pr(config: ActionConfig, pr: PullRequest) -> bool:
    if is_release_branch(config, pr.head_ref):
        return True
    return bool(config.marker_label) and config.marker_label in pr.labels


def _current(ctx: ReconcileContext) -> Result[ResolvedTag | None, ReleaseError]:
    return latest_tag(
        ctx.api,
        prefix=ctx.config.tag_prefix,
        strategy=ctx.config.tag_strategy,
        console=ctx.console,
    )


def _plan(
    ctx: ReconcileContext,
    current: ResolvedTag | None,
    labels: frozenset[str],
) -> tuple[BumpLevel, str]:
    bump = classify_bump(labels, ctx.config.labels)
    return bump, next_tag(current.version if current else None, bump, ctx.config.tag_prefix)


def _notes(ctx: ReconcileContext, current: ResolvedTag | None, tag: str) -> str:
    request = NotesRequest(
        tag_name=tag or placeholder_tag(ctx.config.tag_prefix),
        target=ctx.config.base_branch,
        previous_tag=current.name if current else None,
        config_path=ctx.config.notes_config_path,
    )
    return fetch_release_notes(ctx.api, request, console=ctx.console)


def _text_input(
    ctx: ReconcileContext,
    current: ResolvedTag | None,
    tag: str,
    notes: str,
) -> PrTextInput:
    return PrTextInput(
        repository=ctx.repository,
        server_url=ctx.server_url,
        base_branch=ctx.config.base_branch,
        labels=ctx.config.labels,
        current_tag=current.name if current else "",
        next_tag=tag,
        notes=notes,
    )


def _refresh(
    ctx: ReconcileContext,
    current: ResolvedTag | None,
    pr: PullRequest,
) -> Result[ReconciliationOutcome, ReleaseError]:
    bump, tag = _plan(ctx, current, pr.labels)
    notes = _notes(ctx, current, tag)
    text = render_pr_text(_text_input(ctx, current, tag, notes))

    updated = update_release_pr(ctx.api, pr.number, text, console=ctx.console)
    if isinstance(updated, Err):
        return updated

    return Ok(
        ReconciliationOutcome(
            state="pr_changed",
            pr_number=str(updated.value.number),
            pr_url=updated.value.html_url or pr.html_url,
            pr_branch=pr.head_ref,
            current_tag=current.name if current else "",
            next_tag=tag,
            bump_level=bump,
            release_notes=notes,
        )
    )


def _on_label_change(
    ctx: ReconcileContext,
    event: InboundEvent,
) -> Result[ReconciliationOutcome, ReleaseError]:
    if event.action not in LABEL_ACTIONS:
        ctx.console.info(f"pull_request action {event.action!r} ignored")
        return Ok(NOOP)
    pr = event.pull_request
    if pr is None:
        ctx.console.info("no pull request in payload")
        return Ok(NOOP)
    if not is_release_branch(ctx.config, pr.head_ref):
        ctx.console.info(f"PR #{pr.number} ({pr.head_ref}) is not the release PR")
        return Ok(NOOP)

    current = _current(ctx)
    if isinstance(current, Err):
        return current
    return _refresh(ctx, current.value, pr)


def _merged_release_pr(ctx: ReconcileContext, sha: str | None) -> PullRequest | None:
    """The release PR whose merge produced ``sha``, if any.

    Lookup failures count as "not a release merge".
    """
    if not sha:
        return None
    ctx.console.print(f"check PRs associated with {sha[:12]}", Style.DIM)
    associated = ctx.api.list_pull_requests_for_commit(sha)
    if isinstance(associated, Err):
        ctx.console.warning(f"associated PR lookup failed: {associated.error}")
        return None
    for pr in associated.value:
        if is_release_pr(ctx.config, pr):
            return pr
    return None


def _release_required(
    ctx: ReconcileContext,
    merged: PullRequest,
) -> Result[ReconciliationOutcome, ReleaseError]:
    current = _current(ctx)
    if isinstance(current, Err):
        return current

    bump, tag = _plan(ctx, current.value, merged.labels)
    if bump == "unknown":
        labels = ", ".join(ctx.config.labels.names())
        return Err(
            ReleaseError(
                kind="missing_bump_label",
                message=f"release PR #{merged.number} was merged without a bump label",
                hint=f"add one of {labels} before merging; the next version is undetermined",
            )
        )

    return Ok(
        ReconciliationOutcome(
            state="release_required",
            current_tag=current.value.name if current.value else "",
            next_tag=tag,
            bump_level=bump,
        )
    )


def _on_push(
    ctx: ReconcileContext,
    event: InboundEvent,
) -> Result[ReconciliationOutcome, ReleaseError]:
    merged = _merged_release_pr(ctx, event.after)
    if merged is not None:
        ctx.console.info(f"push is the merge of release PR #{merged.number}")
        return _release_required(ctx, merged)

    current = _current(ctx)
    if isinstance(current, Err):
        return current
    current_tag = current.value.name if current.value else ""
    branch = release_branch_name(ctx.config, current_tag)

    existing = find_open_release_pr(
        ctx.api,
        base_branch=ctx.config.base_branch,
        release_branch=branch,
        console=ctx.console,
    )
    if isinstance(existing, Err):
        return existing
    if existing.value is not None:
        return _refresh(ctx, current.value, existing.value)

    # A new cycle: no PR means no labels, so the bump level is unknown.
    notes = _notes(ctx, current.value, "")
    text = render_pr_text(_text_input(ctx, current.value, "", notes))
    created = create_release_pr(
        ctx.api,
        base_branch=ctx.config.base_branch,
        release_branch=branch,
        text=text,
        marker_label=ctx.config.marker_label,
        console=ctx.console,
    )
    if isinstance(created, Err):
        return created

    return Ok(
        ReconciliationOutcome(
            state="pr_changed",
            pr_number=str(created.value.number),
            pr_url=created.value.html_url,
            pr_branch=branch,
            current_tag=current_tag,
            next_tag="",
            bump_level="unknown",
            release_notes=notes,
        )
    )


def reconcile(
    ctx: ReconcileContext,
    event: InboundEvent,
) -> Result[ReconciliationOutcome, ReleaseError]:
    """Converge the release PR for ``event``.

    Returns Err only for fatal conditions: failed tag lookup, rejected
    branch/PR mutation, or a release PR merged without a bump label.
    """
    if event.is_pull_request:
        return _on_label_change(ctx, event)
    if event.is_push:
        return _on_push(ctx, event)
    ctx.console.info(f"event {event.name!r} is not handled")
    return Ok(NOOP)
