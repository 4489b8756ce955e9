from __future__ import annotations

from relpr.core.result import Err, Ok, Result
from relpr.output.console import ConsoleProtocol, Style
from relpr.services.release.branch import ensure_release_branch
from relpr.services.release.errors import ReleaseError
from relpr.services.release.github import GitHubApi
from relpr.services.release.model import PullRequest
from relpr.services.release.template import PrText

MARKER_LABEL_COLOR = "0e8a16"
MARKER_LABEL_DESCRIPTION = "Release pull request managed by relpr"


def find_open_release_pr(
    api: GitHubApi,
    *,
    base_branch: str,
    release_branch: str,
    console: ConsoleProtocol,
) -> Result[PullRequest | None, ReleaseError]:
    """The open release PR from ``release_branch`` into ``base_branch``, if any.

    A failed search is fatal: creating after it could open a duplicate.
    """
    console.print(f"find open PR {release_branch} -> {base_branch}", Style.DIM)
    found = api.find_pull_requests(state="open", base=base_branch, head=release_branch)
    if isinstance(found, Err):
        return Err(
            ReleaseError(
                kind="pr_lookup_failed",
                message=f"failed to search for an open release PR from {release_branch}",
                hint=str(found.error),
            )
        )
    if len(found.value) > 1:
        numbers = ", ".join(f"#{pr.number}" for pr in found.value)
        console.warning(f"several open release PRs ({numbers}); updating the first")
    return Ok(found.value[0] if found.value else None)


def update_release_pr(
    api: GitHubApi,
    number: int,
    text: PrText,
    *,
    console: ConsoleProtocol,
) -> Result[PullRequest, ReleaseError]:
    """Patch title and body in place; head, base and state are left alone."""
    console.print(f"update PR #{number}: {text.title}", Style.DIM)
    updated = api.update_pull_request(number, title=text.title, body=text.body)
    if isinstance(updated, Err):
        return Err(
            ReleaseError(
                kind="pr_update_failed",
                message=f"failed to update release PR #{number}",
                hint=str(updated.error),
            )
        )
    return updated


def _mark(api: GitHubApi, pr: PullRequest, label: str, console: ConsoleProtocol) -> None:
    ensured = api.get_or_create_label(
        label,
        color=MARKER_LABEL_COLOR,
        description=MARKER_LABEL_DESCRIPTION,
    )
    if isinstance(ensured, Err):
        console.warning(f"could not create label {label!r}: {ensured.error}")
        return
    added = api.add_labels(pr.number, [label])
    if isinstance(added, Err):
        console.warning(f"could not label PR #{pr.number} with {label!r}: {added.error}")


def create_release_pr(
    api: GitHubApi,
    *,
    base_branch: str,
    release_branch: str,
    text: PrText,
    marker_label: str,
    console: ConsoleProtocol,
) -> Result[PullRequest, ReleaseError]:
    """Ensure the release branch, then open the release PR.

    The marker label is best-effort; the PR is usable without it.
    """
    branch = ensure_release_branch(
        api,
        branch=release_branch,
        base_branch=base_branch,
        console=console,
    )
    if isinstance(branch, Err):
        return branch

    console.print(f"create PR {release_branch} -> {base_branch}: {text.title}", Style.DIM)
    created = api.create_pull_request(
        title=text.title,
        head=release_branch,
        base=base_branch,
        body=text.body,
    )
    if isinstance(created, Err):
        return Err(
            ReleaseError(
                kind="pr_create_failed",
                message=f"failed to create release PR from {release_branch}",
                hint=str(created.error),
            )
        )

    if marker_label:
        _mark(api, created.value, marker_label, console)
    return created
