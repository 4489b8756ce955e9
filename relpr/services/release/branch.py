from __future__ import annotations

from typing import Literal

from relpr.core.result import Err, Ok, Result
from relpr.output.console import ConsoleProtocol, Style
from relpr.services.release.errors import ReleaseError
from relpr.services.release.github import GitHubApi

BranchState = Literal["existing", "created"]

EMPTY_COMMIT_MESSAGE = "chore(release): prepare release PR (empty commit)"


def _failed(message: str, error: object) -> Err[ReleaseError]:
    return Err(ReleaseError(kind="branch_failed", message=message, hint=str(error)))


def ensure_release_branch(
    api: GitHubApi,
    *,
    branch: str,
    base_branch: str,
    console: ConsoleProtocol,
    message: str = EMPTY_COMMIT_MESSAGE,
) -> Result[BranchState, ReleaseError]:
    """Make sure ``branch`` exists, creating it one empty commit ahead of base.

    The new commit reuses the base tree with the base head as its only
    parent, so the branch carries no content change; GitHub still accepts a
    pull request from it.
    """
    existing = api.get_ref(f"heads/{branch}")
    if isinstance(existing, Err):
        return _failed(f"failed to look up branch {branch}", existing.error)
    if existing.value is not None:
        console.print(f"branch {branch}: exists", Style.DIM)
        return Ok("existing")

    base_sha = api.get_ref(f"heads/{base_branch}")
    if isinstance(base_sha, Err):
        return _failed(f"failed to look up base branch {base_branch}", base_sha.error)
    if base_sha.value is None:
        return Err(
            ReleaseError(
                kind="branch_failed",
                message=f"base branch not found: {base_branch}",
                hint="check the base-branch input",
            )
        )

    tree = api.get_commit_tree(base_sha.value)
    if isinstance(tree, Err):
        return _failed(f"failed to read commit {base_sha.value}", tree.error)

    commit = api.create_commit(message=message, tree=tree.value, parents=[base_sha.value])
    if isinstance(commit, Err):
        return _failed(f"failed to create commit for {branch}", commit.error)

    created = api.create_ref(f"refs/heads/{branch}", commit.value)
    if isinstance(created, Err):
        return _failed(f"failed to create branch {branch}", created.error)

    console.print(f"branch {branch}: created from {base_branch}", Style.DIM)
    return Ok("created")
