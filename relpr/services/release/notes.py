from __future__ import annotations

from relpr.core.result import Err
from relpr.output.console import ConsoleProtocol, Style
from relpr.services.release.github import GitHubApi, NotesRequest


def placeholder_tag(prefix: str) -> str:
    """Tag name used for notes while the next version is undetermined."""
    return f"{prefix}next"


def fetch_release_notes(
    api: GitHubApi,
    request: NotesRequest,
    *,
    console: ConsoleProtocol,
) -> str:
    """Generated notes for ``request``; "" when the platform call fails.

    Notes only enrich the PR body, so a failure here never aborts a run.
    """
    console.print(f"generate notes for {request.tag_name} on {request.target}", Style.DIM)
    result = api.generate_notes(request)
    if isinstance(result, Err):
        console.warning(f"release notes unavailable: {result.error}")
        return ""
    return result.value.strip()
