"""Release PR title and body.

Pure functions of the outcome fields; the body is rebuilt from scratch on
every run so repeated runs against the same state produce identical text.
"""

from __future__ import annotations

from dataclasses import dataclass

from relpr.core.config import BumpLabels, Repository

UNKNOWN_TITLE = "Release for new version"
EMPTY_NOTES = "_No release notes available yet._"


@dataclass(frozen=True, slots=True)
class PrText:
    title: str
    body: str


@dataclass(frozen=True, slots=True)
class PrTextInput:
    repository: Repository
    server_url: str
    base_branch: str
    labels: BumpLabels
    current_tag: str
    next_tag: str
    notes: str


def render_title(next_tag: str) -> str:
    if next_tag:
        return f"Release for {next_tag}"
    return UNKNOWN_TITLE


def compare_url(server_url: str, repository: Repository, current_tag: str, base_branch: str) -> str:
    return f"{server_url}/{repository.slug}/compare/{current_tag}...{base_branch}"


def render_body(data: PrTextInput) -> str:
    labels = ", ".join(data.labels.names())
    lines = [
        "Release prepared by relpr",
        "",
        f"- Current Tag: {data.current_tag or '(none)'}",
        f"- Next Tag: {data.next_tag or f'(TBD: add one of {labels})'}",
        f"- Target: {data.base_branch}",
        "",
        "---",
        "",
        data.notes.strip() or EMPTY_NOTES,
    ]
    if data.current_tag:
        url = compare_url(data.server_url, data.repository, data.current_tag, data.base_branch)
        lines.append("")
        lines.append(f"Full Changelog: {url}")
    return "\n".join(lines)


def render_pr_text(data: PrTextInput) -> PrText:
    return PrText(title=render_title(data.next_tag), body=render_body(data))
