from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from relpr.core.structured import as_str_dict, get_bool, get_int, get_list, get_str, get_table


BumpLevel = Literal["major", "minor", "patch", "unknown"]
OutcomeState = Literal["noop", "pr_changed", "release_required"]


def label_names(raw: list[object] | None) -> frozenset[str]:
    """Label names from a payload list of ``{"name": ...}`` objects or strings."""
    names: set[str] = set()
    for item in raw or []:
        if isinstance(item, str):
            name: str | None = item.strip() or None
        else:
            d = as_str_dict(item)
            name = get_str(d, "name") if d is not None else None
        if name is not None:
            names.add(name)
    return frozenset(names)


@dataclass(frozen=True, slots=True)
class PullRequest:
    """The fields of a pull request the reconciler looks at."""

    number: int
    head_ref: str
    labels: frozenset[str]
    html_url: str
    state: str = "open"
    merged: bool = False

    @classmethod
    def from_payload(cls, obj: object) -> PullRequest | None:
        """Parse a webhook or REST pull request object; None if malformed."""
        data = as_str_dict(obj)
        if data is None:
            return None
        number = get_int(data, "number")
        if number is None:
            return None
        head = get_table(data, "head") or {}
        return cls(
            number=number,
            head_ref=get_str(head, "ref") or "",
            labels=label_names(get_list(data, "labels")),
            html_url=get_str(data, "html_url") or "",
            state=get_str(data, "state") or "open",
            merged=bool(get_bool(data, "merged")) or get_str(data, "merged_at") is not None,
        )


@dataclass(frozen=True, slots=True)
class ReconciliationOutcome:
    """The single observable result of one invocation.

    String fields are empty when not applicable; ``next_tag`` is empty
    whenever ``bump_level`` is ``unknown``.
    """

    state: OutcomeState
    pr_number: str = ""
    pr_url: str = ""
    pr_branch: str = ""
    current_tag: str = ""
    next_tag: str = ""
    bump_level: BumpLevel = "unknown"
    release_notes: str = ""


NOOP = ReconciliationOutcome(state="noop")
