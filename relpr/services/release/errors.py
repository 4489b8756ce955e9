from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    "config_invalid",
    "invalid_event",
    "tag_lookup_failed",
    "branch_failed",
    "pr_lookup_failed",
    "pr_create_failed",
    "pr_update_failed",
    "missing_bump_label",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Fatal reconciliation error; the invocation emits no outcome."""

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
