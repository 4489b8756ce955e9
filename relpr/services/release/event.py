"""Inbound webhook event intake.

The runner names the event in ``GITHUB_EVENT_NAME`` and writes the webhook
payload to the file at ``GITHUB_EVENT_PATH``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from relpr.core.result import Err, Ok, Result
from relpr.core.structured import StrDict, as_str_dict, get_str
from relpr.services.release.errors import ReleaseError
from relpr.services.release.model import PullRequest

PULL_REQUEST_EVENTS = frozenset({"pull_request", "pull_request_target"})
LABEL_ACTIONS = frozenset({"labeled", "unlabeled"})


@dataclass(frozen=True, slots=True)
class InboundEvent:
    name: str
    action: str | None = None
    # Commit a push moved the branch to
    after: str | None = None
    pull_request: PullRequest | None = None

    @property
    def is_push(self) -> bool:
        return self.name == "push"

    @property
    def is_pull_request(self) -> bool:
        return self.name in PULL_REQUEST_EVENTS


def parse_event(name: str, payload: object) -> InboundEvent:
    data: StrDict = as_str_dict(payload) or {}
    pr_obj = data.get("pull_request")
    return InboundEvent(
        name=name,
        action=get_str(data, "action"),
        after=get_str(data, "after"),
        pull_request=PullRequest.from_payload(pr_obj) if pr_obj is not None else None,
    )


def load_event(name: str, path: Path | None) -> Result[InboundEvent, ReleaseError]:
    """Read the payload file; a missing file yields an empty payload."""
    if path is None or not path.is_file():
        return Ok(parse_event(name, {}))

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        return Err(
            ReleaseError(
                kind="invalid_event",
                message=f"failed to read event payload: {e}",
                hint=str(path),
            )
        )

    try:
        payload: object = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(
            ReleaseError(
                kind="invalid_event",
                message=f"invalid JSON in event payload: {e}",
                hint=str(path),
            )
        )
    return Ok(parse_event(name, payload))
