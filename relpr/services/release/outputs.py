from __future__ import annotations

import uuid
from dataclasses import asdict
from pathlib import Path

from relpr.core.result import Err, Ok, Result
from relpr.services.release.model import ReconciliationOutcome

OUTPUT_KEYS = (
    "state",
    "pr_number",
    "pr_url",
    "pr_branch",
    "current_tag",
    "next_tag",
    "bump_level",
    "release_notes",
)


def outcome_outputs(outcome: ReconciliationOutcome) -> dict[str, str]:
    values = asdict(outcome)
    return {key: str(values[key]) for key in OUTPUT_KEYS}


def format_outputs(outputs: dict[str, str], *, delimiter: str | None = None) -> str:
    """Render ``$GITHUB_OUTPUT`` lines; multiline values use ``key<<DELIM``."""
    lines: list[str] = []
    for key, value in outputs.items():
        if "\n" not in value and "\r" not in value:
            lines.append(f"{key}={value}")
            continue
        delim = delimiter or f"relpr_{uuid.uuid4().hex}"
        if delim in value:
            raise ValueError(f"output delimiter occurs in value of {key}")
        lines.append(f"{key}<<{delim}")
        lines.append(value)
        lines.append(delim)
    return "\n".join(lines) + "\n"


def write_github_outputs(path: Path, outputs: dict[str, str]) -> Result[None, str]:
    """Append outputs to the runner's output file."""
    try:
        with path.open("a", encoding="utf-8") as f:
            f.write(format_outputs(outputs))
    except OSError as e:
        return Err(f"failed to write outputs to {path}: {e}")
    return Ok(None)
