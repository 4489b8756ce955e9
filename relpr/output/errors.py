"""Error presentation utilities.

Centralized release error formatting and exit code mapping.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from relpr.core.errors import ErrorCode
from relpr.output.console import Style
from relpr.services.release.errors import ReleaseError

if TYPE_CHECKING:
    from relpr.output.console import ConsoleProtocol

__all__ = ["print_release_error", "release_error_exit_code"]


def print_release_error(error: ReleaseError, console: ConsoleProtocol) -> None:
    console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def release_error_exit_code(error: ReleaseError) -> int:
    match error.kind:
        case "config_invalid" | "invalid_event":
            return int(ErrorCode.USER_ERROR)
        case "missing_bump_label":
            return int(ErrorCode.RELEASE_ERROR)
        case "tag_lookup_failed" | "branch_failed" | "pr_lookup_failed":
            return int(ErrorCode.NETWORK_ERROR)
        case "pr_create_failed" | "pr_update_failed":
            return int(ErrorCode.NETWORK_ERROR)
    return int(ErrorCode.USER_ERROR)
