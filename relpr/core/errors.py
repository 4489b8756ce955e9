"""Exit codes for the relpr CLI.

A nonzero code always means the invocation produced no outcome. The values
are stable so workflows can branch on them.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes.

    - 0: Success (an outcome was emitted, including ``noop``)
    - 1: User error (bad inputs, malformed repository, unreadable event)
    - 2: Release error (release PR merged without a bump label)
    - 4: Network error (platform call failed or was rejected)
    - 5: I/O error (outputs file could not be written)
    """

    OK = 0
    USER_ERROR = 1
    RELEASE_ERROR = 2
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")
