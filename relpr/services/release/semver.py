from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

from relpr.services.release.model import BumpLevel


# Pre-release/build metadata is accepted but not kept.
_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)(?:[-+].*)?$")


@dataclass(frozen=True, slots=True, order=True)
class Version:
    major: int
    minor: int
    patch: int

    def to_tag(self, prefix: str = "v") -> str:
        return f"{prefix}{self.major}.{self.minor}.{self.patch}"

    def bump(self, level: BumpLevel) -> Version:
        match level:
            case "major":
                return Version(self.major + 1, 0, 0)
            case "minor":
                return Version(self.major, self.minor + 1, 0)
            case "patch":
                return Version(self.major, self.minor, self.patch + 1)
            case _:
                raise ValueError(f"cannot bump with level: {level}")


ZERO = Version(0, 0, 0)


def parse_version(text: str, prefix: str = "v") -> Version | None:
    """Parse ``{prefix}X.Y.Z[-pre|+build]``; None when it does not match.

    A non-empty prefix is required: ``parse_version("1.2.3", "v")`` is None.
    """
    if prefix:
        if not text.startswith(prefix):
            return None
        text = text[len(prefix) :]
    m = _VERSION_RE.match(text)
    if m is None:
        return None
    return Version(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def compare_versions(a: Version, b: Version) -> Literal[-1, 0, 1]:
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def increment_version(base: Version | None, level: BumpLevel) -> Version:
    """Bump ``base`` (``0.0.0`` when there is no release yet).

    Raises:
        ValueError: ``level`` is ``unknown``; callers branch on it first.
    """
    return (base or ZERO).bump(level)


def next_tag(current: Version | None, level: BumpLevel, prefix: str) -> str:
    """Next tag name, or "" while the bump level is unknown."""
    if level == "unknown":
        return ""
    return increment_version(current, level).to_tag(prefix)
