from __future__ import annotations

from collections.abc import Iterable

from relpr.core.config import BumpLabels
from relpr.services.release.model import BumpLevel


def classify_bump(label_names: Iterable[str], labels: BumpLabels) -> BumpLevel:
    """Map attached labels to a bump level.

    Priority is fixed: major, then minor, then patch. Several bump labels at
    once resolve to the highest one rather than failing.
    """
    names = frozenset(label_names)
    if labels.major in names:
        return "major"
    if labels.minor in names:
        return "minor"
    if labels.patch in names:
        return "patch"
    return "unknown"
