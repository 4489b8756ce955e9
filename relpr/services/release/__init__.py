"""Release pull request reconciliation.

Leaves first: semver and bump (pure), github (REST adapter), tags, notes,
branch, pull_request and template, then reconcile (the event router).
"""

from __future__ import annotations
