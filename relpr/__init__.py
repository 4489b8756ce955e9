"""relpr: keep one release pull request in sync with unreleased changes."""

__version__ = "0.3.0"
