from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from relpr.core.config import TagStrategy
from relpr.core.result import Err, Ok, Result
from relpr.output.console import ConsoleProtocol, Style
from relpr.platform.http import HttpError
from relpr.services.release.errors import ReleaseError
from relpr.services.release.github import GitHubApi
from relpr.services.release.semver import Version, parse_version


@dataclass(frozen=True, slots=True)
class ResolvedTag:
    """A published tag and the version parsed from it."""

    name: str
    version: Version


def select_latest(names: Iterable[str], prefix: str) -> ResolvedTag | None:
    """Highest version among ``names``; tags that do not parse are skipped.

    ``v1.2.3`` and ``v1.2.3-rc.1`` order equal since suffixes are dropped;
    the plain tag wins such a tie.
    """
    best: ResolvedTag | None = None
    for name in names:
        version = parse_version(name, prefix)
        if version is None:
            continue
        if best is None or version > best.version:
            best = ResolvedTag(name=name, version=version)
        elif version == best.version and name == version.to_tag(prefix):
            best = ResolvedTag(name=name, version=version)
    return best


def _from_tags(api: GitHubApi, prefix: str) -> Result[ResolvedTag | None, HttpError]:
    names = api.list_tags()
    if isinstance(names, Err):
        return names
    return Ok(select_latest(names.value, prefix))


def _from_release(api: GitHubApi, prefix: str) -> Result[ResolvedTag | None, HttpError]:
    name = api.latest_release_tag()
    if isinstance(name, Err):
        return name
    if name.value is None:
        return Ok(None)
    return Ok(select_latest([name.value], prefix))


_STRATEGIES = {
    "tags": _from_tags,
    "release": _from_release,
}


def latest_tag(
    api: GitHubApi,
    *,
    prefix: str,
    strategy: TagStrategy,
    console: ConsoleProtocol,
) -> Result[ResolvedTag | None, ReleaseError]:
    """Most recent published version, or None when nothing is published yet.

    The configured strategy is tried first; on a transport failure the other
    strategy is used. Only when both fail is the lookup an error.
    """
    fallback: TagStrategy = "release" if strategy == "tags" else "tags"

    console.print(f"resolve latest tag ({strategy}, prefix {prefix!r})", Style.DIM)
    primary = _STRATEGIES[strategy](api, prefix)
    if isinstance(primary, Ok):
        return primary

    console.warning(f"tag lookup via {strategy} failed: {primary.error}; trying {fallback}")
    secondary = _STRATEGIES[fallback](api, prefix)
    if isinstance(secondary, Ok):
        return secondary

    return Err(
        ReleaseError(
            kind="tag_lookup_failed",
            message="failed to resolve the latest tag",
            hint=f"{strategy}: {primary.error}; {fallback}: {secondary.error}",
        )
    )
