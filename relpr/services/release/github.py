"""Typed wrappers over the GitHub REST endpoints the reconciler uses.

Every method returns ``Result[..., HttpError]``; whether a failure is fatal
or best-effort is decided by the caller. GET requests are retried on
transient failures. POST/PATCH requests are sent exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass
from time import sleep
from urllib.parse import quote, urlencode

from relpr.core.config import Repository
from relpr.core.result import Err, Ok, Result
from relpr.core.structured import as_obj_list, as_str_dict, get_str, get_table
from relpr.platform.http import HttpClient, HttpError, JsonResponse
from relpr.services.release.model import PullRequest
from relpr.services.release.timeouts import (
    GH_PAGE_SIZE,
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
)

# Stop following ``Link: next`` after this many pages; hitting it is an error.
_MAX_PAGES = 1000


@dataclass(frozen=True, slots=True)
class NotesRequest:
    tag_name: str
    target: str
    previous_tag: str | None = None
    config_path: str | None = None


def _unexpected(url: str, what: str) -> Err[HttpError]:
    return Err(HttpError(url=url, status=0, message=f"unexpected {what} payload"))


class GitHubApi:
    """GitHub REST adapter bound to one repository."""

    def __init__(
        self,
        http: HttpClient,
        repository: Repository,
        *,
        api_url: str = "https://api.github.com",
        retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
    ) -> None:
        self.http = http
        self.repository = repository
        self.api_url = api_url.rstrip("/")
        self.retry_attempts = max(1, retry_attempts)

    def _url(self, path: str, **query: str | int) -> str:
        url = f"{self.api_url}/repos/{self.repository.slug}/{path}"
        if query:
            url += "?" + urlencode(query)
        return url

    def _get(self, url: str) -> Result[JsonResponse, HttpError]:
        for attempt in range(self.retry_attempts):
            result = self.http.get_json(url)
            if isinstance(result, Ok):
                return result
            if attempt < self.retry_attempts - 1 and result.error.is_transient:
                sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))
                continue
            return result
        return Err(HttpError(url=url, status=0, message="retries exhausted"))

    def _get_all(self, url: str) -> Result[list[object], HttpError]:
        items: list[object] = []
        next_url: str | None = url
        pages = 0
        while next_url is not None:
            if pages >= _MAX_PAGES:
                message = f"pagination limit reached ({_MAX_PAGES} pages)"
                return Err(HttpError(url=url, status=0, message=message))
            page = self._get(next_url)
            if isinstance(page, Err):
                return page
            raw = as_obj_list(page.value.data)
            if raw is None:
                return _unexpected(next_url, "list")
            items.extend(raw)
            next_url = page.value.next_url
            pages += 1
        return Ok(items)

    def _pull_requests(self, url: str, raw: list[object]) -> Result[list[PullRequest], HttpError]:
        out: list[PullRequest] = []
        for item in raw:
            pr = PullRequest.from_payload(item)
            if pr is None:
                return _unexpected(url, "pull request")
            out.append(pr)
        return Ok(out)

    # -- tags and releases -------------------------------------------------

    def list_tags(self) -> Result[list[str], HttpError]:
        url = self._url("tags", per_page=GH_PAGE_SIZE)
        raw = self._get_all(url)
        if isinstance(raw, Err):
            return raw
        names: list[str] = []
        for item in raw.value:
            d = as_str_dict(item)
            name = get_str(d, "name") if d is not None else None
            if name is not None:
                names.append(name)
        return Ok(names)

    def latest_release_tag(self) -> Result[str | None, HttpError]:
        """Tag name of the latest published release; None when there is none."""
        url = self._url("releases/latest")
        result = self._get(url)
        if isinstance(result, Err):
            if result.error.is_not_found:
                return Ok(None)
            return result
        data = as_str_dict(result.value.data)
        if data is None:
            return _unexpected(url, "release")
        return Ok(get_str(data, "tag_name"))

    def generate_notes(self, request: NotesRequest) -> Result[str, HttpError]:
        url = self._url("releases/generate-notes")
        body: dict[str, object] = {
            "tag_name": request.tag_name,
            "target_commitish": request.target,
        }
        if request.previous_tag:
            body["previous_tag_name"] = request.previous_tag
        if request.config_path:
            body["configuration_file_path"] = request.config_path
        result = self.http.post_json(url, body)
        if isinstance(result, Err):
            return result
        data = as_str_dict(result.value.data)
        if data is None:
            return _unexpected(url, "release notes")
        body_text = data.get("body")
        return Ok(body_text if isinstance(body_text, str) else "")

    # -- pull requests -----------------------------------------------------

    def find_pull_requests(
        self,
        *,
        state: str,
        base: str,
        head: str,
    ) -> Result[list[PullRequest], HttpError]:
        """List pull requests; ``head`` is a branch name in this repository."""
        url = self._url(
            "pulls",
            state=state,
            base=base,
            head=f"{self.repository.owner}:{head}",
            per_page=GH_PAGE_SIZE,
        )
        raw = self._get_all(url)
        if isinstance(raw, Err):
            return raw
        return self._pull_requests(url, raw.value)

    def list_pull_requests_for_commit(self, sha: str) -> Result[list[PullRequest], HttpError]:
        url = self._url(f"commits/{quote(sha, safe='')}/pulls")
        raw = self._get_all(url)
        if isinstance(raw, Err):
            return raw
        return self._pull_requests(url, raw.value)

    def create_pull_request(
        self,
        *,
        title: str,
        head: str,
        base: str,
        body: str,
    ) -> Result[PullRequest, HttpError]:
        url = self._url("pulls")
        result = self.http.post_json(
            url,
            {"title": title, "head": head, "base": base, "body": body, "draft": False},
        )
        if isinstance(result, Err):
            return result
        pr = PullRequest.from_payload(result.value.data)
        if pr is None:
            return _unexpected(url, "pull request")
        return Ok(pr)

    def update_pull_request(
        self,
        number: int,
        *,
        title: str,
        body: str,
    ) -> Result[PullRequest, HttpError]:
        url = self._url(f"pulls/{number}")
        result = self.http.patch_json(url, {"title": title, "body": body})
        if isinstance(result, Err):
            return result
        pr = PullRequest.from_payload(result.value.data)
        if pr is None:
            return _unexpected(url, "pull request")
        return Ok(pr)

    # -- git data ----------------------------------------------------------

    def get_ref(self, ref: str) -> Result[str | None, HttpError]:
        """SHA the ref points at (``ref`` like ``heads/main``); None if missing."""
        url = self._url(f"git/ref/{quote(ref, safe='/')}")
        result = self._get(url)
        if isinstance(result, Err):
            if result.error.is_not_found:
                return Ok(None)
            return result
        data = as_str_dict(result.value.data)
        obj = get_table(data, "object") if data is not None else None
        sha = get_str(obj, "sha") if obj is not None else None
        if sha is None:
            return _unexpected(url, "ref")
        return Ok(sha)

    def get_commit_tree(self, sha: str) -> Result[str, HttpError]:
        url = self._url(f"git/commits/{quote(sha, safe='')}")
        result = self._get(url)
        if isinstance(result, Err):
            return result
        data = as_str_dict(result.value.data)
        tree = get_table(data, "tree") if data is not None else None
        tree_sha = get_str(tree, "sha") if tree is not None else None
        if tree_sha is None:
            return _unexpected(url, "commit")
        return Ok(tree_sha)

    def create_commit(
        self,
        *,
        message: str,
        tree: str,
        parents: list[str],
    ) -> Result[str, HttpError]:
        url = self._url("git/commits")
        result = self.http.post_json(
            url,
            {"message": message, "tree": tree, "parents": list(parents)},
        )
        if isinstance(result, Err):
            return result
        data = as_str_dict(result.value.data)
        sha = get_str(data, "sha") if data is not None else None
        if sha is None:
            return _unexpected(url, "commit")
        return Ok(sha)

    def create_ref(self, ref: str, sha: str) -> Result[None, HttpError]:
        """Create ``ref`` (full name, ``refs/heads/...``) at ``sha``."""
        url = self._url("git/refs")
        result = self.http.post_json(url, {"ref": ref, "sha": sha})
        if isinstance(result, Err):
            return result
        return Ok(None)

    # -- labels ------------------------------------------------------------

    def get_or_create_label(
        self,
        name: str,
        *,
        color: str = "ededed",
        description: str = "",
    ) -> Result[None, HttpError]:
        url = self._url(f"labels/{quote(name, safe='')}")
        found = self._get(url)
        if isinstance(found, Ok):
            return Ok(None)
        if not found.error.is_not_found:
            return found
        created = self.http.post_json(
            self._url("labels"),
            {"name": name, "color": color, "description": description},
        )
        if isinstance(created, Err):
            return created
        return Ok(None)

    def add_labels(self, number: int, names: list[str]) -> Result[None, HttpError]:
        url = self._url(f"issues/{number}/labels")
        result = self.http.post_json(url, {"labels": list(names)})
        if isinstance(result, Err):
            return result
        return Ok(None)
