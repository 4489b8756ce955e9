from __future__ import annotations

from relpr.core.result import Err, Ok
from relpr.output.console import MockConsole
from relpr.platform.http import MockHttpClient
from relpr.services.release.pull_request import (
    create_release_pr,
    find_open_release_pr,
    update_release_pr,
)
from relpr.services.release.template import PrText
from relpr.test.services.fakes import (
    PULLS_URL,
    make_api,
    open_prs_url,
    pr_payload,
    set_branch_creation,
    set_marker_label,
    set_open_prs,
    set_update,
    url,
)

TEXT = PrText(title="Release for v1.3.0", body="body")


def test_find_open_release_pr_returns_first() -> None:
    http = MockHttpClient()
    set_open_prs(http, pr_payload(7), pr_payload(9))
    console = MockConsole()

    result = find_open_release_pr(
        make_api(http), base_branch="main", release_branch="release/pr", console=console
    )

    assert isinstance(result, Ok)
    assert result.value is not None
    assert result.value.number == 7
    assert console.has_warning()


def test_find_open_release_pr_none() -> None:
    http = MockHttpClient()
    set_open_prs(http)

    result = find_open_release_pr(
        make_api(http), base_branch="main", release_branch="release/pr", console=MockConsole()
    )

    assert result == Ok(None)


def test_find_failure_is_fatal() -> None:
    http = MockHttpClient()
    http.set_error("GET", open_prs_url(), 500, "boom")

    result = find_open_release_pr(
        make_api(http), base_branch="main", release_branch="release/pr", console=MockConsole()
    )

    assert isinstance(result, Err)
    assert result.error.kind == "pr_lookup_failed"


def test_update_only_touches_title_and_body() -> None:
    http = MockHttpClient()
    set_update(http, pr_payload(7))

    result = update_release_pr(make_api(http), 7, TEXT, console=MockConsole())

    assert isinstance(result, Ok)
    assert http.mutations[0].body == {"title": TEXT.title, "body": TEXT.body}


def test_create_ensures_branch_then_opens_and_marks() -> None:
    http = MockHttpClient()
    set_branch_creation(http)
    http.set_json("POST", PULLS_URL, pr_payload(12), status=201)
    set_marker_label(http, 12)

    result = create_release_pr(
        make_api(http),
        base_branch="main",
        release_branch="release/pr",
        text=TEXT,
        marker_label="release-pr",
        console=MockConsole(),
    )

    assert isinstance(result, Ok)
    assert result.value.number == 12
    urls = [c.url for c in http.mutations]
    assert urls == [url("git/commits"), url("git/refs"), PULLS_URL, url("issues/12/labels")]
    assert http.mutations[2].body == {
        "title": TEXT.title,
        "head": "release/pr",
        "base": "main",
        "body": TEXT.body,
        "draft": False,
    }


def test_create_marker_label_failure_is_warning() -> None:
    http = MockHttpClient()
    http.set_json("GET", url("git/ref/heads/release/pr"), {"object": {"sha": "a" * 40}})
    http.set_json("POST", PULLS_URL, pr_payload(12), status=201)
    http.set_error("GET", url("labels/release-pr"), 403, "forbidden")
    console = MockConsole()

    result = create_release_pr(
        make_api(http),
        base_branch="main",
        release_branch="release/pr",
        text=TEXT,
        marker_label="release-pr",
        console=console,
    )

    assert isinstance(result, Ok)
    assert console.has_warning()


def test_create_without_marker_label_skips_labels() -> None:
    http = MockHttpClient()
    http.set_json("GET", url("git/ref/heads/release/pr"), {"object": {"sha": "a" * 40}})
    http.set_json("POST", PULLS_URL, pr_payload(12), status=201)

    result = create_release_pr(
        make_api(http),
        base_branch="main",
        release_branch="release/pr",
        text=TEXT,
        marker_label="",
        console=MockConsole(),
    )

    assert isinstance(result, Ok)
    assert [c.url for c in http.mutations] == [PULLS_URL]


def test_create_rejected_is_fatal() -> None:
    http = MockHttpClient()
    http.set_json("GET", url("git/ref/heads/release/pr"), {"object": {"sha": "a" * 40}})
    http.set_error("POST", PULLS_URL, 422, "A pull request already exists")

    result = create_release_pr(
        make_api(http),
        base_branch="main",
        release_branch="release/pr",
        text=TEXT,
        marker_label="release-pr",
        console=MockConsole(),
    )

    assert isinstance(result, Err)
    assert result.error.kind == "pr_create_failed"
