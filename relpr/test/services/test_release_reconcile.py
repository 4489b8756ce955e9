from __future__ import annotations

from relpr.core.config import ActionConfig
from relpr.core.result import Err, Ok
from relpr.output.console import MockConsole
from relpr.platform.http import MockHttpClient
from relpr.services.release.event import InboundEvent
from relpr.services.release.model import NOOP, PullRequest
from relpr.services.release.reconcile import (
    is_release_pr,
    reconcile,
    release_branch_name,
)
from relpr.test.services.fakes import (
    MERGE_SHA,
    NEW_SHA,
    NOTES_URL,
    PULLS_URL,
    commit_prs_url,
    make_context,
    open_prs_url,
    pr_payload,
    set_branch_creation,
    set_marker_label,
    set_notes,
    set_open_prs,
    set_tags,
    set_update,
    url,
)


def _push(after: str = NEW_SHA) -> InboundEvent:
    return InboundEvent(name="push", after=after)


def _labeled(pr: dict[str, object], action: str = "labeled") -> InboundEvent:
    return InboundEvent(
        name="pull_request",
        action=action,
        pull_request=PullRequest.from_payload(pr),
    )


class TestPushWithoutReleasePr:
    def test_creates_release_pr_for_initial_cycle(self) -> None:
        http = MockHttpClient()
        set_tags(http)
        http.set_json("GET", commit_prs_url(NEW_SHA), [])
        set_open_prs(http)
        set_branch_creation(http)
        set_notes(http, "## What's Changed\n* first\n")
        http.set_json("POST", PULLS_URL, pr_payload(1), status=201)
        set_marker_label(http, 1)

        result = reconcile(make_context(http), _push())

        assert isinstance(result, Ok)
        out = result.value
        assert out.state == "pr_changed"
        assert out.pr_number == "1"
        assert out.pr_url == "https://github.com/acme/widget/pull/1"
        assert out.pr_branch == "release/pr"
        assert out.current_tag == ""
        assert out.next_tag == ""
        assert out.bump_level == "unknown"
        assert out.release_notes == "## What's Changed\n* first"

        create = [c for c in http.mutations if c.url == PULLS_URL][0]
        assert create.body is not None
        assert create.body["title"] == "Release for new version"
        assert create.body["head"] == "release/pr"
        assert create.body["base"] == "main"

    def test_notes_use_placeholder_tag_and_previous_tag(self) -> None:
        http = MockHttpClient()
        set_tags(http, "v1.2.3")
        http.set_json("GET", commit_prs_url(NEW_SHA), [])
        set_open_prs(http)
        set_branch_creation(http)
        set_notes(http, "notes")
        http.set_json("POST", PULLS_URL, pr_payload(1), status=201)
        set_marker_label(http, 1)

        result = reconcile(make_context(http), _push())

        assert isinstance(result, Ok)
        assert result.value.current_tag == "v1.2.3"
        notes = [c for c in http.mutations if c.url == NOTES_URL][0]
        assert notes.body == {
            "tag_name": "vnext",
            "target_commitish": "main",
            "previous_tag_name": "v1.2.3",
        }

    def test_notes_failure_does_not_abort(self) -> None:
        http = MockHttpClient()
        set_tags(http, "v1.2.3")
        http.set_json("GET", commit_prs_url(NEW_SHA), [])
        set_open_prs(http)
        set_branch_creation(http)
        http.set_error("POST", NOTES_URL, 500, "notes down")
        http.set_json("POST", PULLS_URL, pr_payload(1), status=201)
        set_marker_label(http, 1)
        console = MockConsole()

        result = reconcile(make_context(http, console=console), _push())

        assert isinstance(result, Ok)
        assert result.value.release_notes == ""
        assert console.has_warning()
        create = [c for c in http.mutations if c.url == PULLS_URL][0]
        assert create.body is not None
        assert "_No release notes available yet._" in str(create.body["body"])

    def test_tag_lookup_failure_is_fatal_and_mutates_nothing(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", commit_prs_url(NEW_SHA), [])
        http.set_error("GET", url("tags", per_page=100), 500, "down")
        http.set_error("GET", url("releases/latest"), 500, "down")

        result = reconcile(make_context(http), _push())

        assert isinstance(result, Err)
        assert result.error.kind == "tag_lookup_failed"
        assert http.mutations == []

    def test_pr_creation_rejected_is_fatal(self) -> None:
        http = MockHttpClient()
        set_tags(http, "v1.2.3")
        http.set_json("GET", commit_prs_url(NEW_SHA), [])
        set_open_prs(http)
        set_branch_creation(http)
        set_notes(http, "notes")
        http.set_error("POST", PULLS_URL, 422, "Validation Failed")

        result = reconcile(make_context(http), _push())

        assert isinstance(result, Err)
        assert result.error.kind == "pr_create_failed"


class TestPushWithOpenReleasePr:
    def test_updates_existing_pr_with_its_labels(self) -> None:
        http = MockHttpClient()
        set_tags(http, "v1.2.3")
        http.set_json("GET", commit_prs_url(NEW_SHA), [pr_payload(40, head="feature/x")])
        pr = pr_payload(7, labels=("bump:minor",))
        set_open_prs(http, pr)
        set_notes(http, "notes")
        set_update(http, pr)

        result = reconcile(make_context(http), _push())

        assert isinstance(result, Ok)
        assert result.value.state == "pr_changed"
        assert result.value.pr_number == "7"
        assert result.value.next_tag == "v1.3.0"
        assert result.value.bump_level == "minor"
        assert [c.url for c in http.mutations] == [NOTES_URL, url("pulls/7")]
        patch = http.mutations[-1]
        assert patch.body is not None
        assert patch.body["title"] == "Release for v1.3.0"

    def test_repeated_runs_send_identical_updates(self) -> None:
        http = MockHttpClient()
        set_tags(http, "v1.2.3")
        http.set_json("GET", commit_prs_url(NEW_SHA), [])
        pr = pr_payload(7, labels=("bump:patch",))
        set_open_prs(http, pr)
        set_notes(http, "notes")
        set_update(http, pr)
        ctx = make_context(http)

        first = reconcile(ctx, _push())
        second = reconcile(ctx, _push())

        assert first == second
        patches = http.calls_for("PATCH")
        assert len(patches) == 2
        assert patches[0].body == patches[1].body
        assert all(c.url == NOTES_URL for c in http.calls_for("POST"))


class TestLabelEvents:
    def test_label_change_recomputes_next_tag(self) -> None:
        http = MockHttpClient()
        set_tags(http, "v1.2.3")
        pr = pr_payload(7, labels=("bump:minor",))
        set_notes(http, "notes")
        set_update(http, pr)

        result = reconcile(make_context(http), _labeled(pr))

        assert isinstance(result, Ok)
        assert result.value.state == "pr_changed"
        assert result.value.next_tag == "v1.3.0"
        assert result.value.bump_level == "minor"
        notes = [c for c in http.mutations if c.url == NOTES_URL][0]
        assert notes.body is not None
        assert notes.body["tag_name"] == "v1.3.0"

    def test_unlabeled_back_to_unknown(self) -> None:
        http = MockHttpClient()
        set_tags(http, "v1.2.3")
        pr = pr_payload(7)
        set_notes(http, "notes")
        set_update(http, pr)

        result = reconcile(make_context(http), _labeled(pr, action="unlabeled"))

        assert isinstance(result, Ok)
        assert result.value.next_tag == ""
        assert result.value.bump_level == "unknown"
        patch = http.calls_for("PATCH")[0]
        assert patch.body is not None
        assert patch.body["title"] == "Release for new version"

    def test_label_on_other_pr_is_noop(self) -> None:
        http = MockHttpClient()
        pr = pr_payload(40, head="feature/x", labels=("bump:major",))

        result = reconcile(make_context(http), _labeled(pr))

        assert result == Ok(NOOP)
        assert http.calls == []

    def test_other_actions_are_noop(self) -> None:
        http = MockHttpClient()

        result = reconcile(make_context(http), _labeled(pr_payload(7), action="opened"))

        assert result == Ok(NOOP)
        assert http.calls == []

    def test_missing_pull_request_is_noop(self) -> None:
        http = MockHttpClient()
        event = InboundEvent(name="pull_request", action="labeled")

        assert reconcile(make_context(http), event) == Ok(NOOP)

    def test_update_rejected_is_fatal(self) -> None:
        http = MockHttpClient()
        set_tags(http, "v1.2.3")
        set_notes(http, "notes")
        http.set_error("PATCH", url("pulls/7"), 403, "forbidden")

        result = reconcile(make_context(http), _labeled(pr_payload(7)))

        assert isinstance(result, Err)
        assert result.error.kind == "pr_update_failed"


class TestReleasePrMerge:
    def test_merge_reports_release_required_without_mutation(self) -> None:
        http = MockHttpClient()
        set_tags(http, "v1.2.3")
        merged = pr_payload(7, labels=("bump:patch",), state="closed", merged=True)
        http.set_json("GET", commit_prs_url(MERGE_SHA), [merged])

        result = reconcile(make_context(http), _push(MERGE_SHA))

        assert isinstance(result, Ok)
        out = result.value
        assert out.state == "release_required"
        assert out.current_tag == "v1.2.3"
        assert out.next_tag == "v1.2.4"
        assert out.bump_level == "patch"
        assert out.pr_number == ""
        assert out.release_notes == ""
        assert http.mutations == []

    def test_merge_without_bump_label_fails(self) -> None:
        http = MockHttpClient()
        set_tags(http, "v1.2.3")
        merged = pr_payload(7, state="closed", merged=True)
        http.set_json("GET", commit_prs_url(MERGE_SHA), [merged])

        result = reconcile(make_context(http), _push(MERGE_SHA))

        assert isinstance(result, Err)
        assert result.error.kind == "missing_bump_label"
        assert "#7" in result.error.message
        assert http.mutations == []

    def test_merge_recognized_by_marker_label(self) -> None:
        http = MockHttpClient()
        set_tags(http, "v0.9.0")
        merged = pr_payload(
            7, head="renamed", labels=("release-pr", "bump:major"), state="closed", merged=True
        )
        http.set_json("GET", commit_prs_url(MERGE_SHA), [merged])

        result = reconcile(make_context(http), _push(MERGE_SHA))

        assert isinstance(result, Ok)
        assert result.value.next_tag == "v1.0.0"

    def test_commit_lookup_failure_falls_through_to_convergence(self) -> None:
        http = MockHttpClient()
        set_tags(http, "v1.2.3")
        http.set_error("GET", commit_prs_url(NEW_SHA), 403, "forbidden")
        pr = pr_payload(7)
        set_open_prs(http, pr)
        set_notes(http, "notes")
        set_update(http, pr)
        console = MockConsole()

        result = reconcile(make_context(http, console=console), _push())

        assert isinstance(result, Ok)
        assert result.value.state == "pr_changed"
        assert console.has_warning()


class TestRouting:
    def test_unhandled_event_is_noop(self) -> None:
        http = MockHttpClient()

        assert reconcile(make_context(http), InboundEvent(name="workflow_dispatch")) == Ok(NOOP)
        assert http.calls == []

    def test_pull_request_target_is_routed_like_pull_request(self) -> None:
        http = MockHttpClient()
        set_tags(http, "v1.2.3")
        pr = pr_payload(7, labels=("bump:major",))
        set_notes(http, "notes")
        set_update(http, pr)
        event = InboundEvent(
            name="pull_request_target",
            action="labeled",
            pull_request=PullRequest.from_payload(pr),
        )

        result = reconcile(make_context(http), event)

        assert isinstance(result, Ok)
        assert result.value.next_tag == "v2.0.0"


class TestPerTagBranches:
    def test_branch_name_follows_current_tag(self) -> None:
        config = ActionConfig(branch_mode="per-tag")

        assert release_branch_name(config, "v1.2.3") == "release/pr-v1.2.3"
        assert release_branch_name(config, "") == "release/pr-initial"
        assert release_branch_name(ActionConfig(), "v1.2.3") == "release/pr"

    def test_push_creates_branch_for_current_tag(self) -> None:
        http = MockHttpClient()
        set_tags(http, "v1.2.3")
        http.set_json("GET", commit_prs_url(NEW_SHA), [])
        branch = "release/pr-v1.2.3"
        http.set_json("GET", open_prs_url(branch), [])
        set_branch_creation(http, branch)
        set_notes(http, "notes")
        http.set_json("POST", PULLS_URL, pr_payload(3, head=branch), status=201)
        set_marker_label(http, 3)

        result = reconcile(make_context(http, config=ActionConfig(branch_mode="per-tag")), _push())

        assert isinstance(result, Ok)
        assert result.value.pr_branch == branch
        ref = [c for c in http.mutations if c.url == url("git/refs")][0]
        assert ref.body is not None
        assert ref.body["ref"] == f"refs/heads/{branch}"

    def test_release_pr_detection(self) -> None:
        config = ActionConfig(branch_mode="per-tag")
        pr = PullRequest.from_payload(pr_payload(1, head="release/pr-v1.0.0"))
        assert pr is not None

        assert is_release_pr(config, pr)
        assert not is_release_pr(ActionConfig(marker_label=""), pr)
