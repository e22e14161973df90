"""Unit tests for the per-repository pipeline and the sequential runner."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from repo_migrator.core.cleanup import cleanup_repository_handlers
from repo_migrator.core.pipeline import RepositoryPipeline, run_pipeline
from repo_migrator.core.state import MigrationState
from repo_migrator.exceptions import APIError, StepFailure
from repo_migrator.types import (
    MigrationAction,
    MigrationOutcome,
    PipelineStage,
)
from tests.unit.conftest import (
    FakeGitClient,
    FakeHostingClient,
    make_context,
    make_state,
)

NAME = "cdktn-provider-a"
SOURCE_URL = "https://git.example.test/cdktf/cdktf-provider-a.git"
TARGET_URL = "https://git.example.test/cdktn-io/cdktn-provider-a.git"

LEGACY_WORKFLOW = "jobs:\n  x:\n    if: github.actor == 'team-tf-cdk'\n"


def _pipeline(hosting=None, git=None, sleep=None, **ctx_kwargs):
    state = MigrationState()
    pipeline = RepositoryPipeline(
        make_context(**ctx_kwargs),
        hosting or FakeHostingClient(),
        git or FakeGitClient(),
        state,
        sleep=sleep or MagicMock(),
    )
    return pipeline, state


def _methods(hosting):
    return [c[0] for c in hosting.mutating_calls]


# ---------------------------------------------------------------------------
# Happy paths
# ---------------------------------------------------------------------------


class TestForkPath:
    def test_step_order(self):
        hosting, git = FakeHostingClient(), FakeGitClient()
        pipeline, _ = _pipeline(hosting, git)

        result = pipeline.run(make_state(NAME))

        assert result.outcome is MigrationOutcome.SUCCESS
        assert result.stage is PipelineStage.DONE
        assert result.action is MigrationAction.FORK
        assert hosting.mutating_calls == [
            ("create_repo", "cdktn-io", NAME, "public"),
            ("set_workflow_execution_enabled", "cdktn-io", NAME, False),
            ("set_workflow_execution_enabled", "cdktn-io", NAME, True),
            ("set_workflow_pr_approval_permission", "cdktn-io", NAME, True),
        ]
        assert git.calls == [
            ("mirror_clone", SOURCE_URL),
            ("mirror_push", TARGET_URL),
            ("clone", TARGET_URL, "main"),
        ]

    def test_reference_fixes_are_committed_and_pushed(self):
        git = FakeGitClient(
            checkout_files={
                ".github/workflows/approve.yml": LEGACY_WORKFLOW,
                ".github/workflows/build.yml": "name: build\n",
            }
        )
        pipeline, _ = _pipeline(git=git)

        result = pipeline.run(make_state(NAME))

        assert result.warnings == ()
        assert [c[0] for c in git.calls][-2:] == ["commit", "push"]
        assert git.calls[-1] == ("push", "main")
        commit = git.commits[0]
        assert commit["files"] == [".github/workflows/approve.yml"]
        assert "team-cdk-terrain[bot]" in commit["contents"][".github/workflows/approve.yml"]
        assert commit["identity"].name == "team-cdk-terrain[bot]"
        assert commit["message"].startswith("fix: update team references")

    def test_no_reference_changes_skips_commit(self):
        git = FakeGitClient(checkout_files={".github/workflows/build.yml": "name: b\n"})
        pipeline, _ = _pipeline(git=git)
        pipeline.run(make_state(NAME))
        assert "commit" not in [c[0] for c in git.calls]
        assert "push" not in [c[0] for c in git.calls]

    def test_custom_branch_and_visibility(self):
        hosting = FakeHostingClient()
        git = FakeGitClient(checkout_files={".github/CODEOWNERS": "* @cdktf/tf-cdk-team\n"})
        pipeline, _ = _pipeline(hosting, git, default_branch="trunk", visibility="private")
        pipeline.run(make_state(NAME))
        assert hosting.mutating_calls[0] == ("create_repo", "cdktn-io", NAME, "private")
        assert ("clone", TARGET_URL, "trunk") in git.calls
        assert git.calls[-1] == ("push", "trunk")

    def test_working_directory_is_removed(self):
        git = FakeGitClient()
        pipeline, _ = _pipeline(git=git)
        pipeline.run(make_state(NAME))
        assert git.workdirs
        assert not git.workdirs[0].exists()


class TestCreateFreshPath:
    def test_skips_history_and_references(self):
        hosting, git = FakeHostingClient(), FakeGitClient()
        pipeline, _ = _pipeline(hosting, git)

        result = pipeline.run(make_state(NAME, source_exists=False))

        assert result.success
        assert result.action is MigrationAction.CREATE_FRESH
        assert git.calls == []
        assert _methods(hosting) == [
            "create_repo",
            "set_workflow_execution_enabled",
            "set_workflow_execution_enabled",
            "set_workflow_pr_approval_permission",
        ]


# ---------------------------------------------------------------------------
# Creation polling
# ---------------------------------------------------------------------------


class TestCreationPolling:
    def test_waits_until_visible(self):
        hosting = FakeHostingClient(visible_after={NAME: 2})
        sleep = MagicMock()
        pipeline, _ = _pipeline(hosting, sleep=sleep, creation_poll_interval=2.0)

        assert pipeline.run(make_state(NAME)).success
        assert sleep.call_count == 2
        sleep.assert_called_with(2.0)

    def test_timeout_is_step_failure_and_compensates(self):
        hosting = FakeHostingClient(visible_after={NAME: 100})
        sleep = MagicMock()
        pipeline, _ = _pipeline(hosting, sleep=sleep, creation_poll_attempts=3)

        with pytest.raises(StepFailure, match="timeout") as exc_info:
            pipeline.run(make_state(NAME))

        assert exc_info.value.repository == NAME
        assert exc_info.value.stage == PipelineStage.PENDING.value
        assert sleep.call_count == 2
        assert [c for c in hosting.calls if c[0] == "repo_exists"] == [
            ("repo_exists", "cdktn-io", NAME)
        ] * 3
        assert _methods(hosting) == ["create_repo", "delete_repo"]

    def test_poll_errors_are_retried(self):
        hosting = FakeHostingClient()
        real_exists = hosting.repo_exists
        attempts = []

        def flaky(org, name):
            attempts.append(name)
            if len(attempts) == 1:
                raise APIError("502 Bad Gateway")
            return real_exists(org, name)

        hosting.repo_exists = flaky
        pipeline, _ = _pipeline(hosting)
        assert pipeline.run(make_state(NAME)).success
        assert len(attempts) == 2


# ---------------------------------------------------------------------------
# Structural failures
# ---------------------------------------------------------------------------


class TestStructuralFailures:
    def test_create_failure_does_not_delete(self):
        hosting = FakeHostingClient(fail_on={("create_repo", NAME): APIError("422")})
        pipeline, state = _pipeline(hosting)

        with pytest.raises(StepFailure) as exc_info:
            pipeline.run(make_state(NAME))

        assert isinstance(exc_info.value.__cause__, APIError)
        assert "delete_repo" not in _methods(hosting)
        assert state.progress.current_stage is PipelineStage.FAILED

    def test_disable_actions_failure_deletes_target(self):
        hosting = FakeHostingClient(
            fail_on={("set_workflow_execution_enabled", NAME): APIError("403")}
        )
        pipeline, _ = _pipeline(hosting)

        with pytest.raises(StepFailure) as exc_info:
            pipeline.run(make_state(NAME))

        assert exc_info.value.stage == PipelineStage.REMOTE_CREATED.value
        assert _methods(hosting)[-1] == "delete_repo"
        assert (("cdktn-io", NAME)) not in hosting.repos

    def test_mirror_push_failure_deletes_target_and_workdir(self):
        hosting = FakeHostingClient()
        git = FakeGitClient(fail_on={"mirror_push": APIError("rejected")})
        pipeline, _ = _pipeline(hosting, git)

        with pytest.raises(StepFailure) as exc_info:
            pipeline.run(make_state(NAME))

        assert exc_info.value.stage == PipelineStage.ACTIONS_DISABLED.value
        assert _methods(hosting) == [
            "create_repo",
            "set_workflow_execution_enabled",
            "delete_repo",
        ]
        assert not git.workdirs[0].exists()

    def test_failed_compensation_still_raises_step_failure(self, caplog):
        hosting = FakeHostingClient(
            fail_on={
                ("set_workflow_execution_enabled", NAME): APIError("403"),
                ("delete_repo", NAME): APIError("404"),
            }
        )
        pipeline, _ = _pipeline(hosting)

        with pytest.raises(StepFailure):
            pipeline.run(make_state(NAME))
        assert "gh repo delete cdktn-io/cdktn-provider-a" in caplog.text


# ---------------------------------------------------------------------------
# Partial warnings
# ---------------------------------------------------------------------------


class TestPartialWarnings:
    def test_commit_failure_is_a_warning(self):
        hosting = FakeHostingClient()
        git = FakeGitClient(
            checkout_files={".github/workflows/a.yml": LEGACY_WORKFLOW},
            fail_on={"commit": APIError("hook rejected")},
        )
        pipeline, _ = _pipeline(hosting, git)

        result = pipeline.run(make_state(NAME))

        assert result.success
        assert len(result.warnings) == 1
        assert "Reference rewrite failed" in result.warnings[0]
        assert ("set_workflow_execution_enabled", "cdktn-io", NAME, True) in hosting.calls
        assert "delete_repo" not in _methods(hosting)

    def test_clone_failure_is_a_warning(self):
        git = FakeGitClient(fail_on={"clone": APIError("not found")})
        pipeline, _ = _pipeline(git=git)
        result = pipeline.run(make_state(NAME))
        assert result.success
        assert result.warnings

    def test_missing_default_branch_is_a_warning_without_push(self):
        git = FakeGitClient(
            checkout_files={".github/CODEOWNERS": "* @cdktf/tf-cdk-team\n"},
            fail_on={"clone": APIError("Remote branch main not found in upstream origin")},
        )
        pipeline, state = _pipeline(git=git)
        state.set_stage = MagicMock(wraps=state.set_stage)

        result = pipeline.run(make_state(NAME))

        assert result.success
        assert "Remote branch main not found" in result.warnings[0]
        assert ("clone", TARGET_URL, "main") in git.calls
        assert "push" not in [c[0] for c in git.calls]
        stages = [c.args[1] for c in state.set_stage.call_args_list]
        assert PipelineStage.HISTORY_MIGRATED in stages
        assert PipelineStage.REFERENCES_FIXED not in stages

    def test_pr_approval_failure_is_a_warning(self):
        hosting = FakeHostingClient(
            fail_on={("set_workflow_pr_approval_permission", NAME): APIError("403")}
        )
        pipeline, _ = _pipeline(hosting)

        result = pipeline.run(make_state(NAME, source_exists=False))

        assert result.success
        assert result.stage is PipelineStage.DONE
        assert "PR approval permission not set" in result.warnings[0]


# ---------------------------------------------------------------------------
# run_pipeline
# ---------------------------------------------------------------------------


class TestRunPipeline:
    def _states(self):
        return [
            make_state("cdktn-a"),
            make_state("cdktn-b"),
            make_state("cdktn-c", source_exists=False),
        ]

    def test_processes_all_in_order_with_delay_between(self):
        hosting = FakeHostingClient()
        sleep = MagicMock()
        ctx = make_context(inter_repository_delay=5.0)
        state = MigrationState()

        results = run_pipeline(ctx, self._states(), hosting, FakeGitClient(), state, sleep)

        assert [r.descriptor.target_name for r in results] == ["cdktn-a", "cdktn-b", "cdktn-c"]
        assert all(r.success for r in results)
        creates = [c[2] for c in hosting.calls if c[0] == "create_repo"]
        assert creates == ["cdktn-a", "cdktn-b", "cdktn-c"]
        assert [c.args for c in sleep.call_args_list] == [(5.0,), (5.0,)]

    def test_no_delay_in_dry_run(self):
        sleep = MagicMock()
        ctx = make_context(dry_run=True, inter_repository_delay=5.0)
        run_pipeline(ctx, self._states(), FakeHostingClient(), FakeGitClient(), MigrationState(), sleep)
        sleep.assert_not_called()

    def test_failure_aborts_and_skips_the_rest(self):
        hosting = FakeHostingClient(
            fail_on={("set_workflow_execution_enabled", "cdktn-b"): APIError("403")}
        )
        state = MigrationState()

        with pytest.raises(StepFailure):
            run_pipeline(make_context(), self._states(), hosting, FakeGitClient(), state, MagicMock())

        assert [r.outcome for r in state.results] == [
            MigrationOutcome.SUCCESS,
            MigrationOutcome.FAILED,
            MigrationOutcome.SKIPPED,
        ]
        failed = state.results[1]
        assert failed.stage is PipelineStage.REMOTE_CREATED
        assert "cdktn-b" in failed.error
        assert ("delete_repo", "cdktn-io", "cdktn-b") in hosting.calls
        assert hosting.calls_for("cdktn-c") == []
        # The completed repository is left in place
        assert ("cdktn-io", "cdktn-a") in hosting.repos

    def test_per_repository_log_files(self, tmp_path):
        state = MigrationState()
        ctx = make_context(output_dir=str(tmp_path))
        try:
            run_pipeline(ctx, self._states()[:1], FakeHostingClient(), FakeGitClient(), state, MagicMock())
            assert set(state.repository_handlers) == {"cdktn-a"}
        finally:
            cleanup_repository_handlers(state)

        log_file = tmp_path / "repository_logs" / "cdktn-a_migration.log"
        assert log_file.exists()
        assert "Creating empty repository" in log_file.read_text()
