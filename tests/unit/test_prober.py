"""Unit tests for state probing and conflict detection."""

from __future__ import annotations

import pytest

from repo_migrator.core.config import MigrationConfig
from repo_migrator.core.prober import (
    ensure_no_conflicts,
    probe_repositories,
    probe_repository,
)
from repo_migrator.exceptions import APIError, ConflictError
from repo_migrator.types import MigrationAction
from tests.unit.conftest import FakeHostingClient, make_descriptor, make_state


class TestProbeRepository:
    def test_source_exists_means_fork(self):
        hosting = FakeHostingClient(existing={("cdktf", "cdktf-provider-a")})
        state = probe_repository(make_descriptor(), hosting, MigrationConfig())
        assert state.action is MigrationAction.FORK
        assert state.source_exists is True
        assert state.target_exists is False

    def test_missing_source_means_create_fresh(self):
        state = probe_repository(make_descriptor(), FakeHostingClient(), MigrationConfig())
        assert state.action is MigrationAction.CREATE_FRESH

    def test_queries_source_name_and_target_name(self):
        hosting = FakeHostingClient()
        probe_repository(make_descriptor(), hosting, MigrationConfig())
        assert hosting.calls == [
            ("repo_exists", "cdktf", "cdktf-provider-a"),
            ("repo_exists", "cdktn-io", "cdktn-provider-a"),
        ]

    def test_target_exists_is_recorded(self):
        hosting = FakeHostingClient(existing={("cdktn-io", "cdktn-provider-a")})
        state = probe_repository(make_descriptor(), hosting, MigrationConfig())
        assert state.target_exists is True

    def test_api_errors_propagate(self):
        hosting = FakeHostingClient(
            fail_on={("repo_exists", "cdktf-provider-a"): APIError("403 Forbidden")}
        )
        with pytest.raises(APIError):
            probe_repository(make_descriptor(), hosting, MigrationConfig())


class TestProbeRepositories:
    def test_probes_in_order_with_reads_only(self):
        hosting = FakeHostingClient(existing={("cdktf", "cdktf-b")})
        descriptors = [make_descriptor("cdktn-a"), make_descriptor("cdktn-b")]
        states = probe_repositories(descriptors, hosting, MigrationConfig())
        assert [s.descriptor.target_name for s in states] == ["cdktn-a", "cdktn-b"]
        assert [s.action for s in states] == [
            MigrationAction.CREATE_FRESH,
            MigrationAction.FORK,
        ]
        assert hosting.mutating_calls == []


class TestEnsureNoConflicts:
    def test_no_conflicts_passes(self):
        ensure_no_conflicts([make_state("cdktn-a"), make_state("cdktn-b")], "cdktn-io")

    def test_lists_every_conflict_with_remediation(self):
        states = [
            make_state("cdktn-a", target_exists=True),
            make_state("cdktn-b"),
            make_state("cdktn-c", source_exists=False, target_exists=True),
        ]
        with pytest.raises(ConflictError) as exc_info:
            ensure_no_conflicts(states, "cdktn-io")

        assert exc_info.value.repositories == ["cdktn-a", "cdktn-c"]
        message = str(exc_info.value)
        assert "gh repo delete cdktn-io/cdktn-a" in message
        assert "gh repo delete cdktn-io/cdktn-c" in message
        assert "cdktn-b" not in message
