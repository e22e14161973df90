"""Shared test fixtures for the repo_migrator test suite."""

import json

import pytest


@pytest.fixture()
def sample_snapshot():
    """Return a synthesized stack with three repositories and related resources.

    ``cdktn-provider-a`` and ``cdktn-provider-b`` are the archived ones (they
    exist in the source org in most tests); ``cdktn-provider-c`` is new.
    ``cdktn-provider-a-go`` shares a name prefix with ``cdktn-provider-a``
    but is a different repository.
    """
    return {
        "provider": {"github": [{"owner": "cdktn-io"}]},
        "resource": {
            "github_repository": {
                "cdktn-provider-a_repo_1A2B": {"name": "cdktn-provider-a"},
                "cdktn-provider-b_repo_3C4D": {"name": "cdktn-provider-b"},
                "cdktn-provider-c_repo_5E6F": {"name": "cdktn-provider-c"},
                "cdktn-provider-a-go_repo_7A8B": {"name": "cdktn-provider-a-go"},
            },
            "github_issue_label": {
                "cdktn-provider-a_label_0001": {"name": "automerge"},
                "cdktn-provider-a-go_label_0002": {"name": "automerge"},
                "cdktn-provider-b_label_0003": {"name": "automerge"},
            },
            "github_team_repository": {
                "cdktn-provider-a_team_0004": {"permission": "push"},
            },
        },
    }


@pytest.fixture()
def stack_dir(tmp_path, sample_snapshot):
    """Create a stack directory holding ``cdk.tf.json``."""
    directory = tmp_path / "stack"
    directory.mkdir()
    (directory / "cdk.tf.json").write_text(json.dumps(sample_snapshot))
    return directory
