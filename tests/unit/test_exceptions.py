"""Tests for the custom exception hierarchy."""

import pytest

from repo_migrator.exceptions import (
    APIError,
    ConfigError,
    ConflictError,
    MigratorError,
    PartialWarning,
    StepFailure,
    UsageError,
    ValidationError,
)


@pytest.mark.parametrize(
    "cls",
    [UsageError, ValidationError, ConfigError, ConflictError, APIError, StepFailure, PartialWarning],
)
def test_all_errors_derive_from_migrator_error(cls):
    assert issubclass(cls, MigratorError)


def test_conflict_error_keeps_repositories():
    err = ConflictError("exists", repositories=["a", "b"])
    assert str(err) == "exists"
    assert err.repositories == ["a", "b"]
    assert ConflictError("x").repositories == []


def test_step_failure_keeps_repository_and_stage():
    err = StepFailure("failed", repository="cdktn-a", stage="REMOTE_CREATED")
    assert err.repository == "cdktn-a"
    assert err.stage == "REMOTE_CREATED"


def test_step_failure_can_chain_cause():
    with pytest.raises(StepFailure) as exc_info:
        try:
            raise APIError("403")
        except APIError as e:
            raise StepFailure("failed", repository="cdktn-a") from e
    assert isinstance(exc_info.value.__cause__, APIError)
