"""Tests for per-file batch outcomes."""

import pytest

from neat_folder.domain.result import Failure, Success, partition
from neat_folder.exceptions import FileOperationError


class TestSuccess:
    """Test the Success result type."""

    def test_success_creation(self):
        result = Success(42)
        assert result.is_success() is True
        assert result.is_failure() is False
        assert result.value() == 42

    def test_success_repr(self):
        assert repr(Success("test")) == "Success('test')"

    def test_success_error_raises(self):
        with pytest.raises(ValueError, match="Success has no error"):
            Success(42).error()


class TestFailure:
    """Test the Failure result type."""

    def test_failure_creation(self):
        error = FileOperationError("boom")
        result = Failure(error)
        assert result.is_failure() is True
        assert result.is_success() is False
        assert result.error() is error

    def test_failure_value_raises(self):
        with pytest.raises(ValueError, match="Failure has no value: boom"):
            Failure(FileOperationError("boom")).value()


def test_partition():
    first = FileOperationError("first")
    second = FileOperationError("second")
    results = [Success(1), Failure(first), Success(2), Failure(second)]

    successes, failures = partition(results)

    assert successes == [1, 2]
    assert failures == [first, second]


def test_partition_empty():
    assert partition([]) == ([], [])
