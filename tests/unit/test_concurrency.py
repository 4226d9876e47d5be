"""
Unit tests for append error classification.
"""

from uuid import uuid4

import pytest

from eventclient.concurrency import classify_append_error, concurrency_guard, is_version_conflict
from eventclient.exceptions import BackendError, ConcurrencyConflictError


class TestClassifyAppendError:
    def test_conflict_becomes_concurrency_error(self):
        aggregate_id = uuid4()
        error = BackendError("stale", status_code=409)

        classified = classify_append_error(
            error, aggregate_type="order", aggregate_id=aggregate_id, expected_version=3
        )

        assert isinstance(classified, ConcurrencyConflictError)
        assert classified.aggregate_id == aggregate_id
        assert classified.expected_version == 3

    @pytest.mark.parametrize(
        "error",
        [
            BackendError("boom", status_code=500),
            BackendError("no status"),
            RuntimeError("not a backend error"),
        ],
    )
    def test_other_errors_are_returned_unchanged(self, error):
        classified = classify_append_error(
            error, aggregate_type="order", aggregate_id=uuid4(), expected_version=1
        )

        assert classified is error

    def test_is_version_conflict(self):
        assert is_version_conflict(BackendError("x", status_code=409))
        assert not is_version_conflict(BackendError("x", status_code=412))
        assert not is_version_conflict(ValueError("x"))


class TestConcurrencyGuard:
    @pytest.mark.asyncio
    async def test_passes_through_on_success(self):
        async with concurrency_guard(aggregate_type="order", aggregate_id=uuid4(), expected_version=0):
            pass

    @pytest.mark.asyncio
    async def test_raises_conflict_chained_to_original(self):
        original = BackendError("stale", status_code=409)

        with pytest.raises(ConcurrencyConflictError) as exc_info:
            async with concurrency_guard(
                aggregate_type="order", aggregate_id=uuid4(), expected_version=1
            ):
                raise original

        assert exc_info.value.__cause__ is original

    @pytest.mark.asyncio
    async def test_reraises_other_errors_unchanged(self):
        original = BackendError("unavailable", status_code=503)

        with pytest.raises(BackendError) as exc_info:
            async with concurrency_guard(
                aggregate_type="order", aggregate_id=uuid4(), expected_version=1
            ):
                raise original

        assert exc_info.value is original
