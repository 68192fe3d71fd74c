"""Tests for the ResourceType base class.

Test coverage for listing, the per-instance deletion state machine, and the
concurrent remove() fan-out.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future
from unittest.mock import patch

import pytest

from gcpnuke.models.deletion_record import DeletionState
from gcpnuke.resources.base import LocationScope
from gcpnuke.teardown.errors import (
    DeletionCancelledError,
    DeletionError,
    DeletionTimeoutError,
    ListingError,
)
from tests.fixtures.resources import FakeResourceType, create_config, create_fake_type


class TestListInstances:
    """Test suite for list_instances()."""

    def test_list_before_setup_raises(self) -> None:
        """Test listing requires setup() first."""
        resource_type = FakeResourceType("TypeA", {"a1": "r1"})

        with pytest.raises(RuntimeError, match="before setup"):
            resource_type.list_instances()

    def test_list_without_refresh_returns_cache_only(self) -> None:
        """Test listing without refresh does not contact the provider."""
        resource_type = create_fake_type("TypeA", ["a1"])
        resource_type.setup(create_config())

        assert resource_type.list_instances(refresh_cache=False) == []

    def test_refresh_populates_cache_sorted(self) -> None:
        """Test refreshing populates the cache and returns sorted identifiers."""
        resource_type = create_fake_type("TypeA", ["a3", "a1", "a2"], config=create_config())

        assert resource_type.list_instances(refresh_cache=False) == ["a1", "a2", "a3"]

    def test_list_without_refresh_is_idempotent(self) -> None:
        """Test repeated cache reads return identical sequences."""
        resource_type = create_fake_type("TypeA", ["a2", "a1"], config=create_config())

        first = resource_type.list_instances(refresh_cache=False)
        second = resource_type.list_instances(refresh_cache=False)

        assert first == second == ["a1", "a2"]

    def test_refresh_enumerates_every_region(self) -> None:
        """Test refresh covers every configured region."""
        resource_type = FakeResourceType("TypeA", {"a1": "r1", "b1": "r2", "c1": "r3"})
        resource_type.setup(create_config(regions=["r1", "r2"]))

        assert resource_type.list_instances(refresh_cache=True) == ["a1", "b1"]
        assert resource_type.cache.get("b1").location == "r2"

    def test_refresh_drops_entries_gone_remotely(self) -> None:
        """Test refresh replaces the cache rather than merging into it."""
        resource_type = create_fake_type("TypeA", ["a1", "a2"], config=create_config())
        del resource_type.remote["a1"]

        assert resource_type.list_instances(refresh_cache=True) == ["a2"]

    def test_zone_scope_uses_zones(self) -> None:
        """Test zone-scoped types enumerate configured zones."""
        resource_type = FakeResourceType("TypeZ", {"z-vm": "z1"})
        resource_type.scope = LocationScope.ZONE
        resource_type.setup(create_config(zones=["z1"]))

        assert resource_type.locations() == ["z1"]
        assert resource_type.list_instances(refresh_cache=True) == ["z-vm"]

    def test_global_scope_uses_global_location(self) -> None:
        """Test global-scoped types enumerate the single global location."""
        resource_type = FakeResourceType("TypeG", {"template": "global"})
        resource_type.scope = LocationScope.GLOBAL
        resource_type.setup(create_config())

        assert resource_type.locations() == ["global"]

    def test_listing_failure_raises_listing_error(self) -> None:
        """Test provider listing failures are wrapped as fatal ListingError."""
        resource_type = create_fake_type("TypeA", ["a1"], config=create_config())
        resource_type.list_error = RuntimeError("quota exceeded")

        with pytest.raises(ListingError) as exc_info:
            resource_type.list_instances(refresh_cache=True)

        assert exc_info.value.resource_type == "TypeA"
        assert exc_info.value.location == "r1"
        assert "quota exceeded" in str(exc_info.value)
        # Cache keeps its previous contents
        assert resource_type.list_instances() == ["a1"]


class TestDeletionStateMachine:
    """Test suite for the per-instance deletion state machine."""

    def test_delete_completes_on_first_poll(self) -> None:
        """Test an instance whose operation is done immediately."""
        config = create_config()
        resource_type = create_fake_type("TypeA", ["a1"], config=config)

        record = resource_type._delete_instance(resource_type.cache.get("a1"))

        assert record.state == DeletionState.DONE
        assert record.error is None
        assert record.operation_id == "operation-a1"
        assert record.elapsed_seconds == 0
        assert "a1" not in resource_type.cache
        config.cancel_event.wait.assert_not_called()

    def test_delete_polls_until_done(self) -> None:
        """Test polling continues through running statuses."""
        config = create_config(timeout=10)
        resource_type = create_fake_type("TypeA", ["a1"], config=config)
        resource_type.status_steps["a1"] = ["PENDING", "RUNNING", "DONE"]

        record = resource_type._delete_instance(resource_type.cache.get("a1"))

        assert record.state == DeletionState.DONE
        assert record.elapsed_seconds == 2
        assert resource_type.status_calls["a1"] == 3
        assert config.cancel_event.wait.call_count == 2
        config.cancel_event.wait.assert_called_with(1)

    def test_submission_error_fails_and_keeps_cache(self) -> None:
        """Test a delete submission error moves straight to failed."""
        resource_type = create_fake_type("TypeA", ["a1"], config=create_config())
        resource_type.submit_errors["a1"] = RuntimeError("permission denied")

        record = resource_type._delete_instance(resource_type.cache.get("a1"))

        assert record.state == DeletionState.FAILED
        assert isinstance(record.error, DeletionError)
        assert "permission denied" in str(record.error)
        assert record.operation_id is None
        assert "a1" in resource_type.cache

    def test_status_error_fails_and_keeps_cache(self) -> None:
        """Test a status fetch error moves to failed."""
        resource_type = create_fake_type("TypeA", ["a1"], config=create_config(timeout=10))
        resource_type.status_steps["a1"] = ["RUNNING", RuntimeError("backend error")]

        record = resource_type._delete_instance(resource_type.cache.get("a1"))

        assert record.state == DeletionState.FAILED
        assert "backend error" in str(record.error)
        assert "a1" in resource_type.cache

    def test_not_found_on_submit_counts_as_deleted(self) -> None:
        """Test a not-found delete error is treated as already deleted."""
        resource_type = create_fake_type("TypeA", ["a1"], config=create_config())
        resource_type.submit_errors["a1"] = LookupError("gone")

        with patch.object(FakeResourceType, "_is_not_found", return_value=True):
            record = resource_type._delete_instance(resource_type.cache.get("a1"))

        assert record.state == DeletionState.DONE
        assert "a1" not in resource_type.cache

    def test_timeout_boundary(self) -> None:
        """Test timeout fires at the first poll where elapsed time exceeds the budget."""
        config = create_config(poll_interval=1, timeout=3)
        resource_type = create_fake_type("TypeA", ["a1"], config=config)
        resource_type.status_steps["a1"] = ["RUNNING"] * 10

        record = resource_type._delete_instance(resource_type.cache.get("a1"))

        assert record.state == DeletionState.TIMED_OUT
        assert isinstance(record.error, DeletionTimeoutError)
        # Polls at 0, 1, 2 and 3 seconds; timed out once elapsed reached 4
        assert resource_type.status_calls["a1"] == 4
        assert record.elapsed_seconds == 4
        assert "a1" in resource_type.cache

    def test_done_exactly_at_timeout_is_not_timed_out(self) -> None:
        """Test completion on the poll at elapsed == timeout still succeeds."""
        config = create_config(poll_interval=1, timeout=3)
        resource_type = create_fake_type("TypeA", ["a1"], config=config)
        resource_type.status_steps["a1"] = ["RUNNING", "RUNNING", "RUNNING", "DONE"]

        record = resource_type._delete_instance(resource_type.cache.get("a1"))

        assert record.state == DeletionState.DONE
        assert record.elapsed_seconds == 3

    def test_timeout_error_names_instance_type_project_and_location(self) -> None:
        """Test the timeout error identifies what timed out."""
        config = create_config(poll_interval=2, timeout=2)
        resource_type = create_fake_type("TypeA", ["a1"], config=config)
        resource_type.status_steps["a1"] = ["RUNNING"] * 5

        record = resource_type._delete_instance(resource_type.cache.get("a1"))

        message = str(record.error)
        assert "a1" in message
        assert "TypeA" in message
        assert "test-project" in message
        assert "r1" in message
        assert record.error.timeout == 2

    def test_cancelled_before_submit(self) -> None:
        """Test a set cancellation event prevents submission."""
        event = threading.Event()
        event.set()
        resource_type = create_fake_type("TypeA", ["a1"], config=create_config(cancel_event=event))

        record = resource_type._delete_instance(resource_type.cache.get("a1"))

        assert record.state == DeletionState.CANCELLED
        assert isinstance(record.error, DeletionCancelledError)
        assert record.operation_id is None
        assert "a1" in resource_type.cache

    def test_cancelled_while_polling(self) -> None:
        """Test cancellation interrupts the wait between polls."""
        config = create_config(timeout=100)
        config.cancel_event.wait.return_value = True
        resource_type = create_fake_type("TypeA", ["a1"], config=config)
        resource_type.status_steps["a1"] = ["RUNNING"] * 5

        record = resource_type._delete_instance(resource_type.cache.get("a1"))

        assert record.state == DeletionState.CANCELLED
        assert resource_type.status_calls["a1"] == 1
        assert "a1" in resource_type.cache


class TestRemove:
    """Test suite for the concurrent remove() fan-out."""

    def test_remove_empty_cache_returns_none(self) -> None:
        """Test removing with nothing cached is a no-op."""
        resource_type = create_fake_type("TypeA", [], config=create_config())

        assert resource_type.remove() is None
        assert resource_type.drain_records() == []

    def test_remove_all_succeed_drains_cache(self) -> None:
        """Test two instances completing on first poll leave the cache empty."""
        resource_type = create_fake_type("TypeA", ["a1", "a2"], config=create_config())

        error = resource_type.remove()

        assert error is None
        assert resource_type.list_instances(refresh_cache=False) == []
        assert resource_type.list_instances(refresh_cache=True) == []

    def test_remove_status_error_on_second_poll(self) -> None:
        """Test a status error on a2's second poll is returned and a2 stays cached."""
        resource_type = create_fake_type("TypeA", ["a1", "a2"], config=create_config(timeout=10))
        resource_type.status_steps["a2"] = ["RUNNING", RuntimeError("status unavailable")]

        error = resource_type.remove()

        assert isinstance(error, DeletionError)
        assert error.identifier == "a2"
        assert resource_type.list_instances(refresh_cache=False) == ["a2"]

    def test_partial_failure_retention_on_timeout(self) -> None:
        """Test a timed-out instance stays cached while its sibling is removed."""
        resource_type = create_fake_type("TypeA", ["x", "y"], config=create_config())
        resource_type.status_steps["x"] = ["RUNNING"] * 10

        error = resource_type.remove()

        assert isinstance(error, DeletionTimeoutError)
        assert error.identifier == "x"
        assert "x" in str(error)
        assert resource_type.list_instances(refresh_cache=False) == ["x"]

    def test_remove_records_every_instance(self) -> None:
        """Test a record is kept for each attempted instance and drained once."""
        resource_type = create_fake_type("TypeA", ["a1", "a2", "a3"], config=create_config())
        resource_type.submit_errors["a3"] = RuntimeError("boom")

        resource_type.remove()
        records = resource_type.drain_records()

        assert sorted(r.identifier for r in records) == ["a1", "a2", "a3"]
        states = {r.identifier: r.state for r in records}
        assert states["a3"] == DeletionState.FAILED
        assert states["a1"] == DeletionState.DONE
        assert resource_type.drain_records() == []

    def test_remove_attempts_all_instances_despite_failure(self) -> None:
        """Test one failure does not stop the other deletions."""
        resource_type = create_fake_type("TypeA", ["a1", "a2", "a3"], config=create_config())
        resource_type.submit_errors["a1"] = RuntimeError("boom")

        resource_type.remove()

        assert resource_type.list_instances(refresh_cache=False) == ["a1"]

    @patch("gcpnuke.resources.base.ThreadPoolExecutor")
    def test_remove_bounds_workers(self, mock_executor) -> None:
        """Test max_workers caps the thread pool size."""
        mock_executor.return_value.__enter__.return_value.submit.side_effect = lambda fn, arg: _completed(fn(arg))
        resource_type = create_fake_type("TypeA", ["a1", "a2", "a3"], config=create_config(max_workers=2))

        with patch("gcpnuke.resources.base.as_completed", side_effect=lambda futures: futures):
            resource_type.remove()

        assert mock_executor.call_args.kwargs["max_workers"] == 2

    @patch("gcpnuke.resources.base.ThreadPoolExecutor")
    def test_remove_defaults_to_one_worker_per_instance(self, mock_executor) -> None:
        """Test fan-out is unbounded when max_workers is unset."""
        mock_executor.return_value.__enter__.return_value.submit.side_effect = lambda fn, arg: _completed(fn(arg))
        resource_type = create_fake_type("TypeA", ["a1", "a2", "a3"], config=create_config())

        with patch("gcpnuke.resources.base.as_completed", side_effect=lambda futures: futures):
            resource_type.remove()

        assert mock_executor.call_args.kwargs["max_workers"] == 3


def _completed(result):
    future: Future = Future()
    future.set_result(result)
    return future
