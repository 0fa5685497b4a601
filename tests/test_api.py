"""
Tests for the one-call helpers.
"""

from unittest.mock import patch

from stackflow import api
from stackflow.statuses import Action


class TestApi:
    """Test module-level helpers delegate to StackManager."""

    def test_deploy(self) -> None:
        with patch("stackflow.api.StackManager") as manager_cls:
            manager_cls.return_value.create_or_update.return_value = Action.CREATE

            assert api.deploy("test-stack", {"Resources": {}}, poll_interval_ms=1000) is Action.CREATE

        manager_cls.assert_called_once_with(
            "test-stack", {"Resources": {}}, poll_interval_ms=1000
        )

    def test_stack_exists(self) -> None:
        with patch("stackflow.api.StackManager") as manager_cls:
            manager_cls.return_value.stack_exists.return_value = True

            assert api.stack_exists("test-stack") is True

    def test_delete_and_outputs(self) -> None:
        with patch("stackflow.api.StackManager") as manager_cls:
            manager_cls.return_value.outputs.return_value = {"Key": "Value"}

            api.delete("test-stack")
            assert api.outputs("test-stack") == {"Key": "Value"}

        manager_cls.return_value.delete.assert_called_once_with()

    def test_cleanup(self) -> None:
        with patch("stackflow.api.StackManager") as manager_cls, patch(
            "stackflow.api.CleanupScanner"
        ) as scanner_cls:
            api.cleanup("TEST-", minutes_old=30, dry_run=True, max_workers=2, fire_and_forget=True)

        manager_cls.assert_called_once_with(fire_and_forget=True)
        scanner_cls.assert_called_once_with(manager_cls.return_value, max_workers=2)
        scanner_cls.return_value.cleanup.assert_called_once_with(
            "TEST-", minutes_old=30, dry_run=True, limit=None
        )
