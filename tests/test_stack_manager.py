"""
Tests for CloudFormation stack lifecycle management.
"""

import json
from unittest.mock import Mock, patch

import pytest

from conftest import STARTED_AT, client_error, make_event
from stackflow.config import ClientConfig, DeployConfig
from stackflow.errors import StackOperationFailed
from stackflow.stack_manager import StackManager
from stackflow.statuses import Action

TEMPLATE = {"Resources": {"Topic": {"Type": "AWS::SNS::Topic"}}}


class TestStackManager:
    """Test create/update/delete orchestration."""

    def create_manager(self, client, ticker_factory, **kwargs) -> StackManager:
        """Create a test manager around a mocked client."""
        options = {"template": TEMPLATE, "ticker_factory": ticker_factory, "sink": Mock()}
        options.update(kwargs)
        return StackManager(
            "test-stack", client=client, clock=lambda: STARTED_AT, **options
        )

    def test_existing_stack_is_updated(self, client, ticker_factory) -> None:
        client.describe_stack.return_value = {"StackStatus": "UPDATE_COMPLETE"}
        client.describe_stack_events.return_value = (
            [make_event("1", "UPDATE_COMPLETE", 1)],
            None,
        )
        manager = self.create_manager(client, ticker_factory)

        action = manager.create_or_update()

        assert action is Action.UPDATE
        client.update_stack.assert_called_once()
        client.create_stack.assert_not_called()

    def test_missing_stack_is_created(self, client, ticker_factory) -> None:
        client.describe_stack.side_effect = client_error(
            "ValidationError", "Stack with id test-stack does not exist", "DescribeStacks"
        )
        client.describe_stack_events.return_value = (
            [make_event("1", "CREATE_COMPLETE", 1)],
            None,
        )
        manager = self.create_manager(client, ticker_factory)

        action = manager.create_or_update()

        assert action is Action.CREATE
        client.create_stack.assert_called_once()
        client.update_stack.assert_not_called()

    def test_request_carries_serialized_template(self, client, ticker_factory) -> None:
        client.describe_stack.return_value = {"StackStatus": "CREATE_COMPLETE"}
        client.describe_stack_events.return_value = (
            [make_event("1", "UPDATE_COMPLETE", 1)],
            None,
        )
        manager = self.create_manager(
            client, ticker_factory, capabilities=["CAPABILITY_NAMED_IAM"]
        )

        manager.create_or_update()

        request = client.update_stack.call_args[0][0]
        assert request.stack_name == "test-stack"
        assert request.capabilities == ("CAPABILITY_NAMED_IAM",)
        assert json.loads(request.template_body) == TEMPLATE

    def test_default_capabilities(self, client) -> None:
        manager = StackManager("test-stack", client=client)
        assert manager.capabilities == ("CAPABILITY_IAM",)
        assert manager.poll_interval_ms == 5000
        assert manager.fire_and_forget is False

    def test_update_without_changes_succeeds(self, client, ticker_factory) -> None:
        client.describe_stack.return_value = {"StackStatus": "UPDATE_COMPLETE"}
        client.update_stack.side_effect = client_error(
            "ValidationError", "No updates are to be performed.", "UpdateStack"
        )
        client.describe_stack_events.return_value = (
            [make_event("1", "UPDATE_COMPLETE", -60)],
            None,
        )
        manager = self.create_manager(client, ticker_factory)

        assert manager.create_or_update() is Action.UPDATE

    def test_update_failure_raises(self, client, ticker_factory) -> None:
        client.describe_stack.return_value = {"StackStatus": "UPDATE_COMPLETE"}
        client.describe_stack_events.return_value = (
            [
                make_event("2", "UPDATE_ROLLBACK_COMPLETE", 2),
                make_event("1", "UPDATE_ROLLBACK_IN_PROGRESS", 1, reason="Bad property"),
            ],
            None,
        )
        manager = self.create_manager(client, ticker_factory)

        with pytest.raises(StackOperationFailed):
            manager.create_or_update()

    def test_fire_and_forget_does_not_poll(self, client, ticker_factory) -> None:
        client.describe_stack.return_value = {"StackStatus": "CREATE_COMPLETE"}
        manager = self.create_manager(client, ticker_factory, fire_and_forget=True)

        manager.create_or_update()

        client.update_stack.assert_called_once()
        client.describe_stack_events.assert_not_called()
        assert ticker_factory.tickers == []

    def test_poll_interval_passed_to_ticker(self, client) -> None:
        client.describe_stack.return_value = {"StackStatus": "CREATE_COMPLETE"}
        client.describe_stack_events.return_value = (
            [make_event("1", "UPDATE_COMPLETE", 1)],
            None,
        )
        factory = Mock()
        factory.return_value.run.side_effect = lambda tick: tick()
        manager = self.create_manager(client, factory, poll_interval_ms=250)

        manager.create_or_update()

        factory.assert_called_once_with(250)

    def test_delete(self, client, ticker_factory) -> None:
        client.describe_stack_events.return_value = (
            [make_event("1", "DELETE_COMPLETE", 1)],
            None,
        )
        manager = self.create_manager(client, ticker_factory)

        manager.delete()

        client.delete_stack.assert_called_once_with("test-stack")
        client.describe_stack_events.assert_called_with("test-stack", None)

    def test_delete_override_name(self, client, ticker_factory) -> None:
        client.describe_stack_events.side_effect = client_error(
            "ValidationError", "Stack [other-stack] does not exist"
        )
        manager = self.create_manager(client, ticker_factory)

        manager.delete("other-stack")

        client.delete_stack.assert_called_once_with("other-stack")

    def test_delete_failure_raises(self, client, ticker_factory) -> None:
        client.describe_stack_events.return_value = (
            [make_event("1", "DELETE_FAILED", 1, reason="Bucket not empty")],
            None,
        )
        manager = self.create_manager(client, ticker_factory)

        with pytest.raises(StackOperationFailed, match="Bucket not empty"):
            manager.delete()

    def test_delete_without_name(self, client) -> None:
        manager = StackManager(client=client)

        with pytest.raises(ValueError):
            manager.delete()

    def test_outputs(self, client) -> None:
        client.describe_stack.return_value = {
            "StackStatus": "CREATE_COMPLETE",
            "Outputs": [
                {"OutputKey": "ApiUrl", "OutputValue": "https://api.example.com"},
                {"OutputKey": "BucketName", "OutputValue": "test-bucket"},
            ],
        }
        manager = StackManager("test-stack", client=client)

        assert manager.outputs() == {
            "ApiUrl": "https://api.example.com",
            "BucketName": "test-bucket",
        }

    def test_outputs_empty(self, client) -> None:
        client.describe_stack.return_value = {"StackStatus": "CREATE_COMPLETE"}
        manager = StackManager("test-stack", client=client)

        assert manager.outputs() == {}

    def test_from_config(self, client) -> None:
        config = DeployConfig(
            name="config-stack",
            template=TEMPLATE,
            fire_and_forget=True,
            poll_interval_ms=1000,
            max_wait=60,
            client=ClientConfig(region="eu-west-1"),
        )

        manager = StackManager.from_config(config, client=client)

        assert manager.name == "config-stack"
        assert manager.fire_and_forget is True
        assert manager.poll_interval_ms == 1000
        assert manager.max_wait == 60

    def test_client_built_from_config(self) -> None:
        with patch("stackflow.stack_manager.CloudFormationClient") as client_cls:
            config = ClientConfig(region="eu-west-1")
            StackManager("test-stack", client_config=config)

        client_cls.assert_called_once_with(config)


class TestStackExists:
    """Test the existence check."""

    @pytest.mark.parametrize(
        "status,expected",
        [
            ("CREATE_COMPLETE", True),
            ("UPDATE_COMPLETE", True),
            ("ROLLBACK_COMPLETE", True),
            ("UPDATE_ROLLBACK_COMPLETE", True),
            ("CREATE_IN_PROGRESS", False),
            ("UPDATE_IN_PROGRESS", False),
            ("DELETE_COMPLETE", False),
            ("CREATE_FAILED", False),
        ],
    )
    def test_status(self, client, status, expected) -> None:
        client.describe_stack.return_value = {"StackStatus": status}

        assert StackManager("test-stack", client=client).stack_exists() is expected

    def test_not_found_is_false(self, client) -> None:
        client.describe_stack.side_effect = client_error(
            "ValidationError", "Stack with id test-stack does not exist", "DescribeStacks"
        )

        assert StackManager("test-stack", client=client).stack_exists() is False

    def test_any_error_is_false(self, client) -> None:
        client.describe_stack.side_effect = RuntimeError("connection reset")

        assert StackManager("test-stack", client=client).stack_exists() is False

    def test_override_name(self, client) -> None:
        client.describe_stack.return_value = {"StackStatus": "CREATE_COMPLETE"}

        StackManager("test-stack", client=client).stack_exists("other-stack")

        client.describe_stack.assert_called_once_with("other-stack")
