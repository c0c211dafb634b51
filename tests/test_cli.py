"""
Tests for the CLI interface.
"""
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from gnfd_cmd.cli.main import (
    app,
    EXIT_CODE_CANCELLED,
    EXIT_CODE_FAIL,
    EXIT_CODE_PASS,
    EXIT_CODE_STRICT_REJECTED,
)
from gnfd_cmd.core.errors import ChainError, OperationCancelled, TransactionRejectedError

from conftest import StubChainClient

runner = CliRunner()


@pytest.fixture
def stub():
    """Stub chain client returned by new_client."""
    return StubChainClient()


@pytest.fixture
def mock_new_client(stub):
    """Patch client construction so no config file or network is needed."""
    with patch('gnfd_cmd.cli.main.new_client', return_value=stub) as mock:
        yield mock


class TestGetPrice:
    """Test the get-price command."""

    def test_prints_prices(self, mock_new_client, stub):
        result = runner.invoke(app, ["get-price", "--spAddress", "0xSP"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "get bucket read quota price: 0.001  wei/byte" in result.output
        assert "get bucket storage price: 0.002  wei/byte" in result.output
        assert stub.closed

    def test_missing_flag_is_usage_error(self, mock_new_client, stub):
        result = runner.invoke(app, ["get-price"])

        assert result.exit_code == 2
        assert stub.network_calls() == 0

    def test_empty_address(self, mock_new_client, stub):
        result = runner.invoke(app, ["get-price", "--spAddress", ""])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "fail to fetch sp address" in result.output
        assert stub.network_calls() == 0

    def test_malformed_price_fails(self, mock_new_client, stub):
        stub.read_price = "garbage"

        result = runner.invoke(app, ["get-price", "--spAddress", "0xSP"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "quota price" in result.output
        assert "wei/byte" not in result.output

    def test_chain_error_fails(self, mock_new_client, stub):
        def _fail(sp_address):
            raise ChainError("node unavailable")
        stub.get_storage_price = _fail

        result = runner.invoke(app, ["get-price", "--spAddress", "0xSP"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "node unavailable" in result.output


class TestBuyQuota:
    """Test the buy-quota command."""

    def test_success(self, mock_new_client, stub):
        result = runner.invoke(app, ["buy-quota", "--chargedQuota", "1000000", "gnfd://b1"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "buy quota for bucket: b1 successfully, txn hash: 0xABC" in result.output
        assert stub.calls["buy_quota_for_bucket"] == 1

    def test_zero_quota_fails_without_submission(self, mock_new_client, stub):
        result = runner.invoke(app, ["buy-quota", "--chargedQuota", "0", "gnfd://b1"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "target quota not set" in result.output
        assert stub.network_calls() == 0

    def test_missing_quota_flag_is_usage_error(self, mock_new_client, stub):
        result = runner.invoke(app, ["buy-quota", "gnfd://b1"])

        assert result.exit_code == 2
        assert stub.network_calls() == 0

    def test_missing_bucket_fails(self, mock_new_client, stub):
        result = runner.invoke(app, ["buy-quota", "--chargedQuota", "10", "gnfd://nobucket"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "bucket nobucket not exist" in result.output
        assert stub.calls["buy_quota_for_bucket"] == 0

    def test_invalid_url_fails_before_client(self, mock_new_client, stub):
        result = runner.invoke(app, ["buy-quota", "--chargedQuota", "10", "s3://b1"])

        assert result.exit_code == EXIT_CODE_FAIL
        mock_new_client.assert_not_called()

    def test_rejection_exits_zero_with_diagnostic(self, mock_new_client, stub):
        stub.submit_error = TransactionRejectedError("insufficient balance")

        result = runner.invoke(app, ["buy-quota", "--chargedQuota", "10", "gnfd://b1"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "buy quota error: insufficient balance" in result.output
        assert "successfully" not in result.output

    def test_rejection_with_strict_exits_nonzero(self, mock_new_client, stub):
        stub.submit_error = TransactionRejectedError("insufficient balance")

        result = runner.invoke(app, ["buy-quota", "--strict", "--chargedQuota", "10", "gnfd://b1"])

        assert result.exit_code == EXIT_CODE_STRICT_REJECTED
        assert "buy quota error: insufficient balance" in result.output

    def test_cancellation_exit_code(self, mock_new_client, stub):
        stub.submit_error = OperationCancelled("interrupted")

        result = runner.invoke(app, ["buy-quota", "--chargedQuota", "10", "gnfd://b1"])

        assert result.exit_code == EXIT_CODE_CANCELLED
        assert "Cancelled" in result.output

    def test_keyboard_interrupt_exit_code(self, mock_new_client, stub):
        stub.submit_error = KeyboardInterrupt()

        result = runner.invoke(app, ["buy-quota", "--chargedQuota", "10", "gnfd://b1"])

        assert result.exit_code == EXIT_CODE_CANCELLED
        assert "Cancelled: interrupted" in result.output
        assert stub.closed

    def test_config_error_fails(self):
        result = runner.invoke(app, [
            "--config", "/nonexistent/config.yaml",
            "buy-quota", "--chargedQuota", "10", "gnfd://b1",
        ])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Config file not found" in result.output


class TestQuotaInfo:
    """Test the quota-info command."""

    def test_prints_ledger(self, mock_new_client, stub):
        result = runner.invoke(app, ["quota-info", "gnfd://b1"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "charged quota: 1000000" in result.output
        assert "free quota: 200000" in result.output
        assert "consumed quota: 50000" in result.output

    def test_missing_bucket_fails(self, mock_new_client, stub):
        result = runner.invoke(app, ["quota-info", "gnfd://nobucket"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "not exist" in result.output
        assert stub.calls["get_bucket_read_quota"] == 0

    def test_passes_config_path(self, mock_new_client, stub):
        runner.invoke(app, ["--config", "/tmp/gnfd.yaml", "quota-info", "gnfd://b1"])

        ctx = mock_new_client.call_args[0][0]
        assert ctx.obj["config_path"] == "/tmp/gnfd.yaml"


def test_no_command_prints_hint():
    result = runner.invoke(app, [])

    assert result.exit_code == EXIT_CODE_PASS
    assert "Use --help" in result.output
