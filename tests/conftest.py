"""
Shared fixtures for quota command tests.
"""
import pytest

from gnfd_cmd.client.models import BucketInfo, ReadQuota, StoragePrice
from gnfd_cmd.core.cancellation import CancelScope
from gnfd_cmd.core.errors import BucketNotFoundError, TransactionRejectedError


class StubChainClient:
    """In-memory ChainClient that records every call."""

    def __init__(
        self,
        buckets=("b1",),
        read_price="0.001",
        store_price="0.002",
        tx_hash="0xABC",
        submit_error=None,
        ledger=(1000000, 200000, 50000),
    ):
        self.buckets = set(buckets)
        self.read_price = read_price
        self.store_price = store_price
        self.tx_hash = tx_hash
        self.submit_error = submit_error
        self.ledger = ledger
        self.calls = {"head_bucket": 0, "get_storage_price": 0, "buy_quota_for_bucket": 0, "get_bucket_read_quota": 0}
        self.submissions = []
        self.closed = False

    def head_bucket(self, bucket_name):
        self.calls["head_bucket"] += 1
        if bucket_name not in self.buckets:
            raise BucketNotFoundError(bucket_name)
        return BucketInfo(bucket_name=bucket_name)

    def get_storage_price(self, sp_address):
        self.calls["get_storage_price"] += 1
        return StoragePrice(sp_address=sp_address, read_price=self.read_price, store_price=self.store_price)

    def buy_quota_for_bucket(self, bucket_name, target_quota, options):
        self.calls["buy_quota_for_bucket"] += 1
        self.submissions.append((bucket_name, target_quota, options))
        if self.submit_error is not None:
            raise self.submit_error
        return self.tx_hash

    def get_bucket_read_quota(self, bucket_name):
        self.calls["get_bucket_read_quota"] += 1
        charged, free, consumed = self.ledger
        return ReadQuota(
            bucket_name=bucket_name,
            read_quota_size=charged,
            sp_free_read_quota_size=free,
            read_consumed_size=consumed,
        )

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def network_calls(self):
        return sum(self.calls.values())


@pytest.fixture
def stub_client():
    """Stub chain client with bucket b1 and default prices and ledger."""
    return StubChainClient()


@pytest.fixture
def rejecting_client():
    """Stub chain client whose submissions are rejected by the chain."""
    return StubChainClient(submit_error=TransactionRejectedError("insufficient balance", code=5, tx_hash="0xDEF"))


@pytest.fixture
def scope():
    """Fresh cancel scope per test."""
    with CancelScope(name="test") as s:
        yield s
