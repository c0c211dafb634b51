"""
Read quota purchase and reporting.

Purchase order of checks:
1. Target quota validation - no network call for a zero quota
2. Bucket existence - no fee-bearing transaction for a missing bucket
3. Submission - blocks until the chain reports block inclusion

Input and precondition failures are raised. A transaction the chain
rejects is returned as a REJECTED result so callers pick their own
exit policy.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from loguru import logger

from .cancellation import CancelScope
from .errors import ChainError, InvalidQuotaError
from gnfd_cmd.client.chain_client import ChainClient
from gnfd_cmd.client.models import CommitmentMode, TransactionOptions

# Purchases wait for block inclusion so the new quota is active on return
DEFAULT_PURCHASE_OPTIONS = TransactionOptions(commitment=CommitmentMode.WAIT_FOR_INCLUSION)


class PurchaseStatus(Enum):
    """Outcome of a submitted quota purchase."""
    ACCEPTED = auto()
    REJECTED = auto()


@dataclass(frozen=True)
class PurchaseResult:
    """Result of a quota purchase that reached the submission step."""
    status: PurchaseStatus
    bucket_name: str
    target_quota: int
    tx_hash: Optional[str] = None
    reason: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.status == PurchaseStatus.ACCEPTED


@dataclass(frozen=True)
class QuotaLedgerSnapshot:
    """Point-in-time read quota counters of a bucket, in bytes."""
    charged_quota_size: int
    provider_free_quota_size: int
    consumed_quota_size: int


def ensure_bucket_exists(client: ChainClient, bucket_name: str, scope: CancelScope) -> None:
    """Check the bucket exists on chain.

    Raises:
        BucketNotFoundError: If the bucket does not exist
    """
    scope.raise_if_cancelled()
    client.head_bucket(bucket_name)


def buy_quota(
    client: ChainClient,
    bucket_name: str,
    target_quota: int,
    scope: CancelScope,
    options: TransactionOptions = DEFAULT_PURCHASE_OPTIONS,
) -> PurchaseResult:
    """Set the charged read quota of a bucket on chain.

    Args:
        client: Chain client
        bucket_name: Resolved bucket name
        target_quota: New charged quota ceiling in bytes, must be > 0
        scope: Cancel scope for the purchase
        options: Transaction options, block inclusion by default

    Returns:
        PurchaseResult, ACCEPTED with the transaction hash or REJECTED
        with the chain's reason

    Raises:
        InvalidQuotaError: If target_quota is not positive
        BucketNotFoundError: If the bucket does not exist
        OperationCancelled: If the scope is cancelled
    """
    if target_quota is None or target_quota <= 0:
        raise InvalidQuotaError()

    ensure_bucket_exists(client, bucket_name, scope)

    scope.raise_if_cancelled()
    try:
        tx_hash = client.buy_quota_for_bucket(bucket_name, target_quota, options)
    except ChainError as e:
        logger.warning("buy quota error for bucket {}: {}", bucket_name, e)
        return PurchaseResult(
            status=PurchaseStatus.REJECTED,
            bucket_name=bucket_name,
            target_quota=target_quota,
            tx_hash=getattr(e, "tx_hash", None) or None,
            reason=str(e),
        )

    logger.info("Bought quota {} for bucket {}, txn hash {}", target_quota, bucket_name, tx_hash)
    return PurchaseResult(
        status=PurchaseStatus.ACCEPTED,
        bucket_name=bucket_name,
        target_quota=target_quota,
        tx_hash=tx_hash,
    )


def get_quota_info(client: ChainClient, bucket_name: str, scope: CancelScope) -> QuotaLedgerSnapshot:
    """Get charged, free and consumed read quota of a bucket.

    Raises:
        BucketNotFoundError: If the bucket does not exist
        OperationCancelled: If the scope is cancelled
    """
    ensure_bucket_exists(client, bucket_name, scope)

    scope.raise_if_cancelled()
    quota = client.get_bucket_read_quota(bucket_name)
    return QuotaLedgerSnapshot(
        charged_quota_size=quota.read_quota_size,
        provider_free_quota_size=quota.sp_free_read_quota_size,
        consumed_quota_size=quota.read_consumed_size,
    )
