"""
Data models exchanged with the chain and storage providers.

Defines raw response shapes and transaction options.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CommitmentMode(Enum):
    """Confirmation level required before a transaction counts as settled."""
    FIRE_AND_FORGET = "fire-and-forget"
    WAIT_FOR_INCLUSION = "wait-for-inclusion"
    WAIT_FOR_FINALITY = "wait-for-finality"


@dataclass(frozen=True)
class TransactionOptions:
    """Options applied when broadcasting a transaction."""
    commitment: CommitmentMode = CommitmentMode.WAIT_FOR_INCLUSION
    memo: str = ""


@dataclass(frozen=True)
class BucketInfo:
    """Bucket metadata as returned by head_bucket."""
    bucket_name: str
    owner: str = ""
    bucket_id: str = ""
    charged_read_quota: int = 0
    primary_sp_address: Optional[str] = None


@dataclass(frozen=True)
class StoragePrice:
    """Provider price quote as scaled decimal strings, unparsed."""
    sp_address: str
    read_price: str
    store_price: str
    update_time_sec: int = 0


@dataclass(frozen=True)
class ReadQuota:
    """Read quota counters held by the bucket's storage provider."""
    bucket_name: str
    read_quota_size: int
    sp_free_read_quota_size: int
    read_consumed_size: int
