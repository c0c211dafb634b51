"""
Chain and storage provider clients for gnfd-cmd.

Provides the ChainClient contract and its HTTP implementation.
"""

from .chain_client import ChainClient, GreenfieldClient
from .models import (
    BucketInfo,
    CommitmentMode,
    ReadQuota,
    StoragePrice,
    TransactionOptions,
)
from .signer import RemoteSigner

__all__ = [
    "BucketInfo",
    "ChainClient",
    "CommitmentMode",
    "GreenfieldClient",
    "ReadQuota",
    "RemoteSigner",
    "StoragePrice",
    "TransactionOptions",
]
