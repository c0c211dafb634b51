"""
Quota price lookup.

Queries the chain for the per-byte read and store price quoted by a
storage provider and converts them to floating point for display.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from loguru import logger

from .cancellation import CancelScope
from .errors import MissingAddressError, PriceParseError
from gnfd_cmd.client.chain_client import ChainClient


@dataclass(frozen=True)
class QuotaPrice:
    """Per-byte prices of one storage provider, in wei per byte."""
    read_price_per_byte: float
    store_price_per_byte: float


def parse_price(field: str, value: str) -> float:
    """Convert a scaled decimal string from the chain to a float.

    Args:
        field: Price name used in the error message
        value: Decimal string as returned by the chain

    Returns:
        The price as a float

    Raises:
        PriceParseError: If value is not a finite decimal number
    """
    try:
        price = Decimal(value.strip())
    except (InvalidOperation, AttributeError):
        raise PriceParseError(field, value)

    if not price.is_finite():
        raise PriceParseError(field, value)
    return float(price)


def get_quota_price(client: ChainClient, sp_address: str, scope: CancelScope) -> QuotaPrice:
    """Get the read quota price and storage price of a storage provider.

    Args:
        client: Chain client
        sp_address: Storage provider operator address
        scope: Cancel scope for the lookup

    Returns:
        QuotaPrice snapshot

    Raises:
        MissingAddressError: If sp_address is empty (no network call is made)
        PriceParseError: If either price is malformed
        OperationCancelled: If the scope is cancelled
    """
    if not sp_address or not sp_address.strip():
        raise MissingAddressError()

    scope.raise_if_cancelled()
    price = client.get_storage_price(sp_address.strip())
    logger.debug("Storage price for {}: read={} store={}", sp_address, price.read_price, price.store_price)

    # Both prices must parse before anything is returned
    read_price = parse_price("quota price", price.read_price)
    store_price = parse_price("storage price", price.store_price)

    return QuotaPrice(read_price_per_byte=read_price, store_price_per_byte=store_price)
