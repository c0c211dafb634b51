"""
Error taxonomy for quota commands.

Input and precondition errors are raised before any fee-bearing call.
Transaction rejections are raised by chain clients but reported, not
raised, by the purchase orchestrator.
"""

from typing import Optional


class QuotaCommandError(Exception):
    """Base class for all quota command failures."""


class InputError(QuotaCommandError):
    """Caller supplied an invalid argument. Detected before any network call."""


class MissingAddressError(InputError):
    """Storage provider address is empty."""

    def __init__(self, message: str = "fail to fetch sp address"):
        super().__init__(message)


class InvalidQuotaError(InputError):
    """Target quota is zero or negative."""

    def __init__(self, message: str = "target quota not set"):
        super().__init__(message)


class InvalidBucketUrlError(InputError):
    """Bucket locator could not be resolved to a bucket name."""


class BucketNotFoundError(QuotaCommandError):
    """Bucket does not exist on chain."""

    def __init__(self, bucket_name: str):
        super().__init__(f"bucket {bucket_name} not exist")
        self.bucket_name = bucket_name


class PriceParseError(QuotaCommandError):
    """Chain returned a price that is not a decimal number."""

    def __init__(self, field: str, value: str):
        super().__init__(f"get {field} error: cannot parse {value!r} as a decimal")
        self.field = field
        self.value = value


class ChainError(QuotaCommandError):
    """Chain or storage provider request failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransactionRejectedError(ChainError):
    """Chain refused a submitted transaction."""

    def __init__(self, reason: str, code: int = 0, tx_hash: str = ""):
        super().__init__(reason)
        self.reason = reason
        self.code = code
        self.tx_hash = tx_hash


class OperationCancelled(QuotaCommandError):
    """An in-flight operation was aborted through its cancel scope."""

    def __init__(self, message: str = "operation cancelled"):
        super().__init__(message)
