"""
Greenfield chain client.

Wraps the chain REST endpoint and the storage provider endpoint behind
the ChainClient contract used by the quota commands. Failures are loud:
HTTP and transport errors become ChainError, aborted requests become
OperationCancelled.
"""

import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Protocol

import httpx
from loguru import logger

from ..core.cancellation import CancelScope
from ..core.errors import (
    BucketNotFoundError,
    ChainError,
    OperationCancelled,
    TransactionRejectedError,
)
from .models import (
    BucketInfo,
    CommitmentMode,
    ReadQuota,
    StoragePrice,
    TransactionOptions,
)
from .signer import RemoteSigner


class ChainClient(Protocol):
    """Operations the quota commands need from the network."""

    def head_bucket(self, bucket_name: str) -> BucketInfo:
        ...

    def get_storage_price(self, sp_address: str) -> StoragePrice:
        ...

    def buy_quota_for_bucket(
        self, bucket_name: str, target_quota: int, options: TransactionOptions
    ) -> str:
        ...

    def get_bucket_read_quota(self, bucket_name: str) -> ReadQuota:
        ...


# Broadcast mode sent to the chain for each commitment level
BROADCAST_MODES = {
    CommitmentMode.FIRE_AND_FORGET: "BROADCAST_MODE_ASYNC",
    CommitmentMode.WAIT_FOR_INCLUSION: "BROADCAST_MODE_BLOCK",
    CommitmentMode.WAIT_FOR_FINALITY: "BROADCAST_MODE_BLOCK",
}

UPDATE_BUCKET_INFO_TYPE = "/greenfield.storage.MsgUpdateBucketInfo"

_NOT_FOUND_MARKERS = ("no such bucket", "bucket not found")


def _current_year_month() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m")


class GreenfieldClient:
    """HTTP implementation of ChainClient bound to one cancel scope.

    The client closes its connection pool when the scope is cancelled, so
    requests in flight at that moment fail promptly and are reported as
    OperationCancelled.
    """

    def __init__(
        self,
        rpc_addr: str,
        chain_id: str,
        signer: RemoteSigner,
        scope: CancelScope,
        sp_endpoint: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
        year_month: Callable[[], str] = _current_year_month,
    ):
        if not rpc_addr or not rpc_addr.strip():
            raise ValueError("rpc_addr is required and cannot be empty")
        if not chain_id or not chain_id.strip():
            raise ValueError("chain_id is required and cannot be empty")

        self.rpc_addr = rpc_addr.rstrip("/")
        self.chain_id = chain_id
        self.sp_endpoint = sp_endpoint.rstrip("/") if sp_endpoint else None
        self.signer = signer
        self.scope = scope
        self._http = http_client or httpx.Client()
        self._year_month = year_month
        scope.on_cancel(self.close)

    @classmethod
    def from_config(cls, config, scope: CancelScope) -> "GreenfieldClient":
        """Build a client and its signer from a ClientConfig."""
        http_client = httpx.Client(timeout=config.timeout_seconds)
        signer = RemoteSigner(config.signer_url, http_client=http_client)
        return cls(
            rpc_addr=config.rpc_addr,
            chain_id=config.chain_id,
            signer=signer,
            scope=scope,
            sp_endpoint=config.sp_endpoint,
            http_client=http_client,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "GreenfieldClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def head_bucket(self, bucket_name: str) -> BucketInfo:
        try:
            data = self._get_json(f"{self.rpc_addr}/greenfield/storage/head_bucket/{bucket_name}")
        except ChainError as e:
            if e.status_code == 404 or any(marker in str(e).lower() for marker in _NOT_FOUND_MARKERS):
                raise BucketNotFoundError(bucket_name) from e
            raise

        info = data.get("bucket_info")
        if not info:
            raise BucketNotFoundError(bucket_name)

        return BucketInfo(
            bucket_name=info.get("bucket_name", bucket_name),
            owner=info.get("owner", ""),
            bucket_id=str(info.get("id", "")),
            charged_read_quota=int(info.get("charged_read_quota") or 0),
            primary_sp_address=info.get("primary_sp_address"),
        )

    def get_storage_price(self, sp_address: str) -> StoragePrice:
        data = self._get_json(
            f"{self.rpc_addr}/greenfield/sp/get_sp_storage_price_by_time",
            params={"sp_addr": sp_address, "timestamp": 0},
        )
        price = data.get("sp_storage_price")
        if not price:
            raise ChainError(f"no storage price returned for sp {sp_address}")

        return StoragePrice(
            sp_address=price.get("sp_address", sp_address),
            read_price=str(price.get("read_price", "")),
            store_price=str(price.get("store_price", "")),
            update_time_sec=int(price.get("update_time_sec") or 0),
        )

    def buy_quota_for_bucket(
        self, bucket_name: str, target_quota: int, options: TransactionOptions
    ) -> str:
        msg = {
            "@type": UPDATE_BUCKET_INFO_TYPE,
            "operator": self._call(self.signer.get_address),
            "bucket_name": bucket_name,
            "charged_read_quota": {"value": str(target_quota)},
            "visibility": "VISIBILITY_TYPE_UNSPECIFIED",
        }
        tx_bytes = self._call(self.signer.sign_tx, [msg], self.chain_id, options.memo)

        mode = BROADCAST_MODES[options.commitment]
        logger.debug("Broadcasting quota update for {} with {}", bucket_name, mode)
        data = self._send(
            "POST",
            f"{self.rpc_addr}/cosmos/tx/v1beta1/txs",
            json={"tx_bytes": tx_bytes, "mode": mode},
        )
        tx_hash = self._check_tx_response(data)

        if options.commitment == CommitmentMode.WAIT_FOR_FINALITY:
            self._confirm_committed(tx_hash)
        return tx_hash

    def get_bucket_read_quota(self, bucket_name: str) -> ReadQuota:
        endpoint = self.sp_endpoint or self._primary_sp_endpoint(bucket_name)
        url = f"{endpoint}/{bucket_name}"
        params = {"read-quota": "", "year-month": self._year_month()}

        authorization = self._call(self.signer.authorize, "GET", url)
        response = self._request("GET", url, params=params, headers={"Authorization": authorization})
        return self._parse_read_quota(bucket_name, response.text)

    def _primary_sp_endpoint(self, bucket_name: str) -> str:
        info = self.head_bucket(bucket_name)
        if not info.primary_sp_address:
            raise ChainError(f"bucket {bucket_name} has no primary storage provider")

        data = self._get_json(
            f"{self.rpc_addr}/greenfield/sp/storage_provider_by_operator_address",
            params={"operator_address": info.primary_sp_address},
        )
        provider = data.get("storageProvider") or data.get("storage_provider") or {}
        endpoint = provider.get("endpoint")
        if not endpoint:
            raise ChainError(f"no endpoint registered for sp {info.primary_sp_address}")
        return endpoint.rstrip("/")

    def _confirm_committed(self, tx_hash: str) -> None:
        data = self._get_json(f"{self.rpc_addr}/cosmos/tx/v1beta1/txs/{tx_hash}")
        self._check_tx_response(data)
        height = int((data.get("tx_response") or {}).get("height") or 0)
        if height <= 0:
            raise ChainError(f"transaction {tx_hash} is not committed")

    @staticmethod
    def _check_tx_response(data: Dict[str, Any]) -> str:
        tx_response = data.get("tx_response")
        if not isinstance(tx_response, dict) or not tx_response:
            raise ChainError("broadcast returned no tx_response")

        tx_hash = tx_response.get("txhash", "")
        try:
            code = int(tx_response.get("code") or 0)
        except (TypeError, ValueError) as e:
            raise ChainError(f"broadcast returned invalid code {tx_response.get('code')!r}") from e
        if code != 0:
            raise TransactionRejectedError(
                tx_response.get("raw_log") or f"transaction failed with code {code}",
                code=code,
                tx_hash=tx_hash,
            )
        if not tx_hash:
            raise ChainError("broadcast returned no transaction hash")
        return tx_hash

    @staticmethod
    def _parse_read_quota(bucket_name: str, body: str) -> ReadQuota:
        try:
            root = ET.fromstring(body)
        except ET.ParseError as e:
            raise ChainError(f"invalid read quota response: {e}") from e

        def _field(tag: str) -> int:
            node = root.find(tag)
            if node is None or node.text is None:
                raise ChainError(f"read quota response missing {tag}")
            try:
                return int(node.text.strip())
            except ValueError as e:
                raise ChainError(f"read quota field {tag} is not an integer: {node.text!r}") from e

        return ReadQuota(
            bucket_name=root.findtext("BucketName") or bucket_name,
            read_quota_size=_field("ReadQuotaSize"),
            sp_free_read_quota_size=_field("SPFreeReadQuotaSize"),
            read_consumed_size=_field("ReadConsumedSize"),
        )

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._send("GET", url, params=params)

    def _send(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        response = self._request(method, url, **kwargs)
        try:
            data = response.json()
        except ValueError as e:
            raise ChainError(f"invalid JSON from {url}: {e}") from e
        if not isinstance(data, dict):
            raise ChainError(f"unexpected {type(data).__name__} from {url}, expected an object")
        return data

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        response = self._call(self._http.request, method, url, **kwargs)
        if response.status_code >= 400:
            raise ChainError(
                f"{method} {url} failed with status {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        return response

    def _call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run a network call under the scope, translating transport failures."""
        self.scope.raise_if_cancelled()
        try:
            return fn(*args, **kwargs)
        except httpx.HTTPError as e:
            if self.scope.cancelled:
                raise OperationCancelled(self.scope.reason or "operation cancelled") from e
            raise ChainError(f"request failed: {e}") from e
        except RuntimeError as e:
            # httpx raises RuntimeError once the client has been closed
            if self.scope.cancelled:
                raise OperationCancelled(self.scope.reason or "operation cancelled") from e
            raise
