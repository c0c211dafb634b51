"""
Remote signing service client.

Key material never enters this process. Unsigned messages and request
descriptions are sent to a signing service that answers with encoded
transaction bytes or an Authorization header value.
"""

from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from ..core.errors import ChainError


class RemoteSigner:
    """Signs transactions and provider requests through an HTTP signing service."""

    def __init__(self, base_url: str, http_client: Optional[httpx.Client] = None):
        if not base_url or not base_url.strip():
            raise ValueError("signer base_url is required and cannot be empty")
        self.base_url = base_url.rstrip("/")
        self._http = http_client or httpx.Client()
        self._address: Optional[str] = None

    def get_address(self) -> str:
        """Return the account address of the signing key, cached per signer."""
        if self._address is None:
            data = self._request("/address", None, method="GET")
            address = data.get("address")
            if not address:
                raise ChainError("signer returned no account address")
            self._address = address
        return self._address

    def sign_tx(self, msgs: List[Dict[str, Any]], chain_id: str, memo: str = "") -> str:
        """Sign and encode a transaction carrying msgs.

        Returns:
            Base64 encoded transaction bytes ready for broadcast
        """
        data = self._request("/sign_tx", {"chain_id": chain_id, "msgs": msgs, "memo": memo})
        tx_bytes = data.get("tx_bytes")
        if not tx_bytes:
            raise ChainError("signer returned no tx_bytes")
        return tx_bytes

    def authorize(self, method: str, url: str) -> str:
        """Return the Authorization header value for a storage provider request."""
        data = self._request("/sign_request", {"method": method, "url": url})
        authorization = data.get("authorization")
        if not authorization:
            raise ChainError("signer returned no authorization")
        return authorization

    def _request(self, path: str, payload: Optional[Dict[str, Any]], method: str = "POST") -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        logger.debug("Signer request {} {}", method, url)
        response = self._http.request(method, url, json=payload)
        if response.status_code >= 400:
            raise ChainError(f"signer request {path} failed with status {response.status_code}: {response.text}")
        try:
            data = response.json()
        except ValueError as e:
            raise ChainError(f"signer request {path} returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ChainError(f"signer request {path} returned {type(data).__name__}, expected an object")
        return data
