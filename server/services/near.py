"""NEAR JSON-RPC client for account, contract code and access key views."""

from typing import Any, Dict, List, Optional

import httpx

from constants import FULL_ACCESS_PERMISSION
from core.config import Settings
from core.exceptions import RpcError
from core.logging import get_logger, log_rpc_call

logger = get_logger(__name__)


def is_locked(keys: List[Dict[str, Any]]) -> bool:
    """True when none of the access keys grants full access.

    A locked account can only change its contract through the contract's own
    methods.
    """
    return all(
        (key.get("access_key") or {}).get("permission") != FULL_ACCESS_PERMISSION
        for key in keys
    )


class NearRpcClient:
    """Async JSON-RPC client over a shared httpx connection pool."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    async def startup(self):
        """Create the HTTP client."""
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.rpc_timeout),
            transport=self._transport,
            headers={"Content-Type": "application/json"},
        )
        logger.info("NEAR RPC client initialized", url=self.settings.rpc_url)

    async def shutdown(self):
        """Close the HTTP client."""
        if self.client:
            await self.client.aclose()
            self.client = None
            logger.info("NEAR RPC client closed")

    async def query(self, request_type: str, account_id: str, **params) -> Dict[str, Any]:
        """Run a ``query`` RPC call and return its ``result`` object.

        Raises:
            RpcError: on transport failure, HTTP error status or RPC error payload
        """
        if not self.client:
            raise RpcError(request_type, "RPC client not initialized")

        payload = {
            "jsonrpc": "2.0",
            "id": "dontcare",
            "method": "query",
            "params": {
                "request_type": request_type,
                "finality": self.settings.rpc_finality,
                "account_id": account_id,
                **params,
            },
        }

        try:
            response = await self.client.post(self.settings.rpc_url, json=payload)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            log_rpc_call(logger, request_type, account_id, success=False, error=str(e))
            raise RpcError(request_type, f"{type(e).__name__}: {e}", cause=e) from e

        error = body.get("error")
        if error:
            message = (error.get("cause") or {}).get("name") or error.get("message") or str(error)
            log_rpc_call(logger, request_type, account_id, success=False, error=message)
            raise RpcError(request_type, message)

        result = body.get("result")
        if not isinstance(result, dict):
            log_rpc_call(logger, request_type, account_id, success=False, error="empty result")
            raise RpcError(request_type, "RPC response has no result")

        # Older nodes report view errors inside the result
        if result.get("error"):
            log_rpc_call(logger, request_type, account_id, success=False, error=result["error"])
            raise RpcError(request_type, str(result["error"]))

        log_rpc_call(logger, request_type, account_id, success=True,
                     block_height=result.get("block_height"))
        return result

    async def view_account(self, account_id: str) -> Dict[str, Any]:
        """Account balance, storage usage and code hash."""
        return await self.query("view_account", account_id)

    async def view_code(self, account_id: str) -> Dict[str, Any]:
        """Deployed contract code (``code_base64``) and its hash."""
        return await self.query("view_code", account_id)

    async def view_access_keys(self, account_id: str) -> Dict[str, Any]:
        """All access keys of the account: ``{"keys": [...]}``."""
        return await self.query("view_access_key_list", account_id)

    async def ping(self) -> bool:
        """Check RPC reachability with the ``status`` method."""
        if not self.client:
            return False
        try:
            response = await self.client.post(
                self.settings.rpc_url,
                json={"jsonrpc": "2.0", "id": "dontcare", "method": "status", "params": []},
            )
            return response.status_code == 200
        except httpx.HTTPError:
            return False
