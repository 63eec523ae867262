"""Account endpoints: identity, contract, deployments, inventory and tokens.

Every method returns the uniform response envelope: one named array field
per resource. RPC failures degrade to null fields; database failures on the
uncached or list endpoints propagate to the request error handler.
"""

import asyncio
from typing import Any, Dict, List

import constants
from core.database import Database
from core.exceptions import ContractParseError, RpcError
from core.logging import get_logger
from services import queries
from services.contract_parser import parse_contract
from services.fetcher import CachedFetcher
from services.near import NearRpcClient, is_locked

logger = get_logger(__name__)


def _is_unknown_account(error: BaseException) -> bool:
    return isinstance(error, RpcError) and error.reason == constants.UNKNOWN_ACCOUNT


class AccountService:
    """Composes the indexer database, NEAR RPC and the read-through cache."""

    def __init__(self, database: Database, rpc: NearRpcClient, fetcher: CachedFetcher):
        self.database = database
        self.rpc = rpc
        self.fetcher = fetcher

    async def item(self, account: str) -> Dict[str, Any]:
        """Account state from RPC merged with its creation/deletion transactions.

        A source that is unavailable contributes its fields as null; an
        account unknown to RPC or absent from the indexer contributes nothing.
        """
        actions, info = await asyncio.gather(
            self.fetcher.fetch(
                constants.account_action_key(account),
                lambda: self.database.fetch(queries.ACCOUNT_ACTIONS.bind(account=account)),
                constants.ACCOUNT_TTL,
            ),
            self.fetcher.fetch(
                constants.account_key(account),
                lambda: self.rpc.view_account(account),
                constants.ACCOUNT_TTL,
            ),
        )

        if actions.ok:
            rows = actions.value or []
            action = rows[0] if rows else {}
        else:
            action = dict.fromkeys(constants.ACCOUNT_ACTION_FIELDS)

        if info.ok:
            state = info.value or {}
        elif _is_unknown_account(info.error):
            state = {}
        else:
            state = dict.fromkeys(constants.ACCOUNT_VIEW_FIELDS)

        return {"account": [{**state, **action}]}

    async def contract(self, account: str) -> Dict[str, Any]:
        """Deployed code with access keys and whether the account is locked.

        ``keys`` and ``locked`` are null when the key list is unavailable.
        """
        code, access = await asyncio.gather(
            self.fetcher.fetch(
                constants.contract_key(account),
                lambda: self.rpc.view_code(account),
                constants.CONTRACT_TTL,
            ),
            self.fetcher.fetch(
                constants.contract_keys_key(account),
                lambda: self.rpc.view_access_keys(account),
                constants.CONTRACT_TTL,
            ),
        )

        access_keys = access.or_none()
        keys = access_keys.get("keys", []) if access_keys is not None else None
        locked = is_locked(keys) if keys is not None else None

        return {"contract": [{**(code.or_none() or {}), "keys": keys, "locked": locked}]}

    async def parse(self, account: str) -> Dict[str, Any]:
        """Exported methods and probable standards of the deployed contract."""
        code = await self.fetcher.fetch(
            constants.contract_key(account),
            lambda: self.rpc.view_code(account),
            constants.CONTRACT_TTL,
        )
        if not code.ok:
            logger.error("Contract view failed", account=account, error=str(code.error))

        contract = None
        code_base64 = (code.or_none() or {}).get("code_base64")
        if code_base64:
            try:
                contract = parse_contract(code_base64)
            except ContractParseError as e:
                logger.error("Contract parse failed", account=account, error=str(e))

        # ABI schema extraction is not implemented
        return {"contract": [{"contract": contract, "schema": None}]}

    async def deployments(self, account: str) -> Dict[str, Any]:
        """First and latest successful contract deployments, oldest first."""
        rows = await self.database.fetch(queries.DEPLOYMENTS.bind(account=account))
        return {"deployments": rows}

    async def action(self, account: str, method: str) -> Dict[str, Any]:
        """Arguments of one call to ``method`` on the account's contract."""
        rows = await self.database.fetch(
            queries.ACTION_BY_METHOD.bind(account=account, method=method)
        )
        return {"action": rows}

    async def inventory(self, account: str) -> Dict[str, Any]:
        """Fungible and non-fungible holdings with token metadata."""

        async def produce() -> Dict[str, List[Dict[str, Any]]]:
            fts, nfts = await asyncio.gather(
                self.database.fetch(queries.FT_INVENTORY.bind(account=account)),
                self.database.fetch(queries.NFT_INVENTORY.bind(account=account)),
            )
            return {"fts": fts, "nfts": nfts}

        outcome = await self.fetcher.fetch(
            constants.account_inventory_key(account), produce, constants.INVENTORY_TTL
        )
        return {"inventory": [outcome.unwrap()]}

    async def tokens(self, account: str) -> Dict[str, Any]:
        """Contracts of every FT and NFT the account ever touched, sorted."""

        async def produce() -> Dict[str, List[str]]:
            fts, nfts = await asyncio.gather(
                self.database.fetch(queries.FT_TOKENS.bind(account=account)),
                self.database.fetch(queries.NFT_TOKENS.bind(account=account)),
            )
            return {
                "fts": sorted(row["contract_account_id"] for row in fts),
                "nfts": sorted(row["contract_account_id"] for row in nfts),
            }

        outcome = await self.fetcher.fetch(
            constants.account_tokens_key(account), produce, constants.TOKENS_TTL
        )
        return {"tokens": [outcome.unwrap()]}
