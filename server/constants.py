"""Centralized constants for cache keys, TTLs and NEAR protocol values."""

from typing import Dict, FrozenSet

# =============================================================================
# CACHE TTLs (seconds)
# =============================================================================

EXPIRY = 60  # 1 min

ACCOUNT_TTL = EXPIRY * 1
CONTRACT_TTL = EXPIRY * 5
INVENTORY_TTL = EXPIRY * 15
TOKENS_TTL = EXPIRY * 1

# =============================================================================
# CACHE KEYS
# =============================================================================


def account_key(account: str) -> str:
    return f"account:{account}"


def account_action_key(account: str) -> str:
    return f"account:{account}:action"


def account_inventory_key(account: str) -> str:
    return f"account:{account}:inventory"


def account_tokens_key(account: str) -> str:
    return f"account:{account}:tokens"


def contract_key(account: str) -> str:
    return f"contract:{account}"


def contract_keys_key(account: str) -> str:
    return f"contract:{account}:keys"


# =============================================================================
# NEAR PROTOCOL
# =============================================================================

# Valid account id: 2-64 chars, lowercase parts joined by '.', '-' or '_'
ACCOUNT_ID_PATTERN = r"^(([a-z\d]+[-_])*[a-z\d]+\.)*([a-z\d]+[-_])*[a-z\d]+$"
ACCOUNT_ID_MIN_LENGTH = 2
ACCOUNT_ID_MAX_LENGTH = 64

FULL_ACCESS_PERMISSION = "FullAccess"

# RPC error cause for an account that does not exist
UNKNOWN_ACCOUNT = "UNKNOWN_ACCOUNT"

# Fields reported as null when their source is unavailable
ACCOUNT_VIEW_FIELDS = (
    "amount",
    "locked",
    "code_hash",
    "storage_usage",
    "storage_paid_at",
    "block_height",
    "block_hash",
)
ACCOUNT_ACTION_FIELDS = ("account_id", "created", "deleted")

# Method names a contract must export to probably implement a standard.
INTERFACE_METHODS: Dict[str, FrozenSet[str]] = {
    "nep141": frozenset([
        "ft_transfer",
        "ft_transfer_call",
        "ft_total_supply",
        "ft_balance_of",
    ]),
    "nep145": frozenset([
        "storage_deposit",
        "storage_withdraw",
        "storage_unregister",
        "storage_balance_bounds",
        "storage_balance_of",
    ]),
    "nep148": frozenset([
        "ft_metadata",
    ]),
    "nep171": frozenset([
        "nft_transfer",
        "nft_transfer_call",
        "nft_token",
    ]),
    "nep177": frozenset([
        "nft_metadata",
    ]),
    "nep178": frozenset([
        "nft_approve",
        "nft_revoke",
        "nft_revoke_all",
        "nft_is_approved",
    ]),
    "nep181": frozenset([
        "nft_total_supply",
        "nft_tokens",
        "nft_supply_for_owner",
        "nft_tokens_for_owner",
    ]),
    "nep330": frozenset([
        "contract_source_metadata",
    ]),
}
