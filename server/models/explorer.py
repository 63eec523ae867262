"""SQLModel shapes of the indexer tables read by the account queries.

The indexer owns these tables; this service never creates or writes them in
production. The declarations document the columns the queries depend on and
let tests build a throwaway database with ``SQLModel.metadata.create_all``.
"""

from typing import Any, Dict, Optional
from sqlmodel import SQLModel, Field, Column, JSON


class Account(SQLModel, table=True):
    """Account lifecycle (created/deleted by receipt)."""

    __tablename__ = "accounts"

    account_id: str = Field(primary_key=True, max_length=64)
    created_by_receipt_id: Optional[str] = Field(default=None, index=True)
    deleted_by_receipt_id: Optional[str] = Field(default=None, index=True)


class Receipt(SQLModel, table=True):
    __tablename__ = "receipts"

    receipt_id: str = Field(primary_key=True)
    originated_from_transaction_hash: str = Field(index=True)


class Transaction(SQLModel, table=True):
    __tablename__ = "transactions"

    transaction_hash: str = Field(primary_key=True)
    block_timestamp: int = Field(index=True)  # nanoseconds


class ActionReceiptAction(SQLModel, table=True):
    """One action inside an action receipt."""

    __tablename__ = "action_receipt_actions"

    receipt_id: str = Field(primary_key=True)
    index_in_action_receipt: int = Field(default=0, primary_key=True)
    action_kind: str = Field(max_length=32)
    args: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    receipt_predecessor_account_id: str
    receipt_receiver_account_id: str = Field(index=True)


class ExecutionOutcome(SQLModel, table=True):
    __tablename__ = "execution_outcomes"

    receipt_id: str = Field(primary_key=True)
    status: str = Field(max_length=32)


class FtHolderMonthly(SQLModel, table=True):
    """Signed fungible token balance delta per account, contract and month."""

    __tablename__ = "ft_holders_monthly"

    account: str = Field(primary_key=True)
    contract: str = Field(primary_key=True)
    month: str = Field(primary_key=True)
    amount: int


class FtMeta(SQLModel, table=True):
    __tablename__ = "ft_meta"

    contract: str = Field(primary_key=True)
    name: Optional[str] = None
    symbol: Optional[str] = None
    decimals: Optional[int] = None
    icon: Optional[str] = None
    reference: Optional[str] = None
    price: Optional[str] = None


class NftHolderDaily(SQLModel, table=True):
    """Precomputed NFT quantity per account and contract."""

    __tablename__ = "nft_holders_daily"

    account: str = Field(primary_key=True)
    contract: str = Field(primary_key=True)
    quantity: int


class NftMeta(SQLModel, table=True):
    __tablename__ = "nft_meta"

    contract: str = Field(primary_key=True)
    name: Optional[str] = None
    symbol: Optional[str] = None
    icon: Optional[str] = None
    reference: Optional[str] = None


class FtEvent(SQLModel, table=True):
    __tablename__ = "ft_events"

    event_id: str = Field(primary_key=True)
    contract_account_id: str
    affected_account_id: str = Field(index=True)


class NftEvent(SQLModel, table=True):
    __tablename__ = "nft_events"

    event_id: str = Field(primary_key=True)
    contract_account_id: str
    affected_account_id: str = Field(index=True)
