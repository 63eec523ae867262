"""Inventory queries executed on PostgreSQL through the real Database service.

These need LATERAL joins and JSON_BUILD_OBJECT, so they run only when
TEST_DATABASE_URL points at a disposable database, e.g.
postgresql+asyncpg://postgres@localhost:5432/explorer_test
"""

import os

import pytest
from sqlmodel import SQLModel

from core.config import Settings
from core.database import Database
from models.explorer import FtHolderMonthly, FtMeta, NftHolderDaily, NftMeta
from services import queries
from services.account import AccountService
from fakes import FakeRpc

DATABASE_URL = os.getenv("TEST_DATABASE_URL")

pytestmark = pytest.mark.skipif(not DATABASE_URL, reason="TEST_DATABASE_URL is not set")


@pytest.fixture
async def pg_db():
    database = Database(Settings(
        _env_file=None,
        database_url=DATABASE_URL or "",
        database_pool_size=5,
        database_max_overflow=10,
    ))
    await database.startup()
    async with database.engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)

    yield database

    async with database.engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await database.shutdown()


async def insert(database, model, rows):
    async with database.engine.begin() as conn:
        await conn.execute(model.__table__.insert(), rows)


def ft_meta(symbol, decimals):
    return {
        "name": symbol.title(), "symbol": symbol, "decimals": decimals,
        "icon": None, "reference": None, "price": None,
    }


@pytest.fixture
async def holdings(pg_db):
    await insert(pg_db, FtHolderMonthly, [
        {"account": "alice.near", "contract": "usdt.near", "month": "2024-01", "amount": 100},
        {"account": "alice.near", "contract": "usdt.near", "month": "2024-02", "amount": -40},
        {"account": "alice.near", "contract": "wrap.near", "month": "2024-01", "amount": 500},
        {"account": "alice.near", "contract": "zero.near", "month": "2024-01", "amount": 7},
        {"account": "alice.near", "contract": "zero.near", "month": "2024-02", "amount": -7},
        {"account": "alice.near", "contract": "unlisted.near", "month": "2024-01", "amount": 1000},
        {"account": "bob.near", "contract": "usdt.near", "month": "2024-01", "amount": 9999},
    ])
    await insert(pg_db, FtMeta, [
        {"contract": "usdt.near", **ft_meta("usdt", 6)},
        {"contract": "wrap.near", **ft_meta("wnear", 24)},
        {"contract": "zero.near", **ft_meta("zero", 18)},
    ])
    await insert(pg_db, NftHolderDaily, [
        {"account": "alice.near", "contract": "paras.near", "quantity": 2},
        {"account": "alice.near", "contract": "mintbase.near", "quantity": 5},
        {"account": "alice.near", "contract": "orphan.near", "quantity": 9},
    ])
    await insert(pg_db, NftMeta, [
        {"contract": "paras.near", "name": "Paras", "symbol": "PARAS", "icon": None, "reference": None},
        {"contract": "mintbase.near", "name": "Mintbase", "symbol": "MB", "icon": None, "reference": None},
    ])
    return pg_db


async def test_ft_inventory_orders_by_balance_and_attaches_metadata(holdings):
    rows = await holdings.fetch(queries.FT_INVENTORY.bind(account="alice.near"))

    assert rows == [
        {"contract": "wrap.near", "amount": 500, "ft_meta": ft_meta("wnear", 24)},
        {"contract": "usdt.near", "amount": 60, "ft_meta": ft_meta("usdt", 6)},
    ]


async def test_ft_holding_without_metadata_is_dropped(holdings):
    rows = await holdings.fetch(queries.FT_INVENTORY.bind(account="alice.near"))

    contracts = [row["contract"] for row in rows]
    assert "unlisted.near" not in contracts
    assert "zero.near" not in contracts
    assert len(contracts) == len(set(contracts))


async def test_nft_inventory_orders_by_quantity_and_drops_missing_metadata(holdings):
    rows = await holdings.fetch(queries.NFT_INVENTORY.bind(account="alice.near"))

    assert [(row["contract"], row["quantity"]) for row in rows] == [
        ("mintbase.near", 5),
        ("paras.near", 2),
    ]
    assert rows[0]["nft_meta"] == {"name": "Mintbase", "symbol": "MB", "icon": None, "reference": None}


async def test_inventory_for_account_without_holdings_is_empty(holdings):
    assert await holdings.fetch(queries.FT_INVENTORY.bind(account="ghost.near")) == []
    assert await holdings.fetch(queries.NFT_INVENTORY.bind(account="ghost.near")) == []


async def test_inventory_endpoint_on_postgres(holdings, fetcher):
    service = AccountService(holdings, FakeRpc(), fetcher)

    response = await service.inventory("alice.near")

    inventory = response["inventory"][0]
    assert [row["contract"] for row in inventory["fts"]] == ["wrap.near", "usdt.near"]
    assert [row["contract"] for row in inventory["nfts"]] == ["mintbase.near", "paras.near"]
