"""Account routes."""

from fastapi import APIRouter, Depends

from core.container import container
from models.account import AccountId, MethodName
from services.account import AccountService

router = APIRouter(prefix="/v1/account", tags=["account"])


def get_account_service() -> AccountService:
    return container.account_service()


@router.get("/{account}")
async def item(account: AccountId, service: AccountService = Depends(get_account_service)):
    """Account state with creation and deletion transactions."""
    return await service.item(account)


@router.get("/{account}/contract")
async def contract(account: AccountId, service: AccountService = Depends(get_account_service)):
    """Deployed contract code, access keys and locked flag."""
    return await service.contract(account)


@router.get("/{account}/contract/parse")
async def parse(account: AccountId, service: AccountService = Depends(get_account_service)):
    """Exported methods and probable standards of the deployed contract."""
    return await service.parse(account)


@router.get("/{account}/contract/deployments")
async def deployments(account: AccountId, service: AccountService = Depends(get_account_service)):
    """First and latest successful deployments."""
    return await service.deployments(account)


@router.get("/{account}/contract/{method}/action")
async def action(
    account: AccountId,
    method: MethodName,
    service: AccountService = Depends(get_account_service)
):
    """Arguments of one call to a contract method."""
    return await service.action(account, method)


@router.get("/{account}/inventory")
async def inventory(account: AccountId, service: AccountService = Depends(get_account_service)):
    """Fungible and non-fungible token holdings."""
    return await service.inventory(account)


@router.get("/{account}/tokens")
async def tokens(account: AccountId, service: AccountService = Depends(get_account_service)):
    """FT and NFT contracts the account interacted with."""
    return await service.tokens(account)
