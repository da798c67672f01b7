from fastapi import APIRouter, Depends

from shop_ledger.core.auth import get_current_user
from shop_ledger.db.mongo import get_store
from shop_ledger.models.transaction import TransactionInput, TransactionResponse
from shop_ledger.models.user import UserInDB
from shop_ledger.services.transaction_service import TransactionService

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("", response_model=list[TransactionResponse])
async def list_all_transactions(
    current_user: UserInDB = Depends(get_current_user),
    store = Depends(get_store)
):
    transactions = await TransactionService(store).list_all_transactions()
    return [TransactionResponse.model_validate(t.model_dump()) for t in transactions]


@router.post("", response_model=TransactionResponse, status_code=201)
async def create_transaction(
    transaction_data: TransactionInput,
    current_user: UserInDB = Depends(get_current_user),
    store = Depends(get_store)
):
    """Record a credit or payment; the customer's balance is recalculated."""
    service = TransactionService(store)
    transaction_id = await service.save_transaction(transaction_data.model_copy(update={"id": None}))
    transaction = await service.get_transaction(transaction_id)
    return TransactionResponse.model_validate(transaction.model_dump())


@router.put("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    transaction_id: str,
    transaction_data: TransactionInput,
    current_user: UserInDB = Depends(get_current_user),
    store = Depends(get_store)
):
    service = TransactionService(store)
    await service.save_transaction(transaction_data.model_copy(update={"id": transaction_id}))
    transaction = await service.get_transaction(transaction_id)
    return TransactionResponse.model_validate(transaction.model_dump())


@router.delete("/{transaction_id}")
async def delete_transaction(
    transaction_id: str,
    current_user: UserInDB = Depends(get_current_user),
    store = Depends(get_store)
):
    await TransactionService(store).delete_transaction(transaction_id)
    return {"success": True}
