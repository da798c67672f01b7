from fastapi import APIRouter, Depends, Query

from shop_ledger.core.auth import get_current_user
from shop_ledger.db.mongo import get_store
from shop_ledger.models.party import PartyBase, PartyInput, PartyResponse
from shop_ledger.models.party_transaction import (
    PartyTransactionInput,
    PartyTransactionResponse,
)
from shop_ledger.models.user import UserInDB
from shop_ledger.services.party_service import PartyService

router = APIRouter(tags=["parties"])


@router.get("/parties", response_model=list[PartyResponse])
async def list_parties(
    q: str = Query("", description="Match against name, phone and notes"),
    current_user: UserInDB = Depends(get_current_user),
    store = Depends(get_store)
):
    parties = await PartyService(store).list_parties(q)
    return [PartyResponse.model_validate(p.model_dump()) for p in parties]


@router.post("/parties", response_model=PartyResponse, status_code=201)
async def create_party(
    party_data: PartyBase,
    current_user: UserInDB = Depends(get_current_user),
    store = Depends(get_store)
):
    service = PartyService(store)
    party_id = await service.save_party(PartyInput(**party_data.model_dump()))
    party = await service.get_party(party_id)
    return PartyResponse.model_validate(party.model_dump())


@router.get("/parties/{party_id}", response_model=PartyResponse)
async def get_party(
    party_id: str,
    current_user: UserInDB = Depends(get_current_user),
    store = Depends(get_store)
):
    party = await PartyService(store).get_party(party_id)
    return PartyResponse.model_validate(party.model_dump())


@router.put("/parties/{party_id}", response_model=PartyResponse)
async def update_party(
    party_id: str,
    party_data: PartyBase,
    current_user: UserInDB = Depends(get_current_user),
    store = Depends(get_store)
):
    service = PartyService(store)
    await service.save_party(PartyInput(id=party_id, **party_data.model_dump()))
    party = await service.get_party(party_id)
    return PartyResponse.model_validate(party.model_dump())


@router.delete("/parties/{party_id}")
async def delete_party(
    party_id: str,
    current_user: UserInDB = Depends(get_current_user),
    store = Depends(get_store)
):
    await PartyService(store).delete_party(party_id)
    return {"success": True}


@router.get("/parties/{party_id}/transactions", response_model=list[PartyTransactionResponse])
async def list_party_transactions(
    party_id: str,
    current_user: UserInDB = Depends(get_current_user),
    store = Depends(get_store)
):
    """Party ledger, newest first, including customer-direct entries."""
    transactions = await PartyService(store).list_party_transactions(party_id)
    return [PartyTransactionResponse.model_validate(t.model_dump()) for t in transactions]


@router.post("/party-transactions", response_model=PartyTransactionResponse, status_code=201)
async def create_party_transaction(
    transaction_data: PartyTransactionInput,
    current_user: UserInDB = Depends(get_current_user),
    store = Depends(get_store)
):
    """Record a purchase, payment or discount; the party due is recalculated."""
    service = PartyService(store)
    transaction_id = await service.save_party_transaction(
        transaction_data.model_copy(update={"id": None})
    )
    transaction = await service.get_party_transaction(transaction_id)
    return PartyTransactionResponse.model_validate(transaction.model_dump())


@router.put("/party-transactions/{transaction_id}", response_model=PartyTransactionResponse)
async def update_party_transaction(
    transaction_id: str,
    transaction_data: PartyTransactionInput,
    current_user: UserInDB = Depends(get_current_user),
    store = Depends(get_store)
):
    service = PartyService(store)
    await service.save_party_transaction(
        transaction_data.model_copy(update={"id": transaction_id})
    )
    transaction = await service.get_party_transaction(transaction_id)
    return PartyTransactionResponse.model_validate(transaction.model_dump())


@router.delete("/party-transactions/{transaction_id}")
async def delete_party_transaction(
    transaction_id: str,
    current_user: UserInDB = Depends(get_current_user),
    store = Depends(get_store)
):
    await PartyService(store).delete_party_transaction(transaction_id)
    return {"success": True}
