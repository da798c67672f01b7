from fastapi import APIRouter, Depends, Query

from shop_ledger.core.auth import get_current_user
from shop_ledger.db.mongo import get_store
from shop_ledger.models.customer import CustomerBase, CustomerInput, CustomerResponse
from shop_ledger.models.transaction import TransactionResponse
from shop_ledger.models.user import UserInDB
from shop_ledger.services.customer_service import CustomerService
from shop_ledger.services.transaction_service import TransactionService

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("", response_model=list[CustomerResponse])
async def list_customers(
    q: str = Query("", description="Match against name, phone, address and notes"),
    current_user: UserInDB = Depends(get_current_user),
    store = Depends(get_store)
):
    customers = await CustomerService(store).list_customers(q)
    return [CustomerResponse.model_validate(c.model_dump()) for c in customers]


@router.post("", response_model=CustomerResponse, status_code=201)
async def create_customer(
    customer_data: CustomerBase,
    current_user: UserInDB = Depends(get_current_user),
    store = Depends(get_store)
):
    service = CustomerService(store)
    customer_id = await service.save_customer(CustomerInput(**customer_data.model_dump()))
    customer = await service.get_customer(customer_id)
    return CustomerResponse.model_validate(customer.model_dump())


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: str,
    current_user: UserInDB = Depends(get_current_user),
    store = Depends(get_store)
):
    customer = await CustomerService(store).get_customer(customer_id)
    return CustomerResponse.model_validate(customer.model_dump())


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: str,
    customer_data: CustomerBase,
    current_user: UserInDB = Depends(get_current_user),
    store = Depends(get_store)
):
    service = CustomerService(store)
    await service.save_customer(CustomerInput(id=customer_id, **customer_data.model_dump()))
    customer = await service.get_customer(customer_id)
    return CustomerResponse.model_validate(customer.model_dump())


@router.delete("/{customer_id}")
async def delete_customer(
    customer_id: str,
    current_user: UserInDB = Depends(get_current_user),
    store = Depends(get_store)
):
    """Delete a customer and their whole ledger."""
    await CustomerService(store).delete_customer(customer_id)
    return {"success": True}


@router.get("/{customer_id}/transactions", response_model=list[TransactionResponse])
async def list_customer_transactions(
    customer_id: str,
    current_user: UserInDB = Depends(get_current_user),
    store = Depends(get_store)
):
    """Customer ledger, newest first."""
    transactions = await TransactionService(store).list_transactions(customer_id)
    return [TransactionResponse.model_validate(t.model_dump()) for t in transactions]
