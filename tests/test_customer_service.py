import pytest

from shop_ledger.core.errors import NotFound, ValidationError
from shop_ledger.db.store import CUSTOMERS, PARTIES, PARTY_TRANSACTIONS, TRANSACTIONS
from shop_ledger.models.customer import CustomerInput
from shop_ledger.models.party_transaction import PartyEntryType, PartyTransactionInput
from shop_ledger.models.transaction import PaymentMode, TransactionInput, TransactionType

from conftest import day, money


@pytest.mark.asyncio
async def test_save_customer_creates_with_zero_balance(customer_service):
    customer_id = await customer_service.save_customer(
        CustomerInput(name=" Meena ", phone="98111", address=" Station Road ", notes="pays monthly")
    )

    customer = await customer_service.get_customer(customer_id)
    assert customer.name == "Meena"
    assert customer.address == "Station Road"
    assert customer.current_balance == money(0)
    assert customer.last_activity is None


@pytest.mark.asyncio
async def test_customer_name_required(customer_service, store):
    with pytest.raises(ValidationError):
        await customer_service.save_customer(CustomerInput(name=""))
    assert store.records(CUSTOMERS) == []


@pytest.mark.asyncio
async def test_edit_missing_customer(customer_service, store):
    with pytest.raises(NotFound):
        await customer_service.save_customer(CustomerInput(id="missing", name="Ghost"))
    assert store.records(CUSTOMERS) == []


@pytest.mark.asyncio
async def test_edit_keeps_balance(customer_service, transaction_service, customer_id):
    await transaction_service.save_transaction(TransactionInput(
        customer_id=customer_id, type=TransactionType.CREDIT, amount=money(250), date=day(1)
    ))

    await customer_service.save_customer(CustomerInput(id=customer_id, name="Ramesh K", phone="1"))

    customer = await customer_service.get_customer(customer_id)
    assert customer.name == "Ramesh K"
    assert customer.current_balance == money(250)
    assert customer.last_activity == day(1)


@pytest.mark.asyncio
async def test_get_missing_customer(customer_service):
    with pytest.raises(NotFound):
        await customer_service.get_customer("missing")


@pytest.mark.asyncio
async def test_search_is_case_insensitive_over_all_fields(customer_service):
    await customer_service.save_customer(CustomerInput(name="Anil", phone="111", address="Gandhi Nagar"))
    await customer_service.save_customer(CustomerInput(name="Sunita", phone="222", notes="Wedding order"))

    assert [c.name for c in await customer_service.list_customers("GANDHI")] == ["Anil"]
    assert [c.name for c in await customer_service.list_customers("wedding")] == ["Sunita"]
    assert [c.name for c in await customer_service.list_customers("222")] == ["Sunita"]
    assert len(await customer_service.list_customers()) == 2


@pytest.mark.asyncio
async def test_delete_customer_removes_ledger_in_one_batch(customer_service, transaction_service, customer_id, store):
    for n in (1, 2, 3):
        await transaction_service.save_transaction(TransactionInput(
            customer_id=customer_id, type=TransactionType.CREDIT, amount=money(n * 10), date=day(n)
        ))
    batches_before = store.batch_calls

    await customer_service.delete_customer(customer_id)

    assert store.batch_calls == batches_before + 1
    assert customer_id not in store.collections[CUSTOMERS]
    assert store.records(TRANSACTIONS) == []


@pytest.mark.asyncio
async def test_delete_customer_leaves_other_ledgers(customer_service, transaction_service, customer_id, store):
    other_id = await customer_service.save_customer(CustomerInput(name="Other"))
    await transaction_service.save_transaction(TransactionInput(
        customer_id=other_id, type=TransactionType.CREDIT, amount=money(70), date=day(1)
    ))

    await customer_service.delete_customer(customer_id)

    assert [doc["customer_id"] for doc in store.records(TRANSACTIONS)] == [other_id]
    assert store.collections[CUSTOMERS][other_id]["current_balance"] == money(70)


@pytest.mark.asyncio
async def test_delete_customer_removes_direct_payment_mirrors(
    customer_service, transaction_service, party_service, customer_id, party_ids, store
):
    p1, _ = party_ids
    await party_service.save_party_transaction(
        PartyTransactionInput(party_id=p1, type=PartyEntryType.PURCHASE, amount=money(1000), date=day(1))
    )
    await transaction_service.save_transaction(TransactionInput(
        customer_id=customer_id,
        type=TransactionType.PAYMENT,
        amount=money(300),
        date=day(2),
        payment_mode=PaymentMode.PARTY_DIRECT,
        party_id=p1,
    ))
    assert store.collections[PARTIES][p1]["current_due"] == money(700)

    await customer_service.delete_customer(customer_id)

    assert [doc["type"] for doc in store.records(PARTY_TRANSACTIONS)] == ["PURCHASE"]
    assert store.collections[PARTIES][p1]["current_due"] == money(1000)
