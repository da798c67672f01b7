"""Tests for whole-ledger recalculation against the store."""

import pytest
from pymongo.errors import AutoReconnect

from shop_ledger.db.store import CUSTOMERS, PARTIES, PARTY_TRANSACTIONS, TRANSACTIONS
from shop_ledger.services.recalculator import Recalculator

from conftest import day, money


def seed(store, collection, doc_id, **fields):
    store.collections[collection][doc_id] = {"_id": doc_id, **fields}


@pytest.mark.asyncio
async def test_recalculate_customer_writes_running_balances(store):
    seed(store, CUSTOMERS, "c1", name="Asha", current_balance=money(999))
    seed(store, TRANSACTIONS, "t2", customer_id="c1", type="PAYMENT", amount=money(200), date=day(2))
    seed(store, TRANSACTIONS, "t1", customer_id="c1", type="CREDIT", amount=money(500), date=day(1))
    seed(store, TRANSACTIONS, "other", customer_id="c2", type="CREDIT", amount=money(1), date=day(1))

    fold = await Recalculator(store).recalculate_customer("c1")

    assert fold.total == money(300)
    assert store.collections[TRANSACTIONS]["t1"]["balance_after"] == money(500)
    assert store.collections[TRANSACTIONS]["t2"]["balance_after"] == money(300)
    assert store.collections[CUSTOMERS]["c1"]["current_balance"] == money(300)
    assert store.collections[CUSTOMERS]["c1"]["last_activity"] == day(2)
    assert "balance_after" not in store.collections[TRANSACTIONS]["other"]


@pytest.mark.asyncio
async def test_recalculate_customer_with_no_transactions_resets_balance(store):
    seed(store, CUSTOMERS, "c1", name="Asha", current_balance=money(120), last_activity=day(9))

    await Recalculator(store).recalculate_customer("c1")

    assert store.collections[CUSTOMERS]["c1"]["current_balance"] == money(0)
    assert store.collections[CUSTOMERS]["c1"]["last_activity"] is None


@pytest.mark.asyncio
async def test_recalculate_customer_normalizes_legacy_types(store):
    seed(store, CUSTOMERS, "c1", name="Asha")
    seed(store, TRANSACTIONS, "t1", customer_id="c1", type="IN", amount=400, date=day(1))
    seed(store, TRANSACTIONS, "t2", customer_id="c1", type="OUT", amount=150.5, date=day(2))

    await Recalculator(store).recalculate_customer("c1")

    assert store.collections[TRANSACTIONS]["t1"]["type"] == "CREDIT"
    assert store.collections[TRANSACTIONS]["t2"]["type"] == "PAYMENT"
    assert store.collections[CUSTOMERS]["c1"]["current_balance"] == money("249.5")


@pytest.mark.asyncio
async def test_recalculation_is_one_batch(store):
    seed(store, CUSTOMERS, "c1", name="Asha")
    for i in range(5):
        seed(store, TRANSACTIONS, f"t{i}", customer_id="c1", type="CREDIT", amount=money(10), date=day(i + 1))

    await Recalculator(store).recalculate_customer("c1")

    assert store.batch_calls == 1


@pytest.mark.asyncio
async def test_recalculation_is_idempotent(store):
    seed(store, CUSTOMERS, "c1", name="Asha")
    seed(store, TRANSACTIONS, "t1", customer_id="c1", type="CREDIT", amount=money(800), date=day(1))
    seed(store, TRANSACTIONS, "t2", customer_id="c1", type="PAYMENT", amount=money(200), date=day(2))
    recalculator = Recalculator(store)

    await recalculator.recalculate_customer("c1")
    first = store.records(TRANSACTIONS), store.records(CUSTOMERS)
    await recalculator.recalculate_customer("c1")
    second = store.records(TRANSACTIONS), store.records(CUSTOMERS)

    assert first == second


@pytest.mark.asyncio
async def test_failed_batch_leaves_values_until_next_pass(store):
    seed(store, CUSTOMERS, "c1", name="Asha", current_balance=money(0))
    seed(store, TRANSACTIONS, "t1", customer_id="c1", type="CREDIT", amount=money(500), date=day(1))
    recalculator = Recalculator(store)

    store.fail_batches = 1
    with pytest.raises(AutoReconnect):
        await recalculator.recalculate_customer("c1")

    assert store.collections[CUSTOMERS]["c1"]["current_balance"] == money(0)

    await recalculator.recalculate_customer("c1")

    assert store.collections[CUSTOMERS]["c1"]["current_balance"] == money(500)
    assert store.collections[TRANSACTIONS]["t1"]["balance_after"] == money(500)


@pytest.mark.asyncio
async def test_recalculate_party_uses_due_signs(store):
    seed(store, PARTIES, "p1", name="Sharma Textiles")
    seed(store, PARTY_TRANSACTIONS, "buy", party_id="p1", type="PURCHASE", amount=money(1000), date=day(1))
    seed(store, PARTY_TRANSACTIONS, "pay", party_id="p1", type="PAYMENT", amount=money(400), date=day(3))
    seed(store, PARTY_TRANSACTIONS, "disc", party_id="p1", type="DISCOUNT", amount=money(100), date=day(2))

    fold = await Recalculator(store).recalculate_party("p1")

    assert fold.total == money(500)
    assert store.collections[PARTY_TRANSACTIONS]["buy"]["due_after"] == money(1000)
    assert store.collections[PARTY_TRANSACTIONS]["disc"]["due_after"] == money(900)
    assert store.collections[PARTY_TRANSACTIONS]["pay"]["due_after"] == money(500)
    assert store.collections[PARTIES]["p1"]["current_due"] == money(500)
    assert store.collections[PARTIES]["p1"]["last_activity"] == day(3)
