"""
INVENTORY LEDGER TESTS
Service-level tests for add / withdraw / update / delete / list, the ledger
rows they write, and the row-locking behaviour under parallel writers.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from medstock.core.config import get_settings
from medstock.core.exceptions import (
    ConflictError,
    InsufficientStockError,
    InventoryError,
    NotFoundError,
    ValidationError,
)
from medstock.models.drug import Drug, DrugCategory
from medstock.models.transaction import InventoryTransaction, TransactionType
from medstock.schemas.drug import DrugUpdate
from medstock.services import inventory_service
from medstock.services.inventory_service import (
    add_item,
    delete_item,
    get_item,
    list_items,
    update_item,
    withdraw,
)
from medstock.utils.datetime_utils import utc_today

from conftest import make_drug


def ledger(db, drug_id):
    return (
        db.query(InventoryTransaction)
        .filter(InventoryTransaction.drug_id == drug_id)
        .order_by(InventoryTransaction.id)
        .all()
    )


def current_quantity(db, drug_id):
    return db.get(Drug, drug_id, populate_existing=True).quantity


def as_update(drug, **overrides):
    fields = {
        "drug_code": drug.drug_code,
        "drug_name": drug.drug_name,
        "barcode": drug.barcode,
        "quantity": drug.quantity,
        "expiry_date": drug.expiry_date,
        "category": drug.category,
    }
    fields.update(overrides)
    return DrugUpdate(**fields)


# ==================== ADD ====================


def test_add_item_records_initial_add(db):
    drug = add_item(db, make_drug(quantity=50))

    assert drug.id is not None
    entries = ledger(db, drug.id)
    assert len(entries) == 1
    assert entries[0].type == TransactionType.INITIAL_ADD
    assert entries[0].quantity_change == 50
    assert entries[0].notes == "Initial stock entry"


def test_duplicate_code_in_same_category_conflicts(db):
    first = add_item(db, make_drug(drug_code="A1", drug_name="Gloves"))

    with pytest.raises(ConflictError):
        add_item(db, make_drug(drug_code="A1", drug_name="Masks"))

    survivor = get_item(db, first.id)
    assert survivor.drug_name == "Gloves"
    assert db.query(Drug).count() == 1
    assert db.query(InventoryTransaction).count() == 1


def test_same_code_in_another_category_is_allowed(db):
    add_item(db, make_drug(drug_code="A1", category=DrugCategory.PPE))
    add_item(db, make_drug(drug_code="A1", category=DrugCategory.AIRWAY))

    assert db.query(Drug).count() == 2


def test_duplicate_barcode_in_same_category_conflicts(db):
    add_item(db, make_drug(drug_code="A1", barcode="123"))

    with pytest.raises(ConflictError):
        add_item(db, make_drug(drug_code="A2", barcode="123"))


def test_items_without_barcode_never_collide(db):
    add_item(db, make_drug(drug_code="A1", barcode=None))
    add_item(db, make_drug(drug_code="A2", barcode=None))

    assert db.query(Drug).count() == 2


# ==================== WITHDRAW ====================


@pytest.mark.parametrize("amount", [0, -3, None])
def test_withdraw_requires_positive_amount(db, amount):
    drug = add_item(db, make_drug(quantity=10))

    with pytest.raises(ValidationError):
        withdraw(db, drug.id, amount)

    assert current_quantity(db, drug.id) == 10


def test_withdraw_unknown_item_is_not_found(db):
    with pytest.raises(NotFoundError):
        withdraw(db, 9999, 1)


def test_withdraw_more_than_available_leaves_state_unchanged(db):
    drug = add_item(db, make_drug(quantity=5))

    with pytest.raises(InsufficientStockError):
        withdraw(db, drug.id, 6)

    assert current_quantity(db, drug.id) == 5
    assert len(ledger(db, drug.id)) == 1


def test_withdraw_records_negative_change(db):
    drug = add_item(db, make_drug(quantity=5))

    assert withdraw(db, drug.id, 5, notes="Ambulance 3") == 0

    entries = ledger(db, drug.id)
    assert entries[-1].type == TransactionType.WITHDRAWAL
    assert entries[-1].quantity_change == -5
    assert entries[-1].notes == "Ambulance 3"


def test_parallel_withdrawals_are_serialised(session_factory):
    count = 8
    with session_factory() as db:
        drug_id = add_item(db, make_drug(quantity=count)).id

    def take_one(_):
        with session_factory() as db:
            return withdraw(db, drug_id, 1)

    with ThreadPoolExecutor(max_workers=count) as pool:
        results = list(pool.map(take_one, range(count)))

    assert sorted(results) == list(range(count))
    with session_factory() as db:
        assert current_quantity(db, drug_id) == 0
        withdrawals = [e for e in ledger(db, drug_id) if e.type == TransactionType.WITHDRAWAL]
        assert len(withdrawals) == count


def test_parallel_overdraw_never_goes_negative(session_factory):
    with session_factory() as db:
        drug_id = add_item(db, make_drug(quantity=3)).id

    def take_one(_):
        with session_factory() as db:
            try:
                withdraw(db, drug_id, 1)
                return True
            except InsufficientStockError:
                return False

    with ThreadPoolExecutor(max_workers=6) as pool:
        outcomes = list(pool.map(take_one, range(6)))

    assert outcomes.count(True) == 3
    with session_factory() as db:
        assert current_quantity(db, drug_id) == 0


def test_parallel_withdrawals_and_edits_keep_ledger_consistent(session_factory):
    with session_factory() as db:
        drug_id = add_item(db, make_drug(quantity=100)).id

    def work(i):
        with session_factory() as db:
            if i % 2:
                update_item(db, drug_id, DrugUpdate(**make_drug(quantity=50 + i).model_dump()))
            else:
                withdraw(db, drug_id, 3)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(work, range(8)))

    with session_factory() as db:
        entries = ledger(db, drug_id)
        assert len(entries) == 9
        assert current_quantity(db, drug_id) == sum(e.quantity_change for e in entries)

        running = 0
        for entry in entries:
            if entry.type == TransactionType.UPDATE and entry.quantity_change != 0:
                assert entry.notes == (
                    f"Quantity updated from {running} to {running + entry.quantity_change}"
                )
            running += entry.quantity_change


# ==================== UPDATE ====================


def test_update_records_quantity_delta(db):
    drug = add_item(db, make_drug(quantity=15))

    update_item(db, drug.id, as_update(drug, quantity=10))

    entry = ledger(db, drug.id)[-1]
    assert entry.type == TransactionType.UPDATE
    assert entry.quantity_change == -5
    assert entry.notes == "Quantity updated from 15 to 10"


def test_update_without_quantity_change_still_records_edit(db):
    drug = add_item(db, make_drug(quantity=10))

    update_item(db, drug.id, as_update(drug, drug_name="Nitrile Gloves"))

    assert get_item(db, drug.id).drug_name == "Nitrile Gloves"
    entry = ledger(db, drug.id)[-1]
    assert entry.quantity_change == 0
    assert entry.notes == "Item details updated (quantity unchanged)"


def test_update_unknown_item_is_not_found(db):
    drug = add_item(db, make_drug())
    with pytest.raises(NotFoundError):
        update_item(db, drug.id + 100, as_update(drug))


def test_update_into_existing_code_conflicts_and_rolls_back(db):
    add_item(db, make_drug(drug_code="A1", drug_name="Gloves"))
    other = add_item(db, make_drug(drug_code="B2", drug_name="Masks", quantity=7))

    with pytest.raises(ConflictError):
        update_item(db, other.id, as_update(other, drug_code="A1", quantity=1))

    unchanged = db.get(Drug, other.id, populate_existing=True)
    assert unchanged.drug_code == "B2"
    assert unchanged.quantity == 7
    assert len(ledger(db, other.id)) == 1


# ==================== DELETE ====================


def test_delete_cascades_transactions(db):
    drug = add_item(db, make_drug(quantity=10))
    withdraw(db, drug.id, 2)

    delete_item(db, drug.id)

    assert db.get(Drug, drug.id) is None
    assert db.query(InventoryTransaction).filter_by(drug_id=drug.id).count() == 0


def test_second_delete_is_not_found(db):
    drug = add_item(db, make_drug())
    delete_item(db, drug.id)

    with pytest.raises(NotFoundError):
        delete_item(db, drug.id)


# ==================== LIST ====================


def test_list_requires_category(db):
    with pytest.raises(ValidationError):
        list_items(db, None)
    with pytest.raises(ValidationError):
        list_items(db, "Cardiology")


def test_list_rejects_unknown_filter(db):
    with pytest.raises(ValidationError):
        list_items(db, DrugCategory.PPE, "cheap")


def test_list_is_ordered_by_name_within_category(db):
    add_item(db, make_drug(drug_code="C", drug_name="Masks"))
    add_item(db, make_drug(drug_code="A", drug_name="Aprons"))
    add_item(db, make_drug(drug_code="B", drug_name="Gowns", category=DrugCategory.AIRWAY))

    names = [d.drug_name for d in list_items(db, "PPE")]
    assert names == ["Aprons", "Masks"]


def test_expiry_filters(db):
    today = utc_today()
    add_item(db, make_drug(drug_code="1", drug_name="Expired", expiry_date=today - timedelta(days=1)))
    add_item(db, make_drug(drug_code="2", drug_name="Today", expiry_date=today))
    add_item(db, make_drug(drug_code="3", drug_name="Edge", expiry_date=today + timedelta(days=90)))
    add_item(db, make_drug(drug_code="4", drug_name="Later", expiry_date=today + timedelta(days=91)))
    add_item(db, make_drug(drug_code="5", drug_name="Undated", expiry_date=None))

    expiring = [d.drug_name for d in list_items(db, "PPE", "expiring_soon")]
    expired = [d.drug_name for d in list_items(db, "PPE", "expired")]

    assert expiring == ["Edge", "Today"]
    assert expired == ["Expired"]


def test_low_stock_scenario(db):
    drug = add_item(db, make_drug(drug_code="A1", drug_name="Gloves", quantity=50))

    withdraw(db, drug.id, 10)
    assert list_items(db, "PPE", "low_stock") == []

    assert withdraw(db, drug.id, 25) == 15
    low = list_items(db, "PPE", "low_stock")
    assert [d.id for d in low] == [drug.id]


# ==================== LEDGER POLICY ====================


def _broken_ledger_entry(**kwargs):
    kwargs["drug_id"] = None  # violates NOT NULL on insert
    return InventoryTransaction(**kwargs)


def test_strict_ledger_failure_rolls_back_stock_change(db, monkeypatch):
    drug = add_item(db, make_drug(quantity=10))
    monkeypatch.setattr(inventory_service, "InventoryTransaction", _broken_ledger_entry)

    with pytest.raises(InventoryError):
        withdraw(db, drug.id, 4)

    assert current_quantity(db, drug.id) == 10


def test_best_effort_ledger_failure_keeps_stock_change(db, monkeypatch):
    monkeypatch.setattr(get_settings(), "strict_audit_ledger", False)
    drug = add_item(db, make_drug(quantity=10))
    assert len(ledger(db, drug.id)) == 1

    monkeypatch.setattr(inventory_service, "InventoryTransaction", _broken_ledger_entry)
    assert withdraw(db, drug.id, 4) == 6

    assert current_quantity(db, drug.id) == 6
    assert len(ledger(db, drug.id)) == 1
