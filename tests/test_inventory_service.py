import threading

import pytest
from sqlalchemy.orm import sessionmaker

from sweetshop.database import create_db_engine, init_db
from sweetshop.exceptions import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from sweetshop.models import MAX_QUANTITY
from sweetshop.schemas import SearchCriteria, SweetUpdate
from sweetshop.services import inventory_service


# =============================================================================
# CRUD
# =============================================================================


def test_create_then_get_round_trips_fields(db_session, make_sweet):
    created = make_sweet()
    fetched = inventory_service.get_sweet(db_session, created.id)

    assert (fetched.name, fetched.category, fetched.price, fetched.quantity) == (
        "Chocolate Cake",
        "Cakes",
        15.99,
        10,
    )


def test_create_duplicate_name_conflicts(make_sweet):
    make_sweet()
    with pytest.raises(ConflictError):
        make_sweet(category="Other", price=1.0, quantity=1)


@pytest.mark.parametrize(
    "fields",
    [
        {"name": ""},
        {"category": ""},
        {"price": None},
        {"quantity": None},
        {"price": -0.01},
        {"quantity": -1},
        {"quantity": 1.5},
        {"quantity": 10**20},
        {"price": float("inf")},
        {"price": float("nan")},
    ],
)
def test_create_rejects_invalid_input(db_session, fields):
    data = {"name": "Fudge", "category": "Candy", "price": 2.5, "quantity": 3}
    data.update(fields)
    with pytest.raises(ValidationError):
        inventory_service.create_sweet(db_session, **data)
    assert inventory_service.list_sweets(db_session) == []


def test_get_missing_sweet(db_session):
    with pytest.raises(NotFoundError):
        inventory_service.get_sweet(db_session, 999)


def test_list_returns_every_sweet(db_session, make_sweet):
    make_sweet(name="A")
    make_sweet(name="B")
    assert [s.name for s in inventory_service.list_sweets(db_session)] == ["A", "B"]


def test_partial_update_preserves_unspecified_fields(db_session, make_sweet):
    sweet = make_sweet()
    updated = inventory_service.update_sweet(db_session, sweet.id, SweetUpdate(price=12.5))

    assert updated.price == 12.5
    assert updated.name == "Chocolate Cake"
    assert updated.category == "Cakes"
    assert updated.quantity == 10


def test_update_without_fields_is_a_no_op(db_session, make_sweet):
    sweet = make_sweet()
    unchanged = inventory_service.update_sweet(db_session, sweet.id, SweetUpdate())
    assert (unchanged.name, unchanged.price, unchanged.quantity) == ("Chocolate Cake", 15.99, 10)


def test_update_rename_to_taken_name_conflicts(db_session, make_sweet):
    make_sweet(name="Toffee")
    sweet = make_sweet(name="Fudge")

    with pytest.raises(ConflictError):
        inventory_service.update_sweet(db_session, sweet.id, SweetUpdate(name="Toffee"))
    assert inventory_service.get_sweet(db_session, sweet.id).name == "Fudge"


def test_update_keeping_own_name_is_allowed(db_session, make_sweet):
    sweet = make_sweet(name="Fudge")
    updated = inventory_service.update_sweet(
        db_session, sweet.id, SweetUpdate(name="Fudge", quantity=4)
    )
    assert updated.quantity == 4


def test_update_rejects_negative_values_and_nulls(db_session, make_sweet):
    sweet = make_sweet()
    with pytest.raises(ValidationError):
        inventory_service.update_sweet(db_session, sweet.id, SweetUpdate.model_construct(price=-1.0))
    with pytest.raises(ValidationError):
        inventory_service.update_sweet(db_session, sweet.id, SweetUpdate(quantity=None))
    with pytest.raises(ValidationError):
        inventory_service.update_sweet(
            db_session, sweet.id, SweetUpdate.model_construct(quantity=10**20)
        )
    assert inventory_service.get_sweet(db_session, sweet.id).quantity == 10


def test_update_missing_sweet(db_session):
    with pytest.raises(NotFoundError):
        inventory_service.update_sweet(db_session, 123, SweetUpdate(price=1.0))


def test_delete_removes_sweet(db_session, make_sweet):
    sweet = make_sweet()
    assert inventory_service.delete_sweet(db_session, sweet.id) == {
        "message": "Sweet deleted successfully"
    }
    with pytest.raises(NotFoundError):
        inventory_service.get_sweet(db_session, sweet.id)
    with pytest.raises(NotFoundError):
        inventory_service.delete_sweet(db_session, sweet.id)


# =============================================================================
# SEARCH
# =============================================================================


@pytest.fixture
def catalogue(make_sweet):
    make_sweet(name="Chocolate Cake", category="Cakes", price=15.99, quantity=10)
    make_sweet(name="Dark Chocolate Bar", category="Chocolate", price=5.0, quantity=20)
    make_sweet(name="Gummy Bears", category="Candy", price=10.0, quantity=50)
    make_sweet(name="Lollipop", category="Candy", price=1.5, quantity=100)


def _names(sweets):
    return sorted(s.name for s in sweets)


def test_search_name_is_case_insensitive_substring(db_session, catalogue):
    result = inventory_service.search_sweets(db_session, SearchCriteria(name="CHOCO"))
    assert _names(result) == ["Chocolate Cake", "Dark Chocolate Bar"]


def test_search_category(db_session, catalogue):
    result = inventory_service.search_sweets(db_session, SearchCriteria(category="candy"))
    assert _names(result) == ["Gummy Bears", "Lollipop"]


def test_search_price_range_is_inclusive(db_session, catalogue):
    result = inventory_service.search_sweets(
        db_session, SearchCriteria(min_price=5, max_price=10)
    )
    assert _names(result) == ["Dark Chocolate Bar", "Gummy Bears"]


def test_search_criteria_are_combined(db_session, catalogue):
    result = inventory_service.search_sweets(
        db_session, SearchCriteria(category="candy", max_price=5)
    )
    assert _names(result) == ["Lollipop"]


def test_search_without_criteria_returns_everything(db_session, catalogue):
    assert len(inventory_service.search_sweets(db_session, SearchCriteria(name="  "))) == 4


def test_search_without_match_is_empty(db_session, catalogue):
    assert inventory_service.search_sweets(db_session, SearchCriteria(name="licorice")) == []


def test_search_treats_wildcards_literally(db_session, catalogue):
    assert inventory_service.search_sweets(db_session, SearchCriteria(name="%")) == []


# =============================================================================
# STOCK
# =============================================================================


def test_purchase_decrements_quantity(db_session, make_sweet):
    sweet = make_sweet(quantity=5)
    result = inventory_service.purchase_sweet(db_session, sweet.id, 2)

    assert result.sweet.quantity == 3
    assert result.message == "Successfully purchased 2 Chocolate Cake(s)"


def test_purchase_defaults_to_one_unit(db_session, make_sweet):
    sweet = make_sweet(quantity=5)
    assert inventory_service.purchase_sweet(db_session, sweet.id).sweet.quantity == 4


def test_purchase_of_entire_stock_is_allowed(db_session, make_sweet):
    sweet = make_sweet(quantity=5)
    assert inventory_service.purchase_sweet(db_session, sweet.id, 5).sweet.quantity == 0


def test_purchase_beyond_stock_leaves_quantity_unchanged(db_session, make_sweet):
    sweet = make_sweet(quantity=5)
    with pytest.raises(InsufficientStockError):
        inventory_service.purchase_sweet(db_session, sweet.id, 6)
    assert inventory_service.get_sweet(db_session, sweet.id).quantity == 5


def test_purchase_beyond_integer_range_is_insufficient_stock(db_session, make_sweet):
    sweet = make_sweet(quantity=5)
    with pytest.raises(InsufficientStockError):
        inventory_service.purchase_sweet(db_session, sweet.id, 10**20)
    assert inventory_service.get_sweet(db_session, sweet.id).quantity == 5

    with pytest.raises(NotFoundError):
        inventory_service.purchase_sweet(db_session, 404, 10**20)


@pytest.mark.parametrize("quantity", [0, -1, 1.5, True])
def test_purchase_rejects_non_positive_amounts(db_session, make_sweet, quantity):
    sweet = make_sweet(quantity=5)
    with pytest.raises(ValidationError):
        inventory_service.purchase_sweet(db_session, sweet.id, quantity)
    assert inventory_service.get_sweet(db_session, sweet.id).quantity == 5


def test_purchase_missing_sweet(db_session):
    with pytest.raises(NotFoundError):
        inventory_service.purchase_sweet(db_session, 404, 1)


def test_restock_increments_quantity(db_session, make_sweet):
    sweet = make_sweet(quantity=5)
    result = inventory_service.restock_sweet(db_session, sweet.id, 10)

    assert result.sweet.quantity == 15
    assert result.message == "Successfully restocked 10 Chocolate Cake(s)"


@pytest.mark.parametrize("quantity", [None, 0, -3])
def test_restock_rejects_missing_or_non_positive_amounts(db_session, make_sweet, quantity):
    sweet = make_sweet(quantity=5)
    with pytest.raises(ValidationError):
        inventory_service.restock_sweet(db_session, sweet.id, quantity)


def test_restock_missing_sweet(db_session):
    with pytest.raises(NotFoundError):
        inventory_service.restock_sweet(db_session, 404, 3)


def test_restock_beyond_integer_range_is_rejected(db_session, make_sweet):
    sweet = make_sweet(quantity=5)
    with pytest.raises(ValidationError):
        inventory_service.restock_sweet(db_session, sweet.id, 10**20)
    with pytest.raises(ValidationError):
        inventory_service.restock_sweet(db_session, sweet.id, MAX_QUANTITY)
    assert inventory_service.get_sweet(db_session, sweet.id).quantity == 5


def test_restock_up_to_the_integer_limit(db_session, make_sweet):
    sweet = make_sweet(quantity=5)
    result = inventory_service.restock_sweet(db_session, sweet.id, MAX_QUANTITY - 5)
    assert result.sweet.quantity == MAX_QUANTITY


def test_mixed_stock_operations_never_go_negative(db_session, make_sweet):
    sweet = make_sweet(quantity=3)
    expected = 3
    for op, amount in [("buy", 2), ("buy", 2), ("restock", 4), ("buy", 5), ("buy", 1), ("buy", 1)]:
        if op == "restock":
            inventory_service.restock_sweet(db_session, sweet.id, amount)
            expected += amount
        elif amount <= expected:
            inventory_service.purchase_sweet(db_session, sweet.id, amount)
            expected -= amount
        else:
            with pytest.raises(InsufficientStockError):
                inventory_service.purchase_sweet(db_session, sweet.id, amount)
        current = inventory_service.get_sweet(db_session, sweet.id).quantity
        assert current == expected
        assert current >= 0


def test_concurrent_purchases_cannot_oversell(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'shop.db'}")
    init_db(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    with factory() as db:
        sweet_id = inventory_service.create_sweet(db, "Last Truffles", "Chocolate", 3.0, 5).id

    buyers = 10
    barrier = threading.Barrier(buyers)
    outcomes = []
    lock = threading.Lock()

    def buy():
        with factory() as db:
            barrier.wait()
            try:
                inventory_service.purchase_sweet(db, sweet_id, 1)
                outcome = "ok"
            except InsufficientStockError:
                outcome = "insufficient"
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=buy) for _ in range(buyers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    with factory() as db:
        remaining = inventory_service.get_sweet(db, sweet_id).quantity

    engine.dispose()
    assert outcomes.count("ok") == 5
    assert outcomes.count("insufficient") == 5
    assert remaining == 0
