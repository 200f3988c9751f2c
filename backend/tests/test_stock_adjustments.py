"""
Stock adjustment ledger tests.

Verifies:
- IN and ADJUSTMENT add, OUT subtracts
- stock equals initial plus the sum of stored deltas
- change must be a positive integer, type must be known
- stock is not clamped at zero
- each adjustment writes an ADJUST_STOCK audit entry with before/after
"""

import pytest

from studiopos.errors import AuthorizationError, NotFoundError, ValidationError
from studiopos.extensions import db
from studiopos.models import AuditLog, Product, StockAdjustment
from studiopos.services import inventory_service
from studiopos.services.criteria import ListCriteria


@pytest.fixture
def stocked_product(db_session, product):
    product.stock = 10
    db_session.commit()
    return product


def test_in_then_out(db_session, cashier, stocked_product):
    adj_in = inventory_service.adjust_stock(cashier, stocked_product.id, 5, "IN")
    assert db.session.get(Product, stocked_product.id).stock == 15
    assert adj_in.change == 5

    adj_out = inventory_service.adjust_stock(cashier, stocked_product.id, 3, "OUT")
    assert db.session.get(Product, stocked_product.id).stock == 12
    assert adj_out.change == -3


def test_adjustment_type_adds(db_session, cashier, stocked_product):
    adj = inventory_service.adjust_stock(cashier, stocked_product.id, 4, "adjustment", reason="opname")
    assert adj.type == "ADJUSTMENT"
    assert adj.change == 4
    assert db.session.get(Product, stocked_product.id).stock == 14


def test_stock_equals_initial_plus_deltas(db_session, cashier, stocked_product):
    for change, kind in [(5, "IN"), (2, "OUT"), (7, "ADJUSTMENT"), (11, "OUT"), (1, "IN")]:
        inventory_service.adjust_stock(cashier, stocked_product.id, change, kind)

    deltas = [a.change for a in db_session.query(StockAdjustment).filter_by(product_id=stocked_product.id)]
    assert db.session.get(Product, stocked_product.id).stock == 10 + sum(deltas) == 10


def test_out_may_drive_stock_negative(db_session, cashier, stocked_product):
    inventory_service.adjust_stock(cashier, stocked_product.id, 25, "OUT")
    assert db.session.get(Product, stocked_product.id).stock == -15


@pytest.mark.parametrize("change", [0, -3, 1.5, True, "2.0", "1e3", None])
def test_change_must_be_positive_integer(db_session, cashier, stocked_product, change):
    with pytest.raises(ValidationError):
        inventory_service.adjust_stock(cashier, stocked_product.id, change, "IN")
    assert db.session.get(Product, stocked_product.id).stock == 10
    assert db_session.query(StockAdjustment).count() == 0


def test_unknown_type_is_rejected(db_session, cashier, stocked_product):
    with pytest.raises(ValidationError):
        inventory_service.adjust_stock(cashier, stocked_product.id, 1, "RESTOCK")


def test_missing_product_is_not_found(db_session, cashier):
    with pytest.raises(NotFoundError):
        inventory_service.adjust_stock(cashier, 4242, 1, "IN")


def test_adjustment_records_actor_and_reference(db_session, cashier, stocked_product):
    adj = inventory_service.adjust_stock(
        cashier, stocked_product.id, 2, "OUT", reason=" spilled ", reference="WASTE-7",
    )

    data = adj.to_dict(expand=True)
    assert data["user"]["id"] == cashier.user_id
    assert data["product"]["id"] == stocked_product.id
    assert data["reason"] == "spilled"
    assert data["reference"] == "WASTE-7"


def test_adjustment_is_audited(db_session, cashier, stocked_product):
    adj = inventory_service.adjust_stock(cashier, stocked_product.id, 5, "IN", reason="restock")

    entry = db_session.query(AuditLog).filter_by(action="ADJUST_STOCK", entity_id=stocked_product.id).one()
    payload = entry.to_dict()
    assert payload["entity"] == "PRODUCT"
    assert payload["old_value"] == {"stock": 10}
    assert payload["new_value"]["stockBefore"] == 10
    assert payload["new_value"]["stockAfter"] == 15
    assert payload["new_value"]["adjustmentId"] == adj.id
    assert payload["new_value"]["change"] == 5
    assert payload["new_value"]["type"] == "IN"
    assert payload["new_value"]["reason"] == "restock"
    assert payload["new_value"]["performedByRole"] == "CASHIER"


def test_public_listing_paginates_newest_first(db_session, cashier, stocked_product):
    for n in range(1, 6):
        inventory_service.adjust_stock(cashier, stocked_product.id, n, "IN")

    page1 = inventory_service.list_stock_adjustments(page=1, limit=2)
    page3 = inventory_service.list_stock_adjustments(page=3, limit=2)

    assert page1["pagination"]["total"] == 5
    assert page1["pagination"]["total_pages"] == 3
    assert [a["change"] for a in page1["items"]] == [5, 4]
    assert [a["change"] for a in page3["items"]] == [1]
    assert page3["pagination"]["has_next"] is False


def test_listing_filters_by_product(db_session, cashier, stocked_product, second_product):
    inventory_service.adjust_stock(cashier, stocked_product.id, 1, "IN")
    inventory_service.adjust_stock(cashier, second_product.id, 2, "IN")

    result = inventory_service.list_stock_adjustments(ListCriteria(product_id=second_product.id))
    assert [a["product_id"] for a in result["items"]] == [second_product.id]


def test_admin_listing_requires_admin(db_session, cashier, admin, stocked_product):
    inventory_service.adjust_stock(cashier, stocked_product.id, 1, "IN")

    with pytest.raises(AuthorizationError):
        inventory_service.list_stock_adjustments_admin(cashier)

    assert len(inventory_service.list_stock_adjustments_admin(admin)) == 1
