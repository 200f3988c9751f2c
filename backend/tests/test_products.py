"""
Product catalog tests.

Verifies:
- Catalog mutations are admin-only
- Payload validation (policy allowlist, amounts, SKU uniqueness)
- Delete is refused for products with order or adjustment history
- Archive always succeeds and hides the product from listings
"""

import pytest

from studiopos.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from studiopos.extensions import db
from studiopos.models import AuditLog, Product
from studiopos.services import checkout_service, inventory_service, products_service


def _payload(category, **overrides):
    payload = {
        "category_id": category.id,
        "name": "Matcha Latte",
        "price_cents": 12000,
        "cost_price_cents": 5000,
        "sku": "FB-MATCHA",
    }
    payload.update(overrides)
    return payload


def test_admin_can_add_product(db_session, admin, category):
    p = products_service.add_product(admin, _payload(category, stock=8))

    assert p.id is not None
    assert p.stock == 8
    assert p.is_menu_item is True
    assert p.is_archived is False

    entry = db_session.query(AuditLog).filter_by(entity="PRODUCT", entity_id=p.id).one()
    assert entry.action == "CREATE"


def test_cashier_cannot_add_product(db_session, cashier, category):
    with pytest.raises(AuthorizationError):
        products_service.add_product(cashier, _payload(category))
    assert db_session.query(Product).count() == 0


def test_unknown_field_is_rejected(db_session, admin, category):
    with pytest.raises(ValidationError):
        products_service.add_product(admin, _payload(category, is_archived=True))


def test_negative_price_is_rejected(db_session, admin, category):
    with pytest.raises(ValidationError):
        products_service.add_product(admin, _payload(category, price_cents=-1))


def test_duplicate_sku_is_conflict(db_session, admin, category, product):
    with pytest.raises(ConflictError):
        products_service.add_product(admin, _payload(category, sku=product.sku))


def test_blank_sku_is_stored_as_null(db_session, admin, category):
    a = products_service.add_product(admin, _payload(category, sku=""))
    b = products_service.add_product(admin, _payload(category, sku="", name="Other"))
    assert a.sku is None and b.sku is None


def test_update_product_is_partial_and_audited(db_session, admin, product):
    updated = products_service.update_product(admin, product.id, {"price_cents": 11000})

    assert updated.price_cents == 11000
    assert updated.name == "Iced Latte"

    entry = db_session.query(AuditLog).filter_by(entity="PRODUCT", action="UPDATE").one()
    payload = entry.to_dict()
    assert payload["old_value"]["price_cents"] == 10000
    assert payload["new_value"]["price_cents"] == 11000


def test_update_cannot_touch_stock(db_session, admin, product):
    with pytest.raises(ValidationError):
        products_service.update_product(admin, product.id, {"stock": 100})
    assert db.session.get(Product, product.id).stock == 5


def test_update_missing_product_is_not_found(db_session, admin):
    with pytest.raises(NotFoundError):
        products_service.update_product(admin, 999, {"name": "Ghost"})


def test_toggle_menu_item(db_session, admin, product):
    products_service.toggle_menu_item(admin, product.id, False)
    assert db.session.get(Product, product.id).is_menu_item is False

    with pytest.raises(ValidationError):
        products_service.toggle_menu_item(admin, product.id, "no")


def test_delete_unreferenced_product(db_session, admin, product):
    products_service.delete_product(admin, product.id)

    assert db.session.get(Product, product.id) is None
    entry = db_session.query(AuditLog).filter_by(entity="PRODUCT", action="DELETE").one()
    assert entry.to_dict()["old_value"]["name"] == "Iced Latte"


def test_delete_sold_product_is_refused(db_session, admin, cashier, product, open_shift):
    checkout_service.process_transaction(
        cashier,
        [{"product_id": product.id, "quantity": 1, "price_cents": 10000}],
        [{"method": "CASH", "amount_cents": 10000}],
    )

    with pytest.raises(ValidationError) as exc:
        products_service.delete_product(admin, product.id)

    assert "cannot be deleted" in exc.value.message
    assert "referenced by existing orders" in exc.value.message
    assert db.session.get(Product, product.id) is not None


def test_delete_adjusted_product_is_refused(db_session, admin, cashier, product):
    inventory_service.adjust_stock(cashier, product.id, 1, "IN")

    with pytest.raises(ValidationError) as exc:
        products_service.delete_product(admin, product.id)

    assert "stock adjustment history" in exc.value.message


def test_archive_always_succeeds_and_hides_product(db_session, admin, cashier, product):
    inventory_service.adjust_stock(cashier, product.id, 1, "IN")

    archived = products_service.archive_product(admin, product.id)
    assert archived.is_archived is True
    assert product.id not in [p.id for p in products_service.list_products()]
    assert product.id in [p.id for p in products_service.list_products(include_archived=True)]

    restored = products_service.unarchive_product(admin, product.id)
    assert restored.is_archived is False

    actions = [a.action for a in db_session.query(AuditLog).filter_by(entity="PRODUCT").order_by(AuditLog.id)]
    assert actions[-2:] == ["ARCHIVE", "UNARCHIVE"]


def test_list_products_filters_menu_items(db_session, admin, product, second_product):
    products_service.toggle_menu_item(admin, second_product.id, False)

    menu = products_service.list_products(is_menu_item=True)
    non_menu = products_service.list_products(is_menu_item=False)

    assert [p.id for p in menu] == [product.id]
    assert [p.id for p in non_menu] == [second_product.id]


def test_get_menu_items_is_admin_only(db_session, admin, cashier, product):
    with pytest.raises(AuthorizationError):
        products_service.get_menu_items(cashier)
    assert [p.id for p in products_service.get_menu_items(admin)] == [product.id]


def test_create_category_validates_type(db_session):
    category = products_service.create_category("Photo Session", "studio")
    assert category.type == "STUDIO"

    with pytest.raises(ValidationError):
        products_service.create_category("Merch", "RETAIL")
