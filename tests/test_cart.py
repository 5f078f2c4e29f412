import pytest
from sqlmodel import select

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.cart import CartItem
from app.services.cart import CartService
from tests.factories import add_cart_line, create_product


def test_add_inserts_a_new_line(session):
    product = create_product(session, price=120.0, stock=5)

    line = CartService(session).add_or_merge("user-1", product.id, 2)

    assert line.quantity == 2
    assert line.subtotal == 240.0
    assert line.product.id == product.id
    assert line.user_id == "user-1"


def test_adding_same_product_merges_quantity(session):
    product = create_product(session, stock=5)
    service = CartService(session)

    first = service.add_or_merge("user-1", product.id, 2)
    second = service.add_or_merge("user-1", product.id, 3)

    assert second.id == first.id
    assert second.quantity == 5
    assert len(session.exec(select(CartItem)).all()) == 1


def test_merge_beyond_stock_is_rejected_and_keeps_line(session):
    product = create_product(session, stock=5)
    service = CartService(session)
    service.add_or_merge("user-1", product.id, 4)

    with pytest.raises(ConflictError) as exc_info:
        service.add_or_merge("user-1", product.id, 2)

    assert exc_info.value.code == "INSUFFICIENT_STOCK"
    assert exc_info.value.extra == {"productId": product.id, "available": 5, "requested": 6}
    assert session.exec(select(CartItem)).one().quantity == 4


def test_lines_are_per_user(session):
    product = create_product(session, stock=5)
    service = CartService(session)

    a = service.add_or_merge("user-1", product.id, 1)
    b = service.add_or_merge("user-2", product.id, 1)

    assert a.id != b.id


@pytest.mark.parametrize("quantity, code", [
    (0, "INVALID_QUANTITY"),
    (-3, "INVALID_QUANTITY"),
    (True, "INVALID_QUANTITY"),
    (None, "MISSING_QUANTITY"),
])
def test_add_rejects_bad_quantity(session, quantity, code):
    product = create_product(session, stock=5)

    with pytest.raises(ValidationError) as exc_info:
        CartService(session).add_or_merge("user-1", product.id, quantity)

    assert exc_info.value.code == code


def test_add_unknown_product(session):
    with pytest.raises(NotFoundError) as exc_info:
        CartService(session).add_or_merge("user-1", 404, 1)
    assert exc_info.value.code == "PRODUCT_NOT_FOUND"


def test_add_more_than_stock(session):
    product = create_product(session, stock=1)
    with pytest.raises(ConflictError):
        CartService(session).add_or_merge("user-1", product.id, 2)
    assert session.exec(select(CartItem)).all() == []


def test_list_joins_products_and_totals(session):
    machine = create_product(session, name="Janome HD3000", price=449.0, stock=5)
    serger = create_product(session, name="Juki MO-654DE", price=299.0, stock=5)
    add_cart_line(session, "user-1", machine.id, 2)
    add_cart_line(session, "user-1", serger.id, 1)
    add_cart_line(session, "user-2", serger.id, 3)

    cart = CartService(session).list_for_user("user-1")

    assert [line.product.name for line in cart.items] == ["Janome HD3000", "Juki MO-654DE"]
    assert [line.subtotal for line in cart.items] == [898.0, 299.0]
    assert cart.total == 1197.0


def test_list_empty_cart(session):
    cart = CartService(session).list_for_user("nobody")
    assert cart.items == []
    assert cart.total == 0


def test_update_quantity_revalidates_stock(session):
    product = create_product(session, stock=5)
    line = add_cart_line(session, "user-1", product.id, 1)
    service = CartService(session)

    updated = service.update_quantity(line.id, 4)
    assert updated.quantity == 4

    with pytest.raises(ConflictError) as exc_info:
        service.update_quantity(line.id, 6)
    assert exc_info.value.extra["available"] == 5
    assert exc_info.value.extra["requested"] == 6
    session.expire_all()
    assert session.get(CartItem, line.id).quantity == 4


def test_update_missing_line(session):
    with pytest.raises(NotFoundError) as exc_info:
        CartService(session).update_quantity(123, 1)
    assert exc_info.value.code == "CART_ITEM_NOT_FOUND"


def test_update_someone_elses_line_looks_missing(session):
    product = create_product(session, stock=5)
    line = add_cart_line(session, "user-1", product.id, 1)

    with pytest.raises(NotFoundError):
        CartService(session).update_quantity(line.id, 2, user_id="user-2")


def test_remove_line(session):
    product = create_product(session, stock=5)
    line_id = add_cart_line(session, "user-1", product.id, 2).id
    service = CartService(session)

    removed = service.remove(line_id)

    assert removed.id == line_id
    assert removed.quantity == 2
    with pytest.raises(NotFoundError):
        service.remove(line_id)


def test_clear_for_user_counts_and_is_idempotent(session):
    a = create_product(session, name="Brother CS7000X", stock=5)
    b = create_product(session, name="Singer 4423", stock=5)
    add_cart_line(session, "user-1", a.id, 1)
    add_cart_line(session, "user-1", b.id, 1)
    add_cart_line(session, "user-2", a.id, 1)
    service = CartService(session)

    assert service.clear_for_user("user-1") == 2
    assert service.clear_for_user("user-1") == 0
    assert len(session.exec(select(CartItem)).all()) == 1


def test_clear_requires_user(session):
    with pytest.raises(ValidationError) as exc_info:
        CartService(session).clear_for_user(" ")
    assert exc_info.value.code == "MISSING_USER_ID"
