import threading

import pytest
from sqlmodel import Session, select

from app.core.errors import ConflictError
from app.models.cart import CartItem
from app.models.order import Order
from app.models.product import Product
from app.services.checkout import CheckoutService
from tests.factories import add_cart_line, create_product

ADDRESS = "1 Thimble Court, Portland"


def run_checkouts(engine, user_ids):
    barrier = threading.Barrier(len(user_ids))
    results = {}

    def worker(user_id):
        with Session(engine) as session:
            barrier.wait()
            try:
                results[user_id] = CheckoutService(session).place_order(user_id, ADDRESS)
            except ConflictError as e:
                results[user_id] = e

    threads = [threading.Thread(target=worker, args=(u,)) for u in user_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return results


@pytest.mark.parametrize("stock, buyers", [(3, 6), (4, 4), (5, 2)])
def test_concurrent_checkouts_never_oversell(engine, stock, buyers):
    user_ids = [f"buyer-{i}" for i in range(buyers)]
    with Session(engine) as session:
        product_id = create_product(session, name="Bernina 335", price=1799.0, stock=stock).id
        for user_id in user_ids:
            add_cart_line(session, user_id, product_id, 1)

    results = run_checkouts(engine, user_ids)

    assert len(results) == buyers
    succeeded = [r for r in results.values() if not isinstance(r, Exception)]
    failed = [r for r in results.values() if isinstance(r, Exception)]
    assert len(succeeded) == min(buyers, stock)
    assert all(e.code == "INSUFFICIENT_STOCK" for e in failed)

    with Session(engine) as session:
        assert session.get(Product, product_id).stock == max(0, stock - buyers)
        assert len(session.exec(select(Order)).all()) == len(succeeded)
        # Losers keep their cart, winners' carts are gone
        remaining = {c.user_id for c in session.exec(select(CartItem)).all()}
        assert remaining == {u for u, r in results.items() if isinstance(r, Exception)}


def test_disjoint_checkouts_all_succeed(engine):
    user_ids = [f"buyer-{i}" for i in range(4)]
    with Session(engine) as session:
        for user_id in user_ids:
            product_id = create_product(session, name=f"Machine for {user_id}", stock=1).id
            add_cart_line(session, user_id, product_id, 1)

    results = run_checkouts(engine, user_ids)

    assert all(not isinstance(r, Exception) for r in results.values())
    with Session(engine) as session:
        assert all(p.stock == 0 for p in session.exec(select(Product)).all())
