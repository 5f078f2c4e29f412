from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import Session, select

from app.core.errors import ForbiddenError, TransientError
from app.db.session import is_retryable, transaction
from app.models.product import Product
from app.routers.auth import resolve_user_id
from app.services.auth import create_access_token, decode_access_token
from seed_data import SEED_PRODUCTS, seed_products
from tests.factories import create_product


class FakePgError(Exception):
    def __init__(self, pgcode):
        super().__init__("could not complete")
        self.pgcode = pgcode


@pytest.mark.parametrize("exc, expected", [
    (OperationalError("UPDATE", {}, Exception("database is locked")), True),
    (OperationalError("UPDATE", {}, FakePgError("40001")), True),
    (OperationalError("UPDATE", {}, FakePgError("40P01")), True),
    (OperationalError("UPDATE", {}, Exception("no such table: product")), False),
    (IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed")), False),
    (ValueError("database is locked"), False),
])
def test_is_retryable(exc, expected):
    assert is_retryable(exc) is expected


def test_transaction_rolls_back_on_error(session):
    with pytest.raises(RuntimeError):
        with transaction(session):
            session.add(Product(name="Ghost", description="never saved", price=1.0,
                                image_url="/g.webp", category="x", brand="y", stock=1))
            raise RuntimeError("boom")
    assert session.exec(select(Product)).all() == []


def test_transient_error_body_and_headers():
    err = TransientError(attempts=5)
    assert err.status_code == 503
    assert err.headers == {"Retry-After": "1"}
    assert err.to_dict() == {
        "error": "Storage is busy, please retry",
        "code": "STORAGE_UNAVAILABLE",
        "attempts": 5,
        "retryable": True,
    }


def test_access_token_round_trip():
    token = create_access_token("user-42")
    assert decode_access_token(token) == "user-42"
    assert decode_access_token("garbage") is None
    expired = create_access_token("user-42", expires_delta=timedelta(seconds=-10))
    assert decode_access_token(expired) is None


def test_resolve_user_id():
    assert resolve_user_id("user-1", None) == "user-1"
    assert resolve_user_id(None, None) is None
    assert resolve_user_id(None, "user-2") == "user-2"
    assert resolve_user_id("user-2", "user-2") == "user-2"
    with pytest.raises(ForbiddenError):
        resolve_user_id("user-1", "user-2")


def test_seed_products_only_once(engine):
    assert seed_products(engine) == len(SEED_PRODUCTS)
    assert seed_products(engine) == 0
    with Session(engine) as session:
        products = session.exec(select(Product)).all()
    assert len(products) == len(SEED_PRODUCTS)
    assert all(p.stock >= 0 and 0 <= p.rating <= 5 for p in products)


def test_seed_skips_non_empty_catalog(engine):
    with Session(engine) as session:
        create_product(session)
    assert seed_products(engine) == 0
