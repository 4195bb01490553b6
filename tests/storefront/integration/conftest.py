import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from storefront.api import discount_router, order_router, register_error_handlers, stock_router
from storefront.domain import storefront

ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}
CUSTOMER = {"X-User-Id": "user-1", "X-User-Role": "customer", "X-User-Email": "nadia@example.com"}
OTHER_CUSTOMER = {"X-User-Id": "user-2", "X-User-Role": "customer"}


@pytest.fixture()
def client(storefront_bed):
    app = FastAPI()

    @app.middleware("http")
    async def domain_context(request: Request, call_next):
        with storefront.domain_context():
            return await call_next(request)

    register_error_handlers(app)
    app.include_router(order_router)
    app.include_router(discount_router)
    app.include_router(stock_router)
    return TestClient(app)


@pytest.fixture()
def admin():
    return dict(ADMIN)


@pytest.fixture()
def customer():
    return dict(CUSTOMER)


@pytest.fixture()
def other_customer():
    return dict(OTHER_CUSTOMER)
