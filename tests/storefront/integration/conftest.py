import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from storefront.api import ROUTERS, register_error_handlers


@pytest.fixture()
def app():
    from storefront.domain import storefront

    app = FastAPI()

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        with storefront.domain_context():
            return await call_next(request)

    register_error_handlers(app)
    for router in ROUTERS:
        app.include_router(router)
    return app


@pytest.fixture()
def client(app, gateway):
    return TestClient(app)


SHIPPING_ADDRESS = {
    "email": "ada@example.com",
    "firstName": "Ada",
    "lastName": "Lovelace",
    "address": "12 Analytical Way",
    "city": "Sacramento",
    "state": "CA",
    "zip": "95814",
}


@pytest.fixture()
def checkout_body():
    return {"shippingSelection": {"region": "CA"}, "shippingAddress": dict(SHIPPING_ADDRESS)}
