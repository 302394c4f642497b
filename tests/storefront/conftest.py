import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront
    from storefront.utils.db import drop_db, setup_db

    bed = DomainFixture(storefront)
    bed.setup()
    setup_db(storefront)
    yield bed
    drop_db(storefront)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def run_around_tests(_ctx):
    """Start every test with default settings, catalogue and gateway, and empty stores."""
    from storefront.catalogue.products import reset_catalogue
    from storefront.config import reset_settings
    from storefront.gateway import reset_gateway

    reset_settings()
    reset_catalogue()
    reset_gateway()

    yield

    from protean import current_domain

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    # Drain event stores
    current_domain.event_store.store._data_reset()

    reset_gateway()
    reset_catalogue()
    reset_settings()


@pytest.fixture()
def gateway():
    """A fresh fake payment gateway installed as the active gateway."""
    from storefront.gateway import set_gateway
    from storefront.gateway.fake_adapter import FakeGateway

    fake = FakeGateway()
    set_gateway(fake)
    return fake


@pytest.fixture()
def session_id():
    from storefront.api.session import new_session_id

    return new_session_id()
