import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Fetch and activate the domain by pushing the associated domain_context. The activated domain can then be referred to elsewhere as `current_domain`
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from storefront.domain import storefront

    storefront.init()
    storefront.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session", autouse=True)
def setup_db(request):
    from storefront.domain import storefront
    from storefront.utils.db import drop_db, setup_db

    setup_db(storefront)

    yield

    drop_db(storefront)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from protean import current_domain

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    # Drain event stores
    current_domain.event_store.store._data_reset()


@pytest.fixture
def add_product():
    """Create a product through the catalogue command and return it."""
    from protean import current_domain
    from storefront.catalogue.management import AddProduct, DeactivateProduct
    from storefront.catalogue.product import Product

    def _add(name="Apple", price="1.00", stock_quantity=10, is_active=True, **fields):
        product_id = current_domain.process(
            AddProduct(name=name, price=price, stock_quantity=stock_quantity, **fields),
            asynchronous=False,
        )
        if not is_active:
            current_domain.process(DeactivateProduct(product_id=product_id), asynchronous=False)
        return current_domain.repository_for(Product).get(product_id)

    return _add


@pytest.fixture
def add_discount():
    """Create a discount code and return it."""
    from protean import current_domain
    from storefront.discount.discount import Discount
    from storefront.discount.management import create_discount

    def _add(code="SAVE10", discount_type="PERCENTAGE", value="10", **fields):
        discount_id = create_discount(code=code, discount_type=discount_type, value=value, **fields)
        return current_domain.repository_for(Discount).get(discount_id)

    return _add
