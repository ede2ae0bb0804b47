"""Application tests for catalogue management commands."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from storefront.catalogue.management import (
    ActivateProduct,
    ChangeProductPrice,
    DeactivateProduct,
    restock_product,
)
from storefront.catalogue.product import Product
from storefront.errors import InvalidMoney, ProductNotFound
from storefront.shared.money import Money


def _reload(product):
    return current_domain.repository_for(Product).get(product.id)


class TestAddProduct:
    def test_persists_product(self, add_product):
        product = add_product(name="Banana", price="0.25", stock_quantity=40, description="Ripe")
        assert product.name == "Banana"
        assert product.price == Money.of("0.25")
        assert product.stock_quantity == 40
        assert product.description == "Ripe"
        assert product.is_active

    def test_rejects_three_decimal_price(self, add_product):
        with pytest.raises(InvalidMoney):
            add_product(price="0.255")

    def test_rejects_negative_stock(self, add_product):
        with pytest.raises(ValidationError):
            add_product(stock_quantity=-1)


class TestProductChanges:
    def test_change_price(self, add_product):
        product = add_product(price="1.00")
        current_domain.process(ChangeProductPrice(product_id=product.id, price="1.20"), asynchronous=False)
        assert _reload(product).price == Money.of("1.20")

    def test_restock(self, add_product):
        product = add_product(stock_quantity=2)
        restock_product(product.id, 8)
        assert _reload(product).stock_quantity == 10

    def test_deactivate_and_activate(self, add_product):
        product = add_product()
        current_domain.process(DeactivateProduct(product_id=product.id), asynchronous=False)
        assert not _reload(product).is_active
        current_domain.process(ActivateProduct(product_id=product.id), asynchronous=False)
        assert _reload(product).is_active

    def test_unknown_product(self):
        with pytest.raises(ProductNotFound):
            current_domain.process(ChangeProductPrice(product_id="missing", price="1.00"), asynchronous=False)
