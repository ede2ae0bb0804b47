"""Tests for CartAggregator: pricing cart lines against products."""

import pytest
from storefront.cart.aggregator import CartAggregator, CartLine
from storefront.catalogue.product import Product
from storefront.errors import EmptyCart, InvalidQuantity, ProductInactive, ProductNotFound
from storefront.shared.money import Money


def _catalogue(*products):
    by_id = {str(p.id): p for p in products}
    return by_id.get


@pytest.fixture
def apple():
    return Product.create(name="Apple", price="0.35", stock_quantity=100)


@pytest.fixture
def mango():
    return Product.create(name="Mango", price="2.49", stock_quantity=10)


class TestCartAggregator:
    def test_subtotal_is_exact_sum_of_lines(self, apple, mango):
        priced = CartAggregator().build(
            [CartLine(str(apple.id), 3), CartLine(str(mango.id), 2)],
            _catalogue(apple, mango),
        )
        assert priced.subtotal == Money.of("6.03")
        assert [line.line_subtotal for line in priced.lines] == [Money.of("1.05"), Money.of("4.98")]

    def test_snapshots_name_and_price(self, apple):
        priced = CartAggregator().build([CartLine(str(apple.id), 1)], _catalogue(apple))
        apple.change_price("9.99")
        line = priced.lines[0]
        assert line.product_name == "Apple"
        assert line.unit_price == Money.of("0.35")
        assert priced.subtotal == Money.of("0.35")

    def test_duplicate_products_are_merged(self, apple, mango):
        priced = CartAggregator().build(
            [CartLine(str(apple.id), 1), CartLine(str(mango.id), 1), CartLine(str(apple.id), 2)],
            _catalogue(apple, mango),
        )
        assert [(line.product_id, line.quantity) for line in priced.lines] == [
            (str(apple.id), 3),
            (str(mango.id), 1),
        ]

    def test_quantities_per_product_after_merging(self, apple, mango):
        priced = CartAggregator().build(
            [CartLine(str(apple.id), 1), CartLine(str(mango.id), 4), CartLine(str(apple.id), 2)],
            _catalogue(apple, mango),
        )
        assert priced.quantities == {str(apple.id): 3, str(mango.id): 4}

    def test_subtotal_of_no_lines_is_zero(self, apple):
        assert CartAggregator().subtotal([], _catalogue(apple)) == Money.zero()

    def test_empty_cart(self, apple):
        with pytest.raises(EmptyCart):
            CartAggregator().build([], _catalogue(apple))

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", True])
    def test_invalid_quantity(self, apple, quantity):
        with pytest.raises(InvalidQuantity):
            CartAggregator().build([CartLine(str(apple.id), quantity)], _catalogue(apple))

    def test_unknown_product(self, apple):
        with pytest.raises(ProductNotFound):
            CartAggregator().build([CartLine("missing", 1)], _catalogue(apple))

    def test_inactive_product(self, apple):
        apple.deactivate()
        with pytest.raises(ProductInactive):
            CartAggregator().build([CartLine(str(apple.id), 1)], _catalogue(apple))
