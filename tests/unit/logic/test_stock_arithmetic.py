"""
Stock Arithmetic - Unit Tests

Pure reduce/add over scalar and color x size stock.
"""

import pytest

from microservices.inventory_service.inventory_service import add_product_stock, reduce_product_stock
from microservices.inventory_service.models import ColorVariant, ProductStock, SizeStock

pytestmark = [pytest.mark.unit]


def scalar_product(stock: int = 10) -> ProductStock:
    return ProductStock(product_id="prod_1", name="Plain Tee", stock=stock)


def variant_product() -> ProductStock:
    return ProductStock(
        product_id="prod_2",
        name="Hoodie",
        stock=4,
        variants=[
            ColorVariant(color="black", sizes=[SizeStock(size="M", stock=5), SizeStock(size="L", stock=2)]),
            ColorVariant(color="white", sizes=[SizeStock(size="M", stock=3)]),
        ],
    )


class TestReduce:

    def test_scalar(self):
        updated, adj = reduce_product_stock(scalar_product(), 3)

        assert updated.stock == 7
        assert adj.delta == -3
        assert adj.previous_stock == 10
        assert adj.new_stock == 7
        assert adj.scalar_fallback is False

    def test_floors_at_zero(self):
        updated, adj = reduce_product_stock(scalar_product(2), 5)

        assert updated.stock == 0
        assert adj.new_stock == 0

    def test_first_matching_size_cell(self):
        product = variant_product()

        updated, adj = reduce_product_stock(product, 2, size="M")

        assert updated.variants[0].sizes[0].stock == 3
        assert updated.variants[1].sizes[0].stock == 3
        assert adj.previous_stock == 8
        assert adj.new_stock == 6
        # input untouched
        assert product.variants[0].sizes[0].stock == 5

    def test_unknown_size_falls_back_to_scalar(self):
        updated, adj = reduce_product_stock(variant_product(), 1, size="XL")

        assert updated.stock == 3
        assert adj.scalar_fallback is True


class TestAdd:

    def test_scalar(self):
        updated, adj = add_product_stock(scalar_product(), 4)

        assert updated.stock == 14
        assert adj.delta == 4

    def test_every_matching_cell(self):
        updated, _ = add_product_stock(variant_product(), 2, size="M")

        assert updated.variants[0].sizes[0].stock == 7
        assert updated.variants[1].sizes[0].stock == 5
        assert updated.variants[0].sizes[1].stock == 2

    def test_no_size_adds_to_all_cells(self):
        updated, adj = add_product_stock(variant_product(), 1)

        assert [c.stock for v in updated.variants for c in v.sizes] == [6, 3, 4]
        assert adj.previous_stock == 10
        assert adj.new_stock == 13

    def test_unmatched_size_goes_to_scalar(self):
        updated, adj = add_product_stock(variant_product(), 5, size="XS")

        assert updated.stock == 9
        assert adj.scalar_fallback is True
