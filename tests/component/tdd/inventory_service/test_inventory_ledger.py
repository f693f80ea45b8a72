"""
Inventory Ledger Component Tests

Stock checks and mutations with an in-memory product repository.

Usage:
    pytest tests/component/tdd/inventory_service -v
"""
import pytest

from microservices.inventory_service.inventory_service import InventoryLedgerService
from microservices.inventory_service.models import StockLine
from microservices.inventory_service.protocols import (
    ProductNotFoundError,
    ProductVersionConflictError,
    StockValidationError,
)
from tests.component.tdd.inventory_service.mocks import MockProductRepository

pytestmark = [pytest.mark.component, pytest.mark.asyncio]


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def product_repo():
    repo = MockProductRepository()
    repo.set_product("prod_scalar", stock=10, name="Plain Tee")
    repo.set_product("prod_sized", sizes={"S": 2, "M": 5, "L": 0}, name="Hoodie")
    return repo


@pytest.fixture
def ledger(product_repo, fast_config):
    return InventoryLedgerService(repository=product_repo, config=fast_config)


# =============================================================================
# Reads
# =============================================================================

class TestGetStock:

    async def test_scalar_stock(self, ledger):
        assert await ledger.get_stock("prod_scalar") == 10

    async def test_variant_stock_sums_cells(self, ledger):
        assert await ledger.get_stock("prod_sized") == 7
        assert await ledger.get_stock("prod_sized", "M") == 5

    async def test_unknown_product(self, ledger):
        with pytest.raises(ProductNotFoundError):
            await ledger.get_stock("prod_missing")


# =============================================================================
# Mutations
# =============================================================================

class TestReduceStock:

    async def test_reduces_scalar(self, ledger):
        adjustment = await ledger.reduce_stock("prod_scalar", 3)

        assert adjustment.previous_stock == 10
        assert adjustment.new_stock == 7
        assert await ledger.get_stock("prod_scalar") == 7

    async def test_floors_at_zero(self, ledger):
        adjustment = await ledger.reduce_stock("prod_scalar", 15)

        assert adjustment.new_stock == 0
        assert await ledger.get_stock("prod_scalar") == 0

    async def test_reduces_matching_size_cell(self, ledger):
        await ledger.reduce_stock("prod_sized", 2, size="M")

        assert await ledger.get_stock("prod_sized", "M") == 3
        assert await ledger.get_stock("prod_sized", "S") == 2

    async def test_unknown_size_falls_back_to_scalar(self, ledger, product_repo):
        product_repo.set_product("prod_mixed", stock=4, sizes={"M": 1})

        adjustment = await ledger.reduce_stock("prod_mixed", 1, size="XXL")

        assert adjustment.scalar_fallback is True
        product = await product_repo.get_product("prod_mixed")
        assert product.stock == 3
        assert product.variants[0].sizes[0].stock == 1

    @pytest.mark.parametrize("quantity", [0, -2])
    async def test_rejects_non_positive_quantity(self, ledger, product_repo, quantity):
        with pytest.raises(StockValidationError):
            await ledger.reduce_stock("prod_scalar", quantity)
        assert product_repo.get_call_count("save_product") == 0

    async def test_missing_product(self, ledger):
        with pytest.raises(ProductNotFoundError):
            await ledger.reduce_stock("prod_missing", 1)


class TestAddStock:

    async def test_adds_to_every_cell_without_size(self, ledger):
        await ledger.add_stock("prod_sized", 1)

        assert await ledger.get_stock("prod_sized", "S") == 3
        assert await ledger.get_stock("prod_sized", "M") == 6
        assert await ledger.get_stock("prod_sized", "L") == 1

    async def test_adds_to_matching_cell(self, ledger):
        await ledger.add_stock("prod_sized", 4, size="L")
        assert await ledger.get_stock("prod_sized", "L") == 4

    async def test_unmatched_size_goes_to_scalar(self, ledger, product_repo):
        adjustment = await ledger.add_stock("prod_sized", 2, size="XS")

        assert adjustment.scalar_fallback is True
        product = await product_repo.get_product("prod_sized")
        assert product.stock == 2


# =============================================================================
# Order helpers
# =============================================================================

class TestOrderHelpers:

    async def test_check_availability_collects_every_problem(self, ledger):
        errors = await ledger.check_availability([
            StockLine(product_id="prod_scalar", quantity=11),
            StockLine(product_id="prod_missing", quantity=1),
            StockLine(product_id="prod_sized", quantity=1, size="L"),
            StockLine(product_id="prod_sized", quantity=2, size="M"),
        ])

        assert len(errors) == 3
        assert "requested 11, available 10" in errors[0]
        assert "prod_missing not found" in errors[1]
        assert "(size L)" in errors[2]

    async def test_check_availability_passes(self, ledger):
        assert await ledger.check_availability([StockLine(product_id="prod_scalar", quantity=10)]) == []

    async def test_check_availability_sums_lines_for_same_stock(self, ledger):
        errors = await ledger.check_availability([
            StockLine(product_id="prod_scalar", quantity=6),
            StockLine(product_id="prod_scalar", quantity=6),
        ])

        assert len(errors) == 1
        assert "requested 12, available 10" in errors[0]

    async def test_check_availability_sizes_counted_separately(self, ledger):
        errors = await ledger.check_availability([
            StockLine(product_id="prod_sized", quantity=1, size="M"),
            StockLine(product_id="prod_sized", quantity=1, size="M"),
            StockLine(product_id="prod_sized", quantity=1, size="S"),
        ])

        assert errors == []

    async def test_deduct_for_order(self, ledger):
        adjustments = await ledger.deduct_for_order([
            StockLine(product_id="prod_scalar", quantity=3),
            StockLine(product_id="prod_sized", quantity=1, size="S"),
        ])

        assert [a.new_stock for a in adjustments] == [7, 1]


# =============================================================================
# Concurrency
# =============================================================================

class TestVersionConflicts:

    async def test_conflict_is_retried(self, ledger, product_repo):
        product_repo.inject_conflicts(2)

        await ledger.reduce_stock("prod_scalar", 1)

        assert product_repo.get_call_count("save_product") == 3
        assert await ledger.get_stock("prod_scalar") == 9

    async def test_conflict_propagates_when_retries_run_out(self, ledger, product_repo):
        product_repo.inject_conflicts(3)

        with pytest.raises(ProductVersionConflictError):
            await ledger.reduce_stock("prod_scalar", 1)
        assert await ledger.get_stock("prod_scalar") == 10


class TestInventorySummary:

    async def test_low_and_out_of_stock(self, ledger, product_repo):
        product_repo.set_product("prod_empty", stock=0)
        product_repo.set_product("prod_other_seller", stock=1, seller_id="seller_2")

        summary = await ledger.get_inventory_summary(seller_id="seller_1")

        assert summary.total_products == 3
        assert summary.total_stock == 17
        assert [p.product_id for p in summary.out_of_stock_products] == ["prod_empty"]
        assert summary.out_of_stock_count == 1
        assert summary.low_stock_count == 0

        await ledger.reduce_stock("prod_scalar", 6)
        summary = await ledger.get_inventory_summary(seller_id="seller_1")
        assert [p.product_id for p in summary.low_stock_products] == ["prod_scalar"]
