"""
Inventory Service - Mock Dependencies

Mock implementations for component testing.
Returns ProductStock model objects as expected by the service.
"""
from typing import Dict, List, Optional

from microservices.inventory_service.models import ColorVariant, ProductStock, SizeStock
from microservices.inventory_service.protocols import ProductVersionConflictError


class MockProductRepository:
    """Mock product stock repository for component testing

    Implements ProductStockRepositoryProtocol interface with the same
    version check as the real repository.
    """

    def __init__(self):
        self._data: Dict[str, ProductStock] = {}
        self._error: Optional[Exception] = None
        self._conflicts_to_inject = 0
        self._call_log: List[Dict] = []

    def set_product(
        self,
        product_id: str,
        stock: int = 0,
        seller_id: Optional[str] = "seller_1",
        name: Optional[str] = None,
        sizes: Optional[Dict[str, int]] = None,
        color: str = "black",
    ) -> ProductStock:
        """Add a product; sizes creates a single color variant"""
        variants = []
        if sizes:
            variants = [ColorVariant(
                color=color,
                sizes=[SizeStock(size=s, stock=q) for s, q in sizes.items()],
            )]
        product = ProductStock(
            product_id=product_id,
            seller_id=seller_id,
            name=name or product_id,
            stock=stock,
            variants=variants,
        )
        self._data[product_id] = product
        return product

    def set_error(self, error: Exception):
        """Set an error to be raised on save"""
        self._error = error

    def inject_conflicts(self, count: int):
        """Make the next count saves fail as if another writer got there first"""
        self._conflicts_to_inject = count

    def _log_call(self, method: str, **kwargs):
        self._call_log.append({"method": method, "kwargs": kwargs})

    def assert_called(self, method: str):
        """Assert that a method was called"""
        called_methods = [c["method"] for c in self._call_log]
        assert method in called_methods, f"Expected {method} to be called, but got {called_methods}"

    def get_call_count(self, method: str) -> int:
        """Get number of times a method was called"""
        return sum(1 for c in self._call_log if c["method"] == method)

    # Protocol methods

    async def get_product(self, product_id: str) -> Optional[ProductStock]:
        self._log_call("get_product", product_id=product_id)
        product = self._data.get(product_id)
        return product.model_copy(deep=True) if product else None

    async def save_product(self, product: ProductStock, expected_version: int) -> ProductStock:
        self._log_call("save_product", product_id=product.product_id, expected_version=expected_version)
        if self._error:
            raise self._error

        current = self._data.get(product.product_id)
        if self._conflicts_to_inject > 0:
            self._conflicts_to_inject -= 1
            raise ProductVersionConflictError(f"Injected conflict on {product.product_id}")
        if current is None or current.version != expected_version:
            raise ProductVersionConflictError(
                f"Product {product.product_id} changed since version {expected_version}"
            )

        saved = product.model_copy(deep=True, update={"version": expected_version + 1})
        self._data[product.product_id] = saved
        return saved.model_copy(deep=True)

    async def list_products(self, seller_id: Optional[str] = None) -> List[ProductStock]:
        self._log_call("list_products", seller_id=seller_id)
        return [
            p.model_copy(deep=True)
            for p in self._data.values()
            if seller_id is None or p.seller_id == seller_id
        ]
