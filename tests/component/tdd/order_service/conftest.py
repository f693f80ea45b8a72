"""
Order Service component fixtures

The real InventoryLedgerService runs on an in-memory product repository so
stock effects of order transitions are observable.
"""
import pytest

from microservices.inventory_service.inventory_service import InventoryLedgerService
from microservices.order_service.order_service import OrderLifecycleService
from tests.component.tdd.inventory_service.mocks import MockProductRepository
from tests.component.tdd.order_service.mocks import (
    MockCancelRequestRepository,
    MockEmailNotifier,
    MockOrderRepository,
    MockPaymentGateway,
)


@pytest.fixture
def product_repo():
    repo = MockProductRepository()
    repo.set_product("prod_1", stock=10, name="Plain Tee")
    repo.set_product("prod_2", stock=5, name="Cap")
    return repo


@pytest.fixture
def order_repo():
    return MockOrderRepository()


@pytest.fixture
def cancel_repo():
    return MockCancelRequestRepository()


@pytest.fixture
def gateway():
    return MockPaymentGateway()


@pytest.fixture
def notifier():
    return MockEmailNotifier()


@pytest.fixture
def inventory(product_repo, fast_config):
    return InventoryLedgerService(repository=product_repo, config=fast_config)


@pytest.fixture
def service(order_repo, cancel_repo, inventory, gateway, notifier, mock_event_bus, fast_config):
    return OrderLifecycleService(
        repository=order_repo,
        cancel_request_repository=cancel_repo,
        inventory=inventory,
        event_bus=mock_event_bus,
        payment_gateway=gateway,
        email_notifier=notifier,
        config=fast_config,
    )

