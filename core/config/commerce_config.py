#!/usr/bin/env python3
"""Commerce platform main configuration

Order, refund and payout policy settings plus the combined settings object
used by the order, inventory and payout services.
"""
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from .infra_config import InfraConfig
from .logging_config import LoggingConfig
from .service_config import ServiceConfig


def _bool(val: str) -> bool:
    return val.lower() == "true"

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default

def _decimal(val: str, default: str) -> Decimal:
    try:
        return Decimal(val) if val else Decimal(default)
    except InvalidOperation:
        return Decimal(default)


# ===========================================
# Order / Payout Policy
# ===========================================

@dataclass
class CommerceConfig:
    """Order lifecycle and payout policy"""
    currency: str = "INR"

    # Payout eligibility window (days after order creation)
    payout_eligibility_days: int = 7

    # Net-payable display policy
    gateway_commission_percent: Decimal = Decimal("2")
    handling_fee_per_order: Decimal = Decimal("100")
    seller_commission_percent: Decimal = Decimal("15")

    # Inventory summary
    low_stock_threshold: int = 5

    # Optimistic concurrency retries
    retry_attempts: int = 3
    retry_min_wait: float = 0.05
    retry_max_wait: float = 1.0

    @classmethod
    def from_env(cls) -> 'CommerceConfig':
        return cls(
            currency=os.getenv("COMMERCE_CURRENCY", "INR"),
            payout_eligibility_days=_int(os.getenv("PAYOUT_ELIGIBILITY_DAYS", "7"), 7),
            gateway_commission_percent=_decimal(os.getenv("PAYOUT_GATEWAY_COMMISSION_PERCENT", ""), "2"),
            handling_fee_per_order=_decimal(os.getenv("PAYOUT_HANDLING_FEE_PER_ORDER", ""), "100"),
            seller_commission_percent=_decimal(os.getenv("PAYOUT_SELLER_COMMISSION_PERCENT", ""), "15"),
            low_stock_threshold=_int(os.getenv("LOW_STOCK_THRESHOLD", "5"), 5),
            retry_attempts=_int(os.getenv("OPTIMISTIC_RETRY_ATTEMPTS", "3"), 3),
            retry_min_wait=float(os.getenv("OPTIMISTIC_RETRY_MIN_WAIT", "0.05")),
            retry_max_wait=float(os.getenv("OPTIMISTIC_RETRY_MAX_WAIT", "1.0")),
        )


# ===========================================
# Main Configuration
# ===========================================

@dataclass
class CommerceSettings:
    """Main commerce configuration with all sub-configs"""

    # Environment
    environment: str = "development"
    debug: bool = False

    # Sub-configurations
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    infrastructure: InfraConfig = field(default_factory=InfraConfig)
    services: ServiceConfig = field(default_factory=ServiceConfig)
    commerce: CommerceConfig = field(default_factory=CommerceConfig)

    @classmethod
    def from_env(cls) -> 'CommerceSettings':
        """Load complete configuration from environment"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            environment=env,
            debug=_bool(os.getenv("DEBUG", "true" if env == "development" else "false")),

            # Load sub-configs
            logging=LoggingConfig.from_env(),
            infrastructure=InfraConfig.from_env(),
            services=ServiceConfig.from_env(),
            commerce=CommerceConfig.from_env(),
        )
