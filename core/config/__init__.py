#!/usr/bin/env python3
"""Modular configuration system

Configuration hierarchy:
- infra_config: PostgreSQL document store and NATS event bus
- service_config: External collaborators (payment gateway, notification service)
- commerce_config: Order, refund and payout policy plus the combined settings
- logging_config: Logging configuration
"""
import os
from dotenv import load_dotenv
from .logging_config import LoggingConfig
from .infra_config import InfraConfig
from .service_config import ServiceConfig
from .commerce_config import CommerceConfig, CommerceSettings

# Load environment file based on ENV
env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
env_files = {
    "development": "deployment/environments/dev.env",
    "dev": "deployment/environments/dev.env",
    "testing": "deployment/environments/test.env",
    "test": "deployment/environments/test.env",
    "staging": "deployment/environments/staging.env",
    "production": "deployment/environments/production.env",
}
env_file = env_files.get(env, "deployment/environments/dev.env")
load_dotenv(env_file, override=False)

# Create global settings instance
settings = CommerceSettings.from_env()

def get_settings() -> CommerceSettings:
    """Get global settings instance"""
    return settings

def reload_settings() -> CommerceSettings:
    """Reload settings from environment"""
    global settings
    settings = CommerceSettings.from_env()
    return settings

__all__ = [
    # Main config
    'CommerceSettings',
    'get_settings',
    'reload_settings',
    'settings',
    # Sub-configs
    'LoggingConfig',
    'InfraConfig',
    'ServiceConfig',
    'CommerceConfig',
]
