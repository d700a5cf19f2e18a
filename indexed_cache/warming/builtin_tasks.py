"""
Built-in Warming Tasks

The six warming tasks shipped with the cache. Four of them read from a
``WarmingDataSource`` supplied by the host application; payment methods and
system configuration are static.

| Task                  | Namespace | Key         | TTL  | Priority |
|-----------------------|-----------|-------------|------|----------|
| Product Categories    | products  | categories  | 3600 | 1        |
| Popular Products      | products  | popular     | 1800 | 1        |
| User Statistics       | analytics | user_stats  | 900  | 2        |
| Order Statistics      | analytics | order_stats | 600  | 2        |
| Payment Methods       | payments  | methods     | 7200 | 3        |
| System Configuration  | system    | config      | 3600 | 1        |
"""

from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from indexed_cache.infrastructure.cache.models import CacheOptions
from indexed_cache.warming.models import WarmingTask

POPULAR_PRODUCTS_LIMIT = 20


@runtime_checkable
class WarmingDataSource(Protocol):
    """Queries the host application provides for the data-backed tasks."""

    async def product_categories(self) -> list[dict[str, Any]]: ...

    async def popular_products(self, limit: int) -> list[dict[str, Any]]: ...

    async def user_statistics(self) -> dict[str, Any]: ...

    async def order_statistics(self) -> dict[str, Any]: ...


def payment_methods() -> list[dict[str, Any]]:
    return [
        {"id": "credit_card", "name": "Credit Card", "enabled": True},
        {"id": "bank_transfer", "name": "Bank Transfer", "enabled": True},
        {"id": "cash_on_delivery", "name": "Cash on Delivery", "enabled": True},
    ]


def system_configuration() -> dict[str, Any]:
    return {
        "maintenanceMode": False,
        "maxOrderAmount": 100000,
        "defaultCurrency": "USD",
        "supportedLanguages": ["en", "es", "fr"],
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }


def builtin_tasks(source: WarmingDataSource) -> list[WarmingTask]:
    """
    Build the built-in tasks against ``source``.

    Args:
        source: Provider for categories, popular products and statistics

    Returns:
        Tasks in registration order
    """
    return [
        WarmingTask(
            name="Product Categories",
            namespace="products",
            key="categories",
            fetch_fn=source.product_categories,
            options=CacheOptions(ttl=3600, tags=("products", "categories")),
            priority=1,
        ),
        WarmingTask(
            name="Popular Products",
            namespace="products",
            key="popular",
            fetch_fn=lambda: source.popular_products(POPULAR_PRODUCTS_LIMIT),
            options=CacheOptions(ttl=1800, tags=("products", "popular")),
            priority=1,
        ),
        WarmingTask(
            name="User Statistics",
            namespace="analytics",
            key="user_stats",
            fetch_fn=source.user_statistics,
            options=CacheOptions(ttl=900, tags=("analytics", "users")),
            priority=2,
        ),
        WarmingTask(
            name="Order Statistics",
            namespace="analytics",
            key="order_stats",
            fetch_fn=source.order_statistics,
            options=CacheOptions(ttl=600, tags=("analytics", "orders")),
            priority=2,
        ),
        WarmingTask(
            name="Payment Methods",
            namespace="payments",
            key="methods",
            fetch_fn=payment_methods,
            options=CacheOptions(ttl=7200, tags=("payments", "methods")),
            priority=3,
        ),
        WarmingTask(
            name="System Configuration",
            namespace="system",
            key="config",
            fetch_fn=system_configuration,
            options=CacheOptions(ttl=3600, tags=("system", "config")),
            priority=1,
        ),
    ]
