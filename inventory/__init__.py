"""
Inventory application.

MODELS:
- Counter: named integer sequences (per-owner SKU and order ID counters)
- Product: catalog entries with an owner-scoped SKU (PROD00001, ...)
- StockEntry: append-only trail of every stock movement

SERVICES:
- inventory.sequences: next_value / next_sku / next_order_id
- inventory.stock.CatalogStock: guarded decrement, increment, adjustment
- inventory.services: create / update / deactivate products

USAGE:
    from inventory.services import create_product
    from inventory.stock import CatalogStock

    laptop = create_product(user, name="Laptop", category="Electronics",
                            price=Decimal("999.99"), stock=10)   # PROD00001
    CatalogStock().decrement_stock(laptop, 2, reference_id="ORD000001")
"""

__version__ = '1.0.0'
