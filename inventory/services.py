"""
Catalog write operations.

Identity assignment and owner-name denormalization happen here, as explicit
steps, rather than in model save hooks.
"""
import logging

from django.db import DEFAULT_DB_ALIAS, transaction

from users.models import display_name

from .exceptions import InvalidRequest
from .models import Product, StockEntry
from .sequences import next_sku
from .stock import CatalogStock

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('name', 'description', 'category', 'price', 'is_active')


def create_product(owner, *, name, category, price, stock=0, description='',
                   is_active=True, using=DEFAULT_DB_ALIAS):
    """Create a product with a freshly minted SKU."""
    with transaction.atomic(using=using):
        product = Product(
            sku=next_sku(owner, using=using),
            name=name.strip(),
            description=(description or '').strip(),
            category=category.strip(),
            price=price,
            stock=stock,
            is_active=is_active,
            owner=owner,
            owner_name=display_name(owner),
        )
        product.save(using=using)

        if stock > 0:
            StockEntry.objects.using(using).create(
                product=product,
                quantity=stock,
                entry_type='initial',
                created_by=owner,
                notes="Initial stock on product creation",
            )

    logger.info(
        f"[PRODUCT CREATED] {product.sku} - {product.name} "
        f"(Category: {product.category}, Stock: {product.stock}, Owner: {owner.username})"
    )
    return product


def update_product(product, user=None, using=DEFAULT_DB_ALIAS, expected_stock=None, **changes):
    """
    Apply field edits; a supplied ``stock`` is recorded as an adjustment.

    Stock is only touched when ``stock`` is passed. With ``expected_stock``
    the adjustment is refused (StockConflict) if the stored stock has moved
    since the caller read it.
    """
    new_stock = changes.pop('stock', None)
    if expected_stock is not None and new_stock is None:
        raise InvalidRequest("expected_stock is only valid together with stock")
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValueError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

    with transaction.atomic(using=using):
        for field, value in changes.items():
            if isinstance(value, str):
                value = value.strip()
            setattr(product, field, value)
        if changes:
            product.save(using=using, update_fields=[*changes, 'updated_at'])

        if new_stock is not None:
            CatalogStock(using=using).adjust_stock(
                product, new_stock, user=user, expected=expected_stock,
            )

    logger.info(f"[PRODUCT UPDATED] {product.sku} - fields: {', '.join(changes) or 'none'}")
    return product


def deactivate_product(product, using=DEFAULT_DB_ALIAS):
    """Soft delete: the row stays so historical order lines keep their reference."""
    product.is_active = False
    product.save(using=using, update_fields=['is_active', 'updated_at'])
    logger.info(f"[PRODUCT DEACTIVATED] {product.sku} - {product.name}")
    return product
