"""
Catalog stock accessor.

All changes to ``Product.stock`` go through ``CatalogStock``. Decrements are
a single conditional update (``WHERE stock >= amount``), so the availability
check and the write happen in one statement and two racing orders can never
take the same unit twice. Every movement is written to ``StockEntry``.
"""
import logging

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, transaction
from django.db.models import F
from django.utils import timezone

from .exceptions import InsufficientStock, InvalidRequest, NotFound, StockConflict
from .models import Product, StockEntry

logger = logging.getLogger(__name__)


class CatalogStock:
    """Stock reads and writes against one database alias."""

    def __init__(self, using=DEFAULT_DB_ALIAS):
        self.using = using

    @property
    def products(self):
        return Product.objects.using(self.using)

    # ============================================
    # LOOKUPS
    # ============================================

    def find_by_id(self, product_id, owner=None):
        """Return the active product ``product_id`` (optionally owner-scoped)."""
        queryset = self.products.filter(is_active=True)
        if owner is not None:
            queryset = queryset.filter(owner=owner)
        try:
            return queryset.get(pk=product_id)
        except (Product.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Product with ID {product_id} not found")

    def current_stock(self, product):
        stock = self.products.filter(pk=product.pk).values_list('stock', flat=True).first()
        if stock is None:
            raise NotFound(f"Product with ID {product.pk} not found")
        return stock

    # ============================================
    # MOVEMENTS
    # ============================================

    def decrement_stock(self, product, amount, reference_id='', user=None, notes=''):
        """Take ``amount`` units out of stock or raise InsufficientStock."""
        self._check_amount(amount)

        with transaction.atomic(using=self.using):
            updated = self.products.filter(pk=product.pk, stock__gte=amount).update(
                stock=F('stock') - amount,
                updated_at=timezone.now(),
            )
            if not updated:
                available = self.current_stock(product)
                logger.warning(
                    f"[STOCK REFUSED] Product: {product.sku} ({product.name}) | "
                    f"Available: {available} | Requested: {amount} | "
                    f"Reference: {reference_id or 'N/A'}"
                )
                raise InsufficientStock(product.name, available, amount)

            remaining = self.current_stock(product)
            self._record(product, -amount, 'sale', reference_id, user, notes)

        product.stock = remaining
        logger.info(
            f"[STOCK OUT] Product: {product.sku} | Quantity: {amount} | "
            f"Remaining: {remaining} | Reference: {reference_id or 'N/A'}"
        )
        self._check_low_stock(product)
        return remaining

    def increment_stock(self, product, amount, reference_id='', user=None, notes=''):
        """Put ``amount`` units back into stock."""
        self._check_amount(amount)

        with transaction.atomic(using=self.using):
            updated = self.products.filter(pk=product.pk).update(
                stock=F('stock') + amount,
                updated_at=timezone.now(),
            )
            if not updated:
                raise NotFound(f"Product with ID {product.pk} not found")

            remaining = self.current_stock(product)
            self._record(product, amount, 'return', reference_id, user, notes)

        product.stock = remaining
        logger.info(
            f"[STOCK IN] Product: {product.sku} | Quantity: {amount} | "
            f"New Stock: {remaining} | Reference: {reference_id or 'N/A'}"
        )
        return remaining

    def adjust_stock(self, product, new_stock, user=None, notes='', expected=None):
        """
        Set stock to ``new_stock`` (manual correction) and log the difference.

        When ``expected`` is given, the stored stock must still equal it,
        otherwise StockConflict is raised and nothing changes.
        """
        if isinstance(new_stock, bool) or not isinstance(new_stock, int) or new_stock < 0:
            raise InvalidRequest("Stock must be a valid non-negative integer")

        with transaction.atomic(using=self.using):
            locked = self.products.select_for_update().filter(pk=product.pk).first()
            if locked is None:
                raise NotFound(f"Product with ID {product.pk} not found")
            if expected is not None and locked.stock != expected:
                logger.warning(
                    f"[STOCK CONFLICT] Product: {product.sku} | "
                    f"Expected: {expected} | Current: {locked.stock} | Requested: {new_stock}"
                )
                raise StockConflict(product.name, expected, locked.stock)

            difference = new_stock - locked.stock
            if difference:
                self.products.filter(pk=product.pk).update(
                    stock=new_stock,
                    updated_at=timezone.now(),
                )
                self._record(
                    product,
                    difference,
                    'adjustment',
                    '',
                    user,
                    notes or f"Manual adjustment: {locked.stock} -> {new_stock}",
                )
                logger.info(
                    f"[STOCK ADJUSTED] Product: {product.sku} | "
                    f"{locked.stock} -> {new_stock}"
                )

        product.stock = new_stock
        self._check_low_stock(product)
        return new_stock

    # ============================================
    # HELPERS
    # ============================================

    @staticmethod
    def _check_amount(amount):
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidRequest(f"Quantity must be a positive whole number, got {amount!r}")

    def _record(self, product, quantity, entry_type, reference_id, user, notes):
        return StockEntry.objects.using(self.using).create(
            product=product,
            quantity=quantity,
            entry_type=entry_type,
            reference_id=reference_id or '',
            notes=notes or '',
            created_by=user,
        )

    @staticmethod
    def _check_low_stock(product):
        threshold = settings.INVENTRIX_CONFIG['LOW_STOCK_THRESHOLD']
        if product.stock == 0:
            logger.error(f"OUT OF STOCK: {product.name} ({product.sku}) is out of stock")
        elif product.stock <= threshold:
            logger.warning(
                f"LOW STOCK ALERT: {product.name} ({product.sku}) "
                f"has only {product.stock} units remaining"
            )
