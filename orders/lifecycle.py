"""
Order lifecycle: create, update and soft-delete orders against catalog stock.

Each operation runs in a single transaction on the configured database
alias. Identity, owner name, line pricing and the order total are assigned
here as explicit steps; nothing is derived in ``Model.save()``.

Stock is only moved through ``CatalogStock``, whose guarded decrement
refuses to go below zero. If any line fails (unknown product, not enough
stock, a concurrent order taking the last units) the whole operation rolls
back, including the order row and any stock already taken.
"""
import logging
from collections import defaultdict
from decimal import Decimal

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, transaction
from django.utils import timezone

from inventory.exceptions import InsufficientStock, InvalidRequest, NotFound
from inventory.sequences import next_order_id
from inventory.stock import CatalogStock
from users.models import display_name

from .models import Order, OrderItem

logger = logging.getLogger(__name__)

VALID_STATUSES = [choice[0] for choice in Order.STATUS_CHOICES]
RECIPIENT_MAX_LENGTH = 100


def column_limit(model, field_name):
    """Smallest value that no longer fits the DecimalField ``field_name``."""
    field = model._meta.get_field(field_name)
    return Decimal(10) ** (field.max_digits - field.decimal_places)


LINE_TOTAL_LIMIT = column_limit(OrderItem, 'line_total')
ORDER_TOTAL_LIMIT = column_limit(Order, 'order_total')


class OrderLifecycle:
    """Order operations bound to one database alias and one stock accessor."""

    def __init__(self, catalog=None, using=DEFAULT_DB_ALIAS):
        self.using = using
        self.catalog = catalog or CatalogStock(using=using)

    @property
    def orders(self):
        return Order.objects.using(self.using)

    # ============================================
    # OPERATIONS
    # ============================================

    def create(self, owner, items, recipient, status=None):
        """Validate, price, number and persist a new order, then take its stock."""
        self._check_owner(owner)
        recipient = self._clean_recipient(recipient)
        status = self._clean_status(status or settings.INVENTRIX_CONFIG['DEFAULT_ORDER_STATUS'])
        requested = self._clean_items(items)

        with transaction.atomic(using=self.using):
            lines, total = self._price_items(owner, requested)

            now = timezone.localtime()
            order = Order(
                order_id=next_order_id(owner, using=self.using),
                owner=owner,
                owner_name=display_name(owner),
                recipient=recipient,
                status=status,
                order_total=total,
                order_date=now,
                order_time=now.strftime('%H:%M:%S'),
            )
            order.save(using=self.using)
            self._save_items(order, lines)
            self._take_stock(order, lines, owner)

        logger.info(
            f"[ORDER CREATED] {order.order_id} | Owner: {owner.username} | "
            f"Recipient: {order.recipient} | Items: {len(lines)} | Total: {order.order_total}"
        )
        return self.get(owner, order.order_id)

    def update(self, owner, order_id, items=None, recipient=None, status=None):
        """
        Change an order's items, recipient and/or status.

        When ``items`` is given, the order's current lines are returned to
        stock first, so the new lines are checked against stock that
        includes this order's own previous hold.
        """
        self._check_owner(owner)
        if items is None and recipient is None and status is None:
            raise InvalidRequest("Nothing to update: supply items, recipient or status")

        requested = self._clean_items(items) if items is not None else None
        if recipient is not None:
            recipient = self._clean_recipient(recipient)
        if status is not None:
            status = self._clean_status(status)

        with transaction.atomic(using=self.using):
            order = self._load(owner, order_id, lock=True)
            changed = []

            if requested is not None:
                self._restore_stock(order, owner, notes=f"Order {order.order_id} updated")
                order.items.all().delete()
                lines, _ = self._price_items(owner, requested)
                self._save_items(order, lines)
                self._take_stock(order, lines, owner)
                changed.append('items')

            if recipient is not None:
                order.recipient = recipient
                changed.append('recipient')
            if status is not None:
                order.status = status
                changed.append('status')

            order.recalculate_total()
            order.save(
                using=self.using,
                update_fields=[f for f in changed if f != 'items'] + ['order_total', 'updated_at'],
            )

        logger.info(
            f"[ORDER UPDATED] {order.order_id} | Owner: {owner.username} | "
            f"Fields: {', '.join(changed)} | Total: {order.order_total}"
        )
        return self.get(owner, order.order_id)

    def delete(self, owner, order_id):
        """
        Soft-delete an order and return its stock.

        Only the call that actually flips ``is_active`` restores stock, so
        repeated or concurrent deletes of the same order restore it once.
        """
        self._check_owner(owner)

        with transaction.atomic(using=self.using):
            order = self.orders.filter(owner=owner, order_id=self._normalize_id(order_id)).first()
            if order is None:
                raise NotFound(f"Order {order_id} not found")

            flipped = self.orders.filter(pk=order.pk, is_active=True).update(
                is_active=False,
                updated_at=timezone.now(),
            )
            if flipped:
                self._restore_stock(order, owner, notes=f"Order {order.order_id} deleted")

        order.is_active = False
        if flipped:
            logger.info(f"[ORDER DELETED] {order.order_id} | Owner: {owner.username}")
        else:
            logger.info(f"[ORDER DELETED] {order.order_id} already inactive, stock untouched")
        return order

    def list(self, owner):
        """Active orders for ``owner``, most recent first."""
        self._check_owner(owner)
        return (
            self.orders
            .filter(owner=owner, is_active=True)
            .prefetch_related('items')
            .order_by('-order_date', '-created_at', '-id')
        )

    def get(self, owner, order_id):
        self._check_owner(owner)
        return self._load(owner, order_id)

    # ============================================
    # VALIDATION
    # ============================================

    @staticmethod
    def _check_owner(owner):
        if owner is None or not getattr(owner, 'pk', None):
            raise InvalidRequest("Owner is required")

    @staticmethod
    def _clean_recipient(recipient):
        if not isinstance(recipient, str) or not recipient.strip():
            raise InvalidRequest("Recipient is required")
        recipient = recipient.strip()
        if len(recipient) > RECIPIENT_MAX_LENGTH:
            raise InvalidRequest(f"Recipient cannot exceed {RECIPIENT_MAX_LENGTH} characters")
        return recipient

    @staticmethod
    def _clean_status(status):
        if status not in VALID_STATUSES:
            raise InvalidRequest(
                f"Invalid status '{status}'. Use one of: {', '.join(VALID_STATUSES)}"
            )
        return status

    @staticmethod
    def _clean_items(items):
        """Return ``[(product_id, quantity), ...]`` or raise InvalidRequest."""
        if not items:
            raise InvalidRequest("Order must contain at least one item")

        requested = []
        for index, item in enumerate(items, start=1):
            try:
                product_id = item['product']
                quantity = item['quantity']
            except (KeyError, TypeError):
                raise InvalidRequest(f"Item {index}: product and quantity are required")

            if product_id in (None, ''):
                raise InvalidRequest(f"Item {index}: product is required")
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
                raise InvalidRequest(f"Item {index}: quantity must be a positive whole number")

            requested.append((product_id, quantity))
        return requested

    # ============================================
    # STEPS
    # ============================================

    def _price_items(self, owner, requested):
        """
        Resolve products and freeze name, SKU and price for each line.

        Quantities for the same product are summed before checking stock, so
        an order can't pass the check by splitting one product across lines.
        """
        lines = []
        wanted = defaultdict(int)
        total = Decimal('0.00')

        for position, (product_id, quantity) in enumerate(requested):
            product = self.catalog.find_by_id(product_id, owner=owner)
            wanted[product.pk] += quantity
            if product.stock < wanted[product.pk]:
                raise InsufficientStock(product.name, product.stock, wanted[product.pk])

            line_total = OrderItem.line_total_for(product.price, quantity)
            if line_total >= LINE_TOTAL_LIMIT:
                raise InvalidRequest(
                    f"Item {position + 1}: line total {line_total} exceeds the "
                    f"maximum of {LINE_TOTAL_LIMIT - Decimal('0.01')}"
                )
            lines.append(OrderItem(
                product=product,
                sku=product.sku,
                product_name=product.name,
                unit_price=product.price,
                quantity=quantity,
                line_total=line_total,
                position=position,
            ))
            total += line_total

        if total >= ORDER_TOTAL_LIMIT:
            raise InvalidRequest(
                f"Order total {total} exceeds the maximum of {ORDER_TOTAL_LIMIT - Decimal('0.01')}"
            )
        return lines, total

    def _save_items(self, order, lines):
        for line in lines:
            line.order = order
        OrderItem.objects.using(self.using).bulk_create(lines)

    # Product rows are always touched in primary-key order so two orders
    # sharing products can't lock them in opposite orders.

    def _take_stock(self, order, lines, user):
        for line in sorted(lines, key=lambda line: line.product.pk):
            self.catalog.decrement_stock(
                line.product,
                line.quantity,
                reference_id=order.order_id,
                user=user,
                notes=f"Order {order.order_id}",
            )

    def _restore_stock(self, order, user, notes):
        items = (
            OrderItem.objects.using(self.using)
            .filter(order=order)
            .select_related('product')
            .order_by('product_id', 'position')
        )
        for item in items:
            self.catalog.increment_stock(
                item.product,
                item.quantity,
                reference_id=order.order_id,
                user=user,
                notes=notes,
            )

    def _load(self, owner, order_id, lock=False):
        queryset = self.orders.filter(owner=owner, is_active=True)
        if lock:
            queryset = queryset.select_for_update()
        else:
            queryset = queryset.prefetch_related('items')
        try:
            return queryset.get(order_id=self._normalize_id(order_id))
        except Order.DoesNotExist:
            raise NotFound(f"Order {order_id} not found")

    @staticmethod
    def _normalize_id(order_id):
        return str(order_id or '').strip().upper()
