from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone


class Order(models.Model):
    """
    A customer order owned by one user.

    ``order_id`` and ``owner_name`` are assigned by ``OrderLifecycle`` and
    ``order_total`` is recomputed there whenever the line items change.
    """

    STATUS_CHOICES = [
        ('confirmed', 'Confirmed'),
        ('shipped', 'Shipped'),
        ('delivered', 'Delivered'),
    ]

    order_id = models.CharField(max_length=20, editable=False)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='orders',
    )
    owner_name = models.CharField(max_length=100, blank=True, default='')
    recipient = models.CharField(max_length=100)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='confirmed')

    order_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    order_date = models.DateTimeField(default=timezone.now)
    order_time = models.CharField(max_length=8, blank=True, default='')

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-order_date', '-created_at']
        constraints = [
            models.UniqueConstraint(fields=['owner', 'order_id'], name='unique_order_id_per_owner'),
            models.CheckConstraint(condition=Q(order_total__gte=0), name='order_total_non_negative'),
        ]
        indexes = [
            models.Index(fields=['owner', 'is_active', '-order_date'], name='order_owner_active_idx'),
        ]

    def __str__(self):
        return f"{self.order_id} - {self.recipient}"

    def recalculate_total(self):
        """Sum the saved line totals into ``order_total`` (not saved)."""
        self.order_total = sum(
            (item.line_total for item in self.items.all()),
            Decimal('0.00'),
        )
        return self.order_total


class OrderItem(models.Model):
    """One product line of an order; name, SKU and price are frozen at order time."""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(
        'inventory.Product',
        on_delete=models.RESTRICT,
        related_name='order_items',
    )
    sku = models.CharField(max_length=20)
    product_name = models.CharField(max_length=200)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    quantity = models.PositiveIntegerField()
    line_total = models.DecimalField(max_digits=14, decimal_places=2)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['position', 'id']
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gte=1), name='order_item_quantity_positive'),
        ]

    def __str__(self):
        return f"{self.product_name} x {self.quantity}"

    @staticmethod
    def line_total_for(unit_price, quantity):
        return (Decimal(unit_price) * quantity).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
