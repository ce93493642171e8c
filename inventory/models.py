from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q


class Counter(models.Model):
    """
    Named integer sequence used to mint human-readable identifiers.

    Rows are only ever changed through ``inventory.sequences.next_value``,
    which increments and reads back inside one transaction.
    """

    key = models.CharField(max_length=100, unique=True)
    value = models.BigIntegerField(default=0)

    class Meta:
        ordering = ['key']

    def __str__(self):
        return f"{self.key} = {self.value}"


class Product(models.Model):
    """
    A catalog entry owned by one user.

    ``sku`` is assigned once at creation (see ``inventory.services``) and is
    unique per owner. ``stock`` is only moved through ``CatalogStock`` so that
    it can never go below zero.
    """

    sku = models.CharField(max_length=20, editable=False)
    name = models.CharField(max_length=200)
    description = models.TextField(max_length=1000, blank=True, default='')
    category = models.CharField(max_length=50, db_index=True)
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
    )
    stock = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='products',
    )
    owner_name = models.CharField(max_length=100, blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(fields=['owner', 'sku'], name='unique_product_sku_per_owner'),
            models.CheckConstraint(condition=Q(price__gte=0), name='product_price_non_negative'),
        ]
        indexes = [
            models.Index(fields=['owner', 'is_active'], name='product_owner_active_idx'),
            models.Index(fields=['name'], name='product_name_idx'),
        ]

    def __str__(self):
        return f"{self.sku} - {self.name}"

    @property
    def stock_value(self):
        return (self.price or Decimal('0.00')) * (self.stock or 0)


class StockEntry(models.Model):
    """Append-only record of every stock movement made through CatalogStock."""

    ENTRY_TYPE_CHOICES = [
        ('initial', 'Initial Stock'),
        ('sale', 'Sale'),
        ('return', 'Return'),
        ('adjustment', 'Adjustment'),
    ]

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='stock_entries')
    quantity = models.IntegerField(help_text="Signed: positive adds stock, negative removes it")
    entry_type = models.CharField(max_length=20, choices=ENTRY_TYPE_CHOICES)
    reference_id = models.CharField(max_length=50, blank=True, default='')
    notes = models.CharField(max_length=255, blank=True, default='')
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='stock_entries',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']
        verbose_name_plural = 'Stock entries'

    def __str__(self):
        return f"{self.get_entry_type_display()} {self.quantity:+d} ({self.product.sku})"

    @property
    def is_stock_in(self):
        return self.quantity > 0
