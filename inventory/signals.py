from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
from .models import Product, StockEntry
import logging

logger = logging.getLogger(__name__)


# ============================================
# PRODUCT SIGNALS
# ============================================

@receiver(post_save, sender=Product)
def product_post_save(sender, instance, created, **kwargs):
    if not created:
        logger.debug(
            f"Product saved: {instance.sku} - {instance.name} "
            f"(Active: {instance.is_active}, Stock: {instance.stock})"
        )


# ============================================
# AUDIT TRAIL SIGNALS
# ============================================

@receiver(post_save, sender=StockEntry)
def create_audit_trail(sender, instance, created, **kwargs):
    """Mirror every stock movement into the audit log."""
    if created:
        logger.info(
            f"[STOCK MOVEMENT] "
            f"Type: {instance.get_entry_type_display()} | "
            f"Product: {instance.product.sku} ({instance.product.name}) | "
            f"Quantity: {instance.quantity:+d} | "
            f"Reference: {instance.reference_id or 'N/A'} | "
            f"User: {instance.created_by.username if instance.created_by else 'System'}"
        )


@receiver(post_delete, sender=StockEntry)
def log_stock_entry_deletion(sender, instance, **kwargs):
    """Stock entries should never be deleted outside a cascade; record it when they are."""
    logger.warning(
        f"[AUDIT ALERT] Stock Entry DELETED: "
        f"ID: {instance.id} | "
        f"Type: {instance.entry_type} | "
        f"Quantity: {instance.quantity} | "
        f"Reference: {instance.reference_id or 'N/A'}"
    )
