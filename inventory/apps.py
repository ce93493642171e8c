from django.apps import AppConfig


class InventoryConfig(AppConfig):
    """
    Product catalog, stock accounting and identifier sequences.

    Signals write an audit log line for every stock movement.
    """

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'inventory'
    verbose_name = 'Inventory Management'

    def ready(self):
        import inventory.signals  # noqa: F401
