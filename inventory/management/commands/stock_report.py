from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from inventory.models import Product


class Command(BaseCommand):
    help = 'List active products that are at or below the low-stock threshold'

    def add_arguments(self, parser):
        parser.add_argument('--owner', help='Only report products owned by this username')
        parser.add_argument(
            '--threshold',
            type=int,
            default=None,
            help='Stock level to report at or below (default: LOW_STOCK_THRESHOLD)',
        )

    def handle(self, *args, **options):
        threshold = options['threshold']
        if threshold is None:
            threshold = settings.INVENTRIX_CONFIG['LOW_STOCK_THRESHOLD']
        if threshold < 0:
            raise CommandError('--threshold must be zero or greater')

        products = Product.objects.filter(is_active=True, stock__lte=threshold).select_related('owner')

        if options['owner']:
            User = get_user_model()
            try:
                owner = User.objects.get(username=options['owner'])
            except User.DoesNotExist:
                raise CommandError(f"User '{options['owner']}' does not exist")
            products = products.filter(owner=owner)

        products = products.order_by('stock', 'sku')
        self.stdout.write(self.style.WARNING(
            f"Products with stock at or below {threshold}: {products.count()}"
        ))

        out_of_stock = 0
        for product in products:
            line = (
                f"{product.sku:<12} {product.name[:40]:<40} "
                f"{product.stock:>6}  ({product.owner.username})"
            )
            if product.stock == 0:
                out_of_stock += 1
                self.stdout.write(self.style.ERROR(line))
            else:
                self.stdout.write(line)

        self.stdout.write(self.style.SUCCESS(
            f"Done. Out of stock: {out_of_stock}"
        ))
