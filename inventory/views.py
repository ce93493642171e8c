from decimal import Decimal, InvalidOperation

from django.db.models import Q
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
import logging

from .exceptions import InvalidRequest, NotFound
from .models import Product
from .serializers import ProductSerializer, StockEntrySerializer
from . import services


logger = logging.getLogger(__name__)

# Query-string operators accepted by the price/stock filters
NUMERIC_OPERATORS = {
    'equal': '',
    'greater': '__gt',
    'less': '__lt',
    'not-equal': None,
}


def apply_numeric_filter(queryset, field, raw_value, operator, parse):
    """Filter ``field`` by ``raw_value`` using one of NUMERIC_OPERATORS."""
    if operator not in NUMERIC_OPERATORS:
        raise InvalidRequest(
            f"Unknown {field} operator '{operator}'. "
            f"Use one of: {', '.join(NUMERIC_OPERATORS)}"
        )
    try:
        value = parse(raw_value)
    except (ValueError, TypeError, InvalidOperation):
        raise InvalidRequest(f"{field} must be a valid number")

    suffix = NUMERIC_OPERATORS[operator]
    if suffix is None:
        return queryset.exclude(**{field: value})
    return queryset.filter(**{f"{field}{suffix}": value})


# ====================================
# REST API VIEWSETS
# ====================================

class ProductViewSet(viewsets.ModelViewSet):
    """API endpoint for the signed-in user's products"""
    serializer_class = ProductSerializer

    def get_queryset(self):
        """Owner-scoped products, filtered by query parameters on list"""
        queryset = Product.objects.filter(owner=self.request.user)
        if self.action != 'list':
            return queryset

        params = self.request.query_params

        # Active flag: true (default), false or all
        is_active = params.get('isActive', 'true').lower()
        if is_active != 'all':
            queryset = queryset.filter(is_active=is_active == 'true')

        name = params.get('name')
        if name:
            queryset = queryset.filter(name__icontains=name)

        category = params.get('category')
        if category:
            queryset = queryset.filter(category__icontains=category)

        sku = params.get('sku')
        if sku:
            queryset = queryset.filter(sku__icontains=sku)

        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) |
                Q(sku__icontains=search) |
                Q(category__icontains=search)
            )

        price = params.get('price')
        if price:
            queryset = apply_numeric_filter(
                queryset, 'price', price, params.get('priceOperator', 'equal'), Decimal
            )

        stock = params.get('stock')
        if stock:
            queryset = apply_numeric_filter(
                queryset, 'stock', stock, params.get('stockOperator', 'equal'), int
            )

        return queryset.order_by('-created_at', '-id')

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product = serializer.save()
        return Response({
            'success': True,
            'message': f'Product "{product.name}" created successfully',
            'product': self.get_serializer(product).data,
        }, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        product = self.get_object()
        serializer = self.get_serializer(product, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        product = serializer.save()
        product.refresh_from_db()
        return Response({
            'success': True,
            'message': 'Product updated successfully',
            'product': self.get_serializer(product).data,
        })

    def destroy(self, request, *args, **kwargs):
        # Soft delete (mark as inactive) instead of hard delete
        product = self.get_object()
        services.deactivate_product(product)
        return Response({
            'success': True,
            'message': f'Product "{product.name}" ({product.sku}) deleted successfully',
        })

    @action(detail=False, methods=['get'], url_path='lookup')
    def lookup(self, request):
        """Find an active product by exact SKU (for order entry / barcode scanning)"""
        sku = request.query_params.get('sku', '').strip().upper()
        if not sku:
            raise InvalidRequest('SKU required')

        product = self.get_queryset().filter(sku=sku, is_active=True).first()
        if product is None:
            raise NotFound(f'Product with SKU {sku} not found')

        return Response({'success': True, 'product': self.get_serializer(product).data})

    @action(detail=True, methods=['get'], url_path='stock-entries')
    def stock_entries(self, request, pk=None):
        """Stock movement history for one product, newest first"""
        product = self.get_object()
        entries = product.stock_entries.select_related('created_by')[:50]
        return Response({
            'success': True,
            'product': product.sku,
            'entries': StockEntrySerializer(entries, many=True).data,
        })
