from decimal import Decimal

from rest_framework import serializers

from .models import Product, StockEntry
from . import services


class ProductSerializer(serializers.ModelSerializer):
    """Full serializer for product details"""

    price = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal('0.00'),
    )
    # Optional: omitted on update means "leave stock alone"
    stock = serializers.IntegerField(min_value=0, required=False)
    # Stock the client last saw; a mismatch rejects the stock edit
    expected_stock = serializers.IntegerField(min_value=0, required=False, write_only=True)
    # price x stock is not bounded by a column, so no digit limit here
    stock_value = serializers.DecimalField(
        max_digits=None,
        decimal_places=2,
        read_only=True
    )

    class Meta:
        model = Product
        fields = [
            'id',
            'sku',
            'name',
            'description',
            'category',
            'price',
            'stock',
            'expected_stock',
            'stock_value',
            'is_active',
            'owner',
            'owner_name',
            'created_at',
            'updated_at',
        ]
        read_only_fields = [
            'id',
            'sku',
            'owner',
            'owner_name',
            'created_at',
            'updated_at',
        ]

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError('Name cannot be blank')
        return value

    def validate_category(self, value):
        if not value.strip():
            raise serializers.ValidationError('Category cannot be blank')
        return value

    def create(self, validated_data):
        """Create product with an auto-generated SKU"""
        owner = self.context['request'].user
        validated_data.pop('expected_stock', None)
        return services.create_product(owner, **validated_data)

    def update(self, instance, validated_data):
        """Update product; stock edits are recorded as adjustments"""
        user = self.context['request'].user if 'request' in self.context else None
        return services.update_product(instance, user=user, **validated_data)


class StockEntrySerializer(serializers.ModelSerializer):
    """Read-only view of a stock movement"""

    entry_type_display = serializers.CharField(source='get_entry_type_display', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = StockEntry
        fields = [
            'id',
            'quantity',
            'entry_type',
            'entry_type_display',
            'reference_id',
            'notes',
            'created_by_username',
            'created_at',
        ]
        read_only_fields = fields
