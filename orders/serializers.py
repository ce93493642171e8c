from rest_framework import serializers

from .models import Order, OrderItem


# ============================================
# REQUEST SERIALIZERS
# ============================================

class OrderItemRequestSerializer(serializers.Serializer):
    product = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)


class OrderCreateSerializer(serializers.Serializer):
    items = OrderItemRequestSerializer(many=True, allow_empty=False)
    recipient = serializers.CharField(max_length=100)
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES, required=False)


class OrderUpdateSerializer(serializers.Serializer):
    """Partial update: any of items, recipient, status"""
    items = OrderItemRequestSerializer(many=True, allow_empty=False, required=False)
    recipient = serializers.CharField(max_length=100, required=False)
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('Supply at least one of: items, recipient, status')
        return attrs


# ============================================
# RESPONSE SERIALIZERS
# ============================================

class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = ['product', 'sku', 'product_name', 'unit_price', 'quantity', 'line_total']
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Order
        fields = [
            'order_id',
            'items',
            'order_total',
            'order_date',
            'order_time',
            'recipient',
            'status',
            'status_display',
            'owner',
            'owner_name',
            'is_active',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields
