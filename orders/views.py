import logging

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from .invoices import build_invoice_payload
from .lifecycle import OrderLifecycle
from .serializers import OrderCreateSerializer, OrderSerializer, OrderUpdateSerializer

logger = logging.getLogger(__name__)


class OrderViewSet(viewsets.ViewSet):
    """
    Orders of the signed-in user.

    All writes go through OrderLifecycle; request bodies are validated by
    serializers first, so only well-formed input reaches the lifecycle.
    """
    lookup_field = 'order_id'

    def get_lifecycle(self):
        return OrderLifecycle()

    def list(self, request):
        orders = self.get_lifecycle().list(request.user)
        data = OrderSerializer(orders, many=True).data
        return Response({'success': True, 'count': len(data), 'orders': data})

    def create(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = self.get_lifecycle().create(request.user, **serializer.validated_data)
        return Response({
            'success': True,
            'message': f'Order {order.order_id} created successfully',
            'order': OrderSerializer(order).data,
        }, status=status.HTTP_201_CREATED)

    def retrieve(self, request, order_id=None):
        order = self.get_lifecycle().get(request.user, order_id)
        return Response({'success': True, 'order': OrderSerializer(order).data})

    def update(self, request, order_id=None):
        serializer = OrderUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = self.get_lifecycle().update(request.user, order_id, **serializer.validated_data)
        return Response({
            'success': True,
            'message': f'Order {order.order_id} updated successfully',
            'order': OrderSerializer(order).data,
        })

    def partial_update(self, request, order_id=None):
        return self.update(request, order_id=order_id)

    def destroy(self, request, order_id=None):
        order = self.get_lifecycle().delete(request.user, order_id)
        return Response({
            'success': True,
            'message': f'Order {order.order_id} deleted successfully',
        })

    @action(detail=True, methods=['get'])
    def invoice(self, request, order_id=None):
        order = self.get_lifecycle().get(request.user, order_id)
        logger.info(f"[INVOICE] {order.order_id} generated for {request.user.username}")
        return Response({'success': True, 'invoice': build_invoice_payload(order)})
