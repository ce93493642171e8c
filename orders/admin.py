from django.contrib import admin, messages
from django.utils.html import format_html

from .lifecycle import OrderLifecycle
from .models import Order, OrderItem


# ============================================
# INLINE ADMIN FOR ORDER ITEMS
# ============================================

class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    fields = ['position', 'product', 'sku', 'product_name', 'unit_price', 'quantity', 'line_total']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


# ============================================
# ORDER ADMIN
# ============================================

@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    inlines = [OrderItemInline]

    list_display = [
        'order_id',
        'owner_name',
        'recipient',
        'item_count_display',
        'order_total_display',
        'status_badge',
        'order_date',
        'is_active',
    ]
    list_filter = ['status', 'is_active', 'order_date']
    search_fields = ['order_id', 'recipient', 'owner__username', 'owner_name', 'items__sku']
    readonly_fields = [
        'order_id',
        'owner',
        'owner_name',
        'recipient',
        'order_total',
        'order_date',
        'order_time',
        'is_active',
        'created_at',
        'updated_at',
    ]
    fieldsets = (
        ('Order', {'fields': ('order_id', 'recipient', 'status', 'order_total')}),
        ('Ownership', {'fields': ('owner', 'owner_name')}),
        ('Timestamps', {
            'fields': ('order_date', 'order_time', 'is_active', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )
    actions = ['soft_delete_orders_action']
    date_hierarchy = 'order_date'
    list_per_page = 50

    # Orders are created through the API; hard deletes would skip stock restoration
    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('owner').prefetch_related('items')

    def item_count_display(self, obj):
        return sum(item.quantity for item in obj.items.all())
    item_count_display.short_description = 'Units'

    def order_total_display(self, obj):
        return format_html('<strong>{}</strong>', '{:,.2f}'.format(obj.order_total))
    order_total_display.short_description = 'Total'
    order_total_display.admin_order_field = 'order_total'

    def status_badge(self, obj):
        colors = {
            'confirmed': '#17a2b8',
            'shipped': '#ffc107',
            'delivered': '#28a745',
        }
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 10px; border-radius: 3px; font-size: 11px;">{}</span>',
            colors.get(obj.status, '#6c757d'),
            obj.get_status_display().upper()
        )
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'status'

    @admin.action(description="Delete selected orders (restore stock)")
    def soft_delete_orders_action(self, request, queryset):
        lifecycle = OrderLifecycle()
        deleted = 0
        for order in queryset.filter(is_active=True).select_related('owner'):
            lifecycle.delete(order.owner, order.order_id)
            deleted += 1

        self.message_user(
            request,
            f"Deleted {deleted} order(s); their stock has been returned.",
            messages.SUCCESS
        )
