from django.contrib import admin
from django.utils.html import format_html
from django.urls import reverse
from django.db.models import Sum
from django.http import HttpResponse
import csv

from .models import Counter, Product, StockEntry

# ============================================
# CUSTOM ACTIONS
# ============================================

def export_to_csv(modeladmin, request, queryset):
    """Export selected rows to CSV"""
    opts = modeladmin.model._meta
    response = HttpResponse(content_type='text/csv')
    response['Content-Disposition'] = f'attachment; filename={opts.verbose_name_plural}.csv'

    writer = csv.writer(response)
    fields = [field for field in opts.concrete_fields]

    writer.writerow([field.verbose_name for field in fields])
    for obj in queryset:
        writer.writerow([field.value_from_object(obj) for field in fields])

    return response
export_to_csv.short_description = "Export to CSV"


def mark_as_active(modeladmin, request, queryset):
    queryset.update(is_active=True)
mark_as_active.short_description = "Mark as active"


def mark_as_inactive(modeladmin, request, queryset):
    queryset.update(is_active=False)
mark_as_inactive.short_description = "Mark as inactive (soft delete)"


# ============================================
# INLINE ADMINS
# ============================================

class StockEntryInline(admin.TabularInline):
    model = StockEntry
    extra = 0
    can_delete = False
    fields = ['entry_type', 'quantity', 'reference_id', 'created_by', 'created_at', 'notes']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


# ============================================
# PRODUCT ADMIN
# ============================================

@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = [
        'sku',
        'name',
        'category',
        'price',
        'stock_display',
        'owner_link',
        'is_active',
        'created_at',
    ]
    list_filter = ['is_active', 'category', 'created_at']
    search_fields = ['sku', 'name', 'category', 'owner__username', 'owner_name']
    readonly_fields = [
        'sku',
        'stock',
        'owner',
        'owner_name',
        'created_at',
        'updated_at',
        'stock_summary',
    ]
    fieldsets = (
        ('Basic Information', {'fields': ('sku', 'name', 'description', 'category')}),
        ('Inventory', {'fields': ('price', 'stock')}),
        ('Ownership & Status', {'fields': ('owner', 'owner_name', 'is_active')}),
        ('Timestamps', {'fields': ('created_at', 'updated_at'), 'classes': ('collapse',)}),
        ('Summary', {'fields': ('stock_summary',), 'classes': ('collapse',)}),
    )

    inlines = [StockEntryInline]
    actions = [export_to_csv, mark_as_active, mark_as_inactive]
    date_hierarchy = 'created_at'
    list_per_page = 50

    # Products are created through the API so SKUs come from the owner's sequence
    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('owner')

    def stock_display(self, obj):
        qty = obj.stock or 0
        if qty > 10:
            color = '#28a745'
        elif qty > 0:
            color = '#ffc107'
        else:
            color = '#dc3545'
        return format_html('<span style="color: {}; font-weight: bold;">{}</span>', color, qty)
    stock_display.short_description = 'Stock'
    stock_display.admin_order_field = 'stock'

    def owner_link(self, obj):
        url = reverse('admin:auth_user_change', args=[obj.owner_id])
        return format_html('<a href="{}">{}</a>', url, obj.owner_name or obj.owner.username)
    owner_link.short_description = 'Owner'
    owner_link.admin_order_field = 'owner__username'

    def stock_summary(self, obj):
        totals = {
            row['entry_type']: row['total']
            for row in obj.stock_entries.values('entry_type').annotate(total=Sum('quantity'))
        }
        return format_html(
            'Initial: {} | Sold: {} | Returned: {} | Adjusted: {}<br>'
            '<strong>Stock value: {}</strong>',
            totals.get('initial', 0),
            abs(totals.get('sale', 0)),
            totals.get('return', 0),
            totals.get('adjustment', 0),
            '{:,.2f}'.format(obj.stock_value),
        )
    stock_summary.short_description = 'Stock Summary'


# ============================================
# STOCK ENTRY ADMIN
# ============================================

@admin.register(StockEntry)
class StockEntryAdmin(admin.ModelAdmin):
    list_display = [
        'id',
        'product_link',
        'entry_type_badge',
        'quantity_display',
        'reference_id',
        'created_by',
        'created_at',
    ]
    list_filter = ['entry_type', 'created_at']
    search_fields = ['product__sku', 'product__name', 'reference_id', 'notes', 'created_by__username']
    date_hierarchy = 'created_at'
    list_per_page = 100
    actions = [export_to_csv]

    # Audit trail: read-only
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('product', 'created_by')

    def product_link(self, obj):
        url = reverse('admin:inventory_product_change', args=[obj.product_id])
        return format_html('<a href="{}">{} ({})</a>', url, obj.product.name, obj.product.sku)
    product_link.short_description = 'Product'
    product_link.admin_order_field = 'product__name'

    def entry_type_badge(self, obj):
        colors = {
            'initial': '#28a745',
            'sale': '#dc3545',
            'return': '#17a2b8',
            'adjustment': '#ffc107',
        }
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 10px; border-radius: 3px; font-size: 11px;">{}</span>',
            colors.get(obj.entry_type, '#6c757d'),
            obj.get_entry_type_display().upper()
        )
    entry_type_badge.short_description = 'Type'
    entry_type_badge.admin_order_field = 'entry_type'

    def quantity_display(self, obj):
        color = '#28a745' if obj.is_stock_in else '#dc3545'
        return format_html('<span style="color: {}; font-weight: bold;">{}</span>', color, f'{obj.quantity:+d}')
    quantity_display.short_description = 'Quantity'
    quantity_display.admin_order_field = 'quantity'


@admin.register(Counter)
class CounterAdmin(admin.ModelAdmin):
    list_display = ['key', 'value']
    search_fields = ['key']
    readonly_fields = ['key', 'value']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
