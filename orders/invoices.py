from django.conf import settings
from django.utils import timezone


def build_invoice_payload(order):
    """
    Build the JSON invoice document for an order.

    Arguments:
    - order: Order instance (its items are read in position order)
    """
    items = [
        {
            "sku": item.sku,
            "name": item.product_name,
            "qty": item.quantity,
            "unitPrice": f"{item.unit_price:.2f}",
            "total": f"{item.line_total:.2f}",
        }
        for item in order.items.all()
    ]

    return {
        "invoiceNumber": order.order_id,
        "date": timezone.localtime(order.order_date).strftime('%Y-%m-%d'),
        "time": order.order_time,
        "company": {
            "name": settings.INVENTRIX_COMPANY_NAME,
            "address": settings.INVENTRIX_COMPANY_ADDRESS,
            "email": settings.INVENTRIX_COMPANY_EMAIL,
        },
        "seller": order.owner_name,
        "recipient": order.recipient,
        "status": order.get_status_display(),
        "currency": settings.INVENTRIX_CURRENCY,
        "items": items,
        "total": f"{order.order_total:.2f}",
        "footer": [
            settings.INVENTRIX_INVOICE_FOOTER,
            f"Invoice {order.order_id}",
        ],
    }
