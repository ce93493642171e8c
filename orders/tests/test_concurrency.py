import threading

import pytest
from django.db import connections

from inventory.exceptions import InsufficientStock
from inventory.models import Product
from orders.lifecycle import OrderLifecycle
from orders.models import Order

pytestmark = pytest.mark.django_db(transaction=True)


def run_concurrently(workers, target):
    """Start ``workers`` threads together and collect each result or exception."""
    outcomes = []
    lock = threading.Lock()
    barrier = threading.Barrier(workers)

    def runner(index):
        try:
            barrier.wait()
            try:
                result = target(index)
            except Exception as exc:  # reported back to the test
                result = exc
            with lock:
                outcomes.append(result)
        finally:
            connections.close_all()

    threads = [threading.Thread(target=runner, args=(i,)) for i in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return outcomes


def test_racing_orders_for_last_units(user, make_product):
    product = make_product(stock=3)

    outcomes = run_concurrently(
        6,
        lambda i: OrderLifecycle().create(user, [{'product': product.pk, 'quantity': 1}], f'R{i}'),
    )

    placed = [o for o in outcomes if isinstance(o, Order)]
    refused = [o for o in outcomes if isinstance(o, InsufficientStock)]
    assert len(placed) == 3
    assert len(refused) == 3
    assert Product.objects.get(pk=product.pk).stock == 0
    assert Order.objects.filter(is_active=True).count() == 3
    assert len({o.order_id for o in placed}) == 3


def test_racing_deletes_restore_stock_once(user, make_product):
    product = make_product(stock=4)
    order = OrderLifecycle().create(user, [{'product': product.pk, 'quantity': 4}], 'Z')

    outcomes = run_concurrently(5, lambda i: OrderLifecycle().delete(user, order.order_id))

    assert all(isinstance(o, Order) for o in outcomes)
    assert Product.objects.get(pk=product.pk).stock == 4
