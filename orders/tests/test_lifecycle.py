from decimal import Decimal
from unittest import mock

import pytest

from inventory.exceptions import InsufficientStock, InvalidRequest, NotFound
from inventory.models import Product, StockEntry
from inventory.stock import CatalogStock
from orders.lifecycle import OrderLifecycle
from orders.models import Order, OrderItem

pytestmark = pytest.mark.django_db


@pytest.fixture
def lifecycle():
    return OrderLifecycle()


def stock_of(product):
    return Product.objects.get(pk=product.pk).stock


def assert_total_matches_lines(order):
    lines = OrderItem.objects.filter(order=order)
    assert order.order_total == sum((i.unit_price * i.quantity for i in lines), Decimal('0.00'))


class TestCreate:

    def test_example_scenario(self, lifecycle, user, make_product):
        product = make_product(name='P', price='10.00', stock=5)

        order = lifecycle.create(user, [{'product': product.pk, 'quantity': 3}], 'Carol')

        assert order.order_total == Decimal('30.00')
        assert stock_of(product) == 2

        with pytest.raises(InsufficientStock) as excinfo:
            lifecycle.create(user, [{'product': product.pk, 'quantity': 3}], 'Carol')
        assert (excinfo.value.product_name, excinfo.value.available, excinfo.value.requested) == ('P', 2, 3)
        assert stock_of(product) == 2
        assert Order.objects.count() == 1

    def test_order_fields(self, lifecycle, user, make_product):
        a = make_product(name='A', price='2.50', stock=10)
        b = make_product(name='B', price='4.00', stock=10)

        order = lifecycle.create(
            user,
            [{'product': b.pk, 'quantity': 1}, {'product': a.pk, 'quantity': 4}],
            '  Dana  ',
        )

        assert order.order_id == 'ORD000001'
        assert order.recipient == 'Dana'
        assert order.status == 'confirmed'
        assert order.owner_name == 'Alice Owner'
        assert len(order.order_time) == 8
        items = list(order.items.all())
        assert [i.product_name for i in items] == ['B', 'A']
        assert items[1].sku == a.sku
        assert items[1].line_total == Decimal('10.00')
        assert order.order_total == Decimal('14.00')
        assert_total_matches_lines(order)

    def test_price_is_frozen_at_order_time(self, lifecycle, user, make_product):
        product = make_product(price='10.00', stock=5)
        order = lifecycle.create(user, [{'product': product.pk, 'quantity': 1}], 'Eve')

        Product.objects.filter(pk=product.pk).update(price=Decimal('99.00'))

        order.refresh_from_db()
        assert order.items.get().unit_price == Decimal('10.00')
        assert order.order_total == Decimal('10.00')

    def test_order_ids_are_sequential_per_owner(self, lifecycle, user, other_user, make_product):
        mine = make_product(stock=10)
        theirs = make_product(owner=other_user, stock=10)

        first = lifecycle.create(user, [{'product': mine.pk, 'quantity': 1}], 'X')
        second = lifecycle.create(user, [{'product': mine.pk, 'quantity': 1}], 'X')
        foreign = lifecycle.create(other_user, [{'product': theirs.pk, 'quantity': 1}], 'Y')

        assert (first.order_id, second.order_id, foreign.order_id) == ('ORD000001', 'ORD000002', 'ORD000001')

    @pytest.mark.parametrize('items', [
        [],
        None,
        [{'product': 1}],
        [{'product': 1, 'quantity': 0}],
        [{'product': 1, 'quantity': -2}],
        [{'product': 1, 'quantity': 1.5}],
        [{'product': 1, 'quantity': '2'}],
    ])
    def test_rejects_malformed_items(self, lifecycle, user, items):
        with pytest.raises(InvalidRequest):
            lifecycle.create(user, items, 'Frank')

    @pytest.mark.parametrize('recipient', ['', '   ', None, 'x' * 101])
    def test_rejects_bad_recipient(self, lifecycle, user, make_product, recipient):
        product = make_product()
        with pytest.raises(InvalidRequest):
            lifecycle.create(user, [{'product': product.pk, 'quantity': 1}], recipient)

    def test_rejects_unknown_status(self, lifecycle, user, make_product):
        product = make_product()
        with pytest.raises(InvalidRequest):
            lifecycle.create(user, [{'product': product.pk, 'quantity': 1}], 'G', status='lost')

    def test_rejects_missing_owner(self, lifecycle, make_product):
        product = make_product()
        with pytest.raises(InvalidRequest):
            lifecycle.create(None, [{'product': product.pk, 'quantity': 1}], 'G')

    def test_unknown_and_foreign_products_are_not_found(self, lifecycle, user, other_user, make_product):
        foreign = make_product(owner=other_user)
        inactive = make_product(is_active=False)

        for product_id in (foreign.pk, inactive.pk, 999999):
            with pytest.raises(NotFound):
                lifecycle.create(user, [{'product': product_id, 'quantity': 1}], 'H')
        assert Order.objects.count() == 0

    def test_split_lines_for_one_product_are_checked_together(self, lifecycle, user, make_product):
        product = make_product(stock=3)

        with pytest.raises(InsufficientStock) as excinfo:
            lifecycle.create(
                user,
                [{'product': product.pk, 'quantity': 2}, {'product': product.pk, 'quantity': 2}],
                'I',
            )
        assert excinfo.value.requested == 4
        assert stock_of(product) == 3

    def test_failure_mid_way_rolls_everything_back(self, user, make_product):
        a = make_product(name='A', stock=5)
        b = make_product(name='B', stock=5)
        catalog = CatalogStock()
        real_decrement = catalog.decrement_stock

        def flaky(product, amount, **kwargs):
            if product.pk == b.pk:
                raise InsufficientStock(product.name, 0, amount)
            return real_decrement(product, amount, **kwargs)

        lifecycle = OrderLifecycle(catalog=catalog)
        with mock.patch.object(catalog, 'decrement_stock', side_effect=flaky):
            with pytest.raises(InsufficientStock):
                lifecycle.create(
                    user,
                    [{'product': a.pk, 'quantity': 2}, {'product': b.pk, 'quantity': 1}],
                    'J',
                )

        assert stock_of(a) == 5
        assert Order.objects.count() == 0
        assert OrderItem.objects.count() == 0
        assert not StockEntry.objects.filter(entry_type='sale').exists()


class TestUpdate:

    def test_own_hold_is_released_before_revalidation(self, lifecycle, user, make_product):
        product = make_product(stock=1)
        order = lifecycle.create(user, [{'product': product.pk, 'quantity': 1}], 'K')
        assert stock_of(product) == 0

        updated = lifecycle.update(user, order.order_id, items=[{'product': product.pk, 'quantity': 1}])

        assert stock_of(product) == 0
        assert updated.items.count() == 1

    def test_replace_items_moves_stock_and_total(self, lifecycle, user, make_product):
        a = make_product(name='A', price='3.00', stock=10)
        b = make_product(name='B', price='7.00', stock=10)
        order = lifecycle.create(user, [{'product': a.pk, 'quantity': 4}], 'L')

        updated = lifecycle.update(
            user, order.order_id,
            items=[{'product': a.pk, 'quantity': 1}, {'product': b.pk, 'quantity': 2}],
        )

        assert stock_of(a) == 9
        assert stock_of(b) == 8
        assert updated.order_total == Decimal('17.00')
        assert_total_matches_lines(updated)

    def test_failed_item_update_keeps_original_order(self, lifecycle, user, make_product):
        product = make_product(price='5.00', stock=3)
        order = lifecycle.create(user, [{'product': product.pk, 'quantity': 2}], 'M')

        with pytest.raises(InsufficientStock) as excinfo:
            lifecycle.update(user, order.order_id, items=[{'product': product.pk, 'quantity': 4}])

        assert excinfo.value.available == 3
        assert stock_of(product) == 1
        order.refresh_from_db()
        assert order.order_total == Decimal('10.00')
        assert order.items.get().quantity == 2

    def test_recipient_and_status_only(self, lifecycle, user, make_product):
        product = make_product(stock=5)
        order = lifecycle.create(user, [{'product': product.pk, 'quantity': 2}], 'N')

        updated = lifecycle.update(user, order.order_id.lower(), recipient='Nora', status='delivered')

        assert updated.recipient == 'Nora'
        assert updated.status == 'delivered'
        assert stock_of(product) == 3
        assert updated.order_total == order.order_total

    def test_status_can_move_backwards(self, lifecycle, user, make_product):
        product = make_product()
        order = lifecycle.create(user, [{'product': product.pk, 'quantity': 1}], 'O', status='delivered')
        assert lifecycle.update(user, order.order_id, status='confirmed').status == 'confirmed'

    def test_nothing_to_update(self, lifecycle, user, make_product):
        product = make_product()
        order = lifecycle.create(user, [{'product': product.pk, 'quantity': 1}], 'P')
        with pytest.raises(InvalidRequest):
            lifecycle.update(user, order.order_id)

    def test_missing_foreign_and_deleted_orders(self, lifecycle, user, other_user, make_product):
        product = make_product()
        order = lifecycle.create(user, [{'product': product.pk, 'quantity': 1}], 'Q')

        with pytest.raises(NotFound):
            lifecycle.update(user, 'ORD999999', status='shipped')
        with pytest.raises(NotFound):
            lifecycle.update(other_user, order.order_id, status='shipped')

        lifecycle.delete(user, order.order_id)
        with pytest.raises(NotFound):
            lifecycle.update(user, order.order_id, status='shipped')


class TestDelete:

    def test_restores_stock_once(self, lifecycle, user, make_product):
        product = make_product(stock=5)
        order = lifecycle.create(user, [{'product': product.pk, 'quantity': 3}], 'R')

        first = lifecycle.delete(user, order.order_id)
        second = lifecycle.delete(user, order.order_id)

        assert first.is_active is False
        assert second.is_active is False
        assert stock_of(product) == 5
        assert StockEntry.objects.filter(product=product, entry_type='return').count() == 1

    def test_missing_order(self, lifecycle, user):
        with pytest.raises(NotFound):
            lifecycle.delete(user, 'ORD000404')

    def test_other_owner_cannot_delete(self, lifecycle, user, other_user, make_product):
        product = make_product(stock=5)
        order = lifecycle.create(user, [{'product': product.pk, 'quantity': 1}], 'S')

        with pytest.raises(NotFound):
            lifecycle.delete(other_user, order.order_id)
        assert Order.objects.get(pk=order.pk).is_active is True

    def test_restores_stock_of_deactivated_product(self, lifecycle, user, make_product):
        product = make_product(stock=2)
        order = lifecycle.create(user, [{'product': product.pk, 'quantity': 2}], 'T')
        Product.objects.filter(pk=product.pk).update(is_active=False)

        lifecycle.delete(user, order.order_id)

        assert stock_of(product) == 2


class TestListAndGet:

    def test_active_orders_most_recent_first(self, lifecycle, user, other_user, make_product):
        product = make_product(stock=10)
        foreign_product = make_product(owner=other_user, stock=10)
        first = lifecycle.create(user, [{'product': product.pk, 'quantity': 1}], 'U')
        second = lifecycle.create(user, [{'product': product.pk, 'quantity': 1}], 'U')
        third = lifecycle.create(user, [{'product': product.pk, 'quantity': 1}], 'U')
        lifecycle.create(other_user, [{'product': foreign_product.pk, 'quantity': 1}], 'V')
        lifecycle.delete(user, second.order_id)

        orders = list(lifecycle.list(user))

        assert [o.order_id for o in orders] == [third.order_id, first.order_id]

    def test_get_is_case_insensitive(self, lifecycle, user, make_product):
        product = make_product()
        order = lifecycle.create(user, [{'product': product.pk, 'quantity': 1}], 'W')
        assert lifecycle.get(user, order.order_id.lower()).pk == order.pk


class TestAmountLimits:

    def test_line_total_wider_than_column_is_rejected(self, lifecycle, user, make_product):
        product = make_product(price='9999999999.99', stock=1000)

        with pytest.raises(InvalidRequest, match='line total'):
            lifecycle.create(user, [{'product': product.pk, 'quantity': 1000}], 'Big')

        assert stock_of(product) == 1000
        assert Order.objects.count() == 0
        assert list(lifecycle.list(user)) == []

    def test_order_total_wider_than_column_is_rejected(self, lifecycle, user, make_product):
        a = make_product(name='A', price='9999999999.99', stock=100)
        b = make_product(name='B', price='9999999999.99', stock=100)

        with pytest.raises(InvalidRequest, match='Order total'):
            lifecycle.create(
                user,
                [{'product': a.pk, 'quantity': 60}, {'product': b.pk, 'quantity': 60}],
                'Big',
            )

        assert stock_of(a) == 100
        assert stock_of(b) == 100
        assert Order.objects.count() == 0

    def test_largest_fitting_line_is_accepted(self, lifecycle, user, make_product):
        product = make_product(price='9999999999.99', stock=100)

        order = lifecycle.create(user, [{'product': product.pk, 'quantity': 99}], 'Big')

        assert order.order_total == Decimal('989999999999.01')
        assert [o.order_id for o in lifecycle.list(user)] == [order.order_id]

    def test_update_to_oversized_total_keeps_order(self, lifecycle, user, make_product):
        product = make_product(price='9999999999.99', stock=1000)
        order = lifecycle.create(user, [{'product': product.pk, 'quantity': 1}], 'Big')

        with pytest.raises(InvalidRequest):
            lifecycle.update(user, order.order_id, items=[{'product': product.pk, 'quantity': 1000}])

        assert stock_of(product) == 999
        reloaded = lifecycle.get(user, order.order_id)
        assert reloaded.order_total == Decimal('9999999999.99')
        assert reloaded.items.get().quantity == 1


def test_stock_rows_are_moved_in_product_order(user, make_product):
    first = make_product(name='First', stock=10)
    second = make_product(name='Second', stock=10)
    catalog = CatalogStock()
    touched = []
    real_decrement = catalog.decrement_stock
    real_increment = catalog.increment_stock

    def decrement(product, amount, **kwargs):
        touched.append(('out', product.pk))
        return real_decrement(product, amount, **kwargs)

    def increment(product, amount, **kwargs):
        touched.append(('in', product.pk))
        return real_increment(product, amount, **kwargs)

    lifecycle = OrderLifecycle(catalog=catalog)
    with mock.patch.object(catalog, 'decrement_stock', side_effect=decrement), \
            mock.patch.object(catalog, 'increment_stock', side_effect=increment):
        order = lifecycle.create(
            user,
            [{'product': second.pk, 'quantity': 1}, {'product': first.pk, 'quantity': 1}],
            'Ordered',
        )
        lifecycle.update(
            user, order.order_id,
            items=[{'product': second.pk, 'quantity': 2}, {'product': first.pk, 'quantity': 2}],
        )
        lifecycle.delete(user, order.order_id)

    assert touched == [
        ('out', first.pk), ('out', second.pk),
        ('in', first.pk), ('in', second.pk),
        ('out', first.pk), ('out', second.pk),
        ('in', first.pk), ('in', second.pk),
    ]
    # line order as requested is kept on the order itself
    assert [i.product_id for i in OrderItem.objects.filter(order=order)] == [second.pk, first.pk]
