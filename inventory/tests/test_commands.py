from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

pytestmark = pytest.mark.django_db


def report(*args):
    out = StringIO()
    call_command('stock_report', *args, stdout=out)
    return out.getvalue()


def test_lists_low_and_empty_products(make_product):
    low = make_product(name='Low', stock=2)
    empty = make_product(name='Empty', stock=0)
    plenty = make_product(name='Plenty', stock=50)

    output = report()

    assert low.sku in output
    assert empty.sku in output
    assert plenty.sku not in output
    assert 'Out of stock: 1' in output


def test_threshold_and_owner_filters(make_product, other_user):
    make_product(name='Mine', stock=4)
    make_product(owner=other_user, name='Theirs', stock=1)

    output = report('--threshold', '3')
    assert 'Theirs' in output
    assert 'Mine' not in output

    output = report('--owner', 'alice@example.com', '--threshold', '5')
    assert 'Mine' in output
    assert 'Theirs' not in output


def test_unknown_owner():
    with pytest.raises(CommandError):
        report('--owner', 'nobody')
