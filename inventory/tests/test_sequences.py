import threading

import pytest
from django.db import connections

from inventory.models import Counter
from inventory.sequences import format_identifier, next_order_id, next_sku, next_value


@pytest.mark.django_db
class TestNextValue:

    def test_missing_key_starts_after_start_value(self):
        assert next_value('widgets', start=0) == 1
        assert next_value('widgets', start=0) == 2
        assert Counter.objects.get(key='widgets').value == 2

    def test_custom_start(self):
        assert next_value('invoices', start=1000) == 1001

    def test_start_only_applies_to_new_keys(self):
        next_value('k', start=5)
        assert next_value('k', start=500) == 7

    def test_keys_are_independent(self):
        assert next_value('a') == 1
        assert next_value('a') == 2
        assert next_value('b') == 1

    def test_default_start_comes_from_settings(self, settings):
        settings.INVENTRIX_CONFIG = {**settings.INVENTRIX_CONFIG, 'SEQUENCE_START': 41}
        assert next_value('fresh') == 42


def test_format_identifier():
    assert format_identifier('PROD', 1, 5) == 'PROD00001'
    assert format_identifier('ord', 42, 6) == 'ORD000042'
    assert format_identifier('PROD', 123456, 5) == 'PROD123456'


@pytest.mark.django_db
def test_sku_and_order_namespaces_are_per_owner(user, other_user):
    assert next_sku(user) == 'PROD00001'
    assert next_sku(user) == 'PROD00002'
    assert next_order_id(user) == 'ORD000001'
    assert next_sku(other_user) == 'PROD00001'
    assert Counter.objects.filter(key=f'product:{user.pk}').exists()
    assert Counter.objects.filter(key=f'order:{user.pk}').exists()


@pytest.mark.django_db(transaction=True)
def test_concurrent_callers_get_distinct_consecutive_values():
    workers = 8
    calls_per_worker = 5
    results = []
    errors = []
    lock = threading.Lock()
    barrier = threading.Barrier(workers)

    def worker():
        try:
            barrier.wait()
            for _ in range(calls_per_worker):
                value = next_value('shared', start=0)
                with lock:
                    results.append(value)
        except Exception as exc:  # collected and asserted below
            errors.append(exc)
        finally:
            connections.close_all()

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    total = workers * calls_per_worker
    assert sorted(results) == list(range(1, total + 1))
    assert Counter.objects.get(key='shared').value == total
