"""
Sequence generator for human-readable identifiers.

Each counter key holds one integer. ``next_value`` bumps it with a single
``UPDATE ... SET value = value + 1`` and reads the result back inside the
same transaction, so concurrent callers on one key always get distinct,
consecutive values.

Keys are scoped per owner, so SKUs and order IDs restart at 1 for every
account and the two namespaces never share a counter::

    product:<owner_id>  ->  PROD00001, PROD00002, ...
    order:<owner_id>    ->  ORD000001, ORD000002, ...
"""
import logging

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, transaction
from django.db.models import F

from .models import Counter

logger = logging.getLogger(__name__)


def next_value(key, start=None, using=DEFAULT_DB_ALIAS):
    """Increment counter ``key`` and return the new value.

    A missing counter is created holding ``start`` (default
    ``INVENTRIX_CONFIG['SEQUENCE_START']``), so its first value is
    ``start + 1``.
    """
    if start is None:
        start = settings.INVENTRIX_CONFIG['SEQUENCE_START']

    counters = Counter.objects.using(using)
    with transaction.atomic(using=using):
        if not counters.filter(key=key).update(value=F('value') + 1):
            _, created = counters.get_or_create(key=key, defaults={'value': start})
            if created:
                logger.info(f"[SEQUENCE] Created counter '{key}' starting at {start}")
            counters.filter(key=key).update(value=F('value') + 1)
        return counters.values_list('value', flat=True).get(key=key)


def format_identifier(prefix, value, width):
    return f"{prefix}{value:0{width}d}".upper()


def next_sku(owner, using=DEFAULT_DB_ALIAS):
    config = settings.INVENTRIX_CONFIG
    value = next_value(f"product:{owner.pk}", using=using)
    return format_identifier(config['SKU_PREFIX'], value, config['SKU_WIDTH'])


def next_order_id(owner, using=DEFAULT_DB_ALIAS):
    config = settings.INVENTRIX_CONFIG
    value = next_value(f"order:{owner.pk}", using=using)
    return format_identifier(config['ORDER_ID_PREFIX'], value, config['ORDER_ID_WIDTH'])
