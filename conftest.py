from decimal import Decimal

import pytest
from django.contrib.auth.models import User
from django.core.cache import cache
from rest_framework.test import APIClient

from inventory.services import create_product


@pytest.fixture(autouse=True)
def clear_cache():
    # DRF throttling counts requests in the cache
    cache.clear()
    yield
    cache.clear()


def make_user(email, name, password='secret123'):
    user = User.objects.create_user(username=email, email=email, password=password)
    user.profile.full_name = name
    user.profile.save()
    return user


@pytest.fixture
def user(db):
    return make_user('alice@example.com', 'Alice Owner')


@pytest.fixture
def other_user(db):
    return make_user('bob@example.com', 'Bob Other')


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def make_product(user):
    def _make(owner=None, name='Widget', category='Tools', price='10.00', stock=5, **extra):
        return create_product(
            owner or user,
            name=name,
            category=category,
            price=Decimal(price),
            stock=stock,
            **extra
        )
    return _make
