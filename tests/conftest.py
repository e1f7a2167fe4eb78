import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from listings.geocoding import GoogleGeocoder
from listings.models import Listing
from listings.storage import CloudinaryImageStore
from tests.fakes import FakeGeocoder, FakeImageStore

User = get_user_model()


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def user(db):
    return User.objects.create_user(
        email='owner@example.com', password='S3cure-pass-123', first_name='Olive', last_name='Owner'
    )


@pytest.fixture
def other_user(db):
    return User.objects.create_user(
        email='someone@example.com', password='S3cure-pass-456', first_name='Sam', last_name='Else'
    )


@pytest.fixture
def listing(user):
    return Listing.objects.create(
        user=user,
        type='rent',
        name='Cosy flat near the park',
        bedrooms=2,
        bathrooms=1,
        parking=True,
        furnished=False,
        offer=True,
        regular_price=2000,
        discounted_price=1800,
        location='1 Main Street, London, UK',
        geolocation={'lat': 51.5, 'lng': -0.12},
        image_urls=['https://img.test/a.jpg', 'https://img.test/b.jpg'],
    )


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def other_client(other_user):
    client = APIClient()
    client.force_authenticate(user=other_user)
    return client


@pytest.fixture
def geocoder():
    return FakeGeocoder()


@pytest.fixture
def image_store():
    return FakeImageStore()


@pytest.fixture
def external_services(monkeypatch, geocoder, image_store):
    """Route the views' geocoder and image store to the fakes."""
    monkeypatch.setattr(GoogleGeocoder, 'from_settings', classmethod(lambda cls: geocoder))
    monkeypatch.setattr(CloudinaryImageStore, 'from_settings', classmethod(lambda cls: image_store))
    return geocoder, image_store
