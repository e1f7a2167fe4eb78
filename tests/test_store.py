import pytest

from listings.exceptions import PersistenceError
from listings.models import Listing
from listings.store import ListingStore


def document_for(user, **overrides):
    document = {
        'type': 'sale',
        'name': 'Detached house with garden',
        'bedrooms': 4,
        'bathrooms': 2,
        'parking': True,
        'furnished': False,
        'offer': False,
        'regular_price': 450000,
        'location': '5 Oak Lane, Leeds, UK',
        'geolocation': {'lat': 53.8, 'lng': -1.55},
        'image_urls': ['https://img.test/cover.jpg'],
        'user_ref': user.ref,
    }
    document.update(overrides)
    return document


def test_create_assigns_id_owner_and_timestamp(user):
    listing = ListingStore().create(document_for(user))

    stored = Listing.objects.get(id=listing.id)
    assert len(stored.id) == 32
    assert stored.user == user
    assert stored.timestamp is not None
    assert stored.discounted_price is None


def test_get_missing_returns_none(db):
    assert ListingStore().get('does-not-exist') is None


def test_replace_overwrites_every_field(listing, user):
    before = listing.timestamp
    document = document_for(user, name='Completely new listing')

    ListingStore().replace(listing.id, document)

    listing.refresh_from_db()
    assert listing.name == 'Completely new listing'
    assert listing.type == 'sale'
    # Not in the document, so cleared
    assert listing.discounted_price is None
    assert listing.timestamp >= before


def test_replace_keeps_owner(listing, other_user):
    with pytest.raises(PersistenceError):
        ListingStore().replace(listing.id, document_for(other_user))


def test_replace_missing_listing_fails(user):
    with pytest.raises(PersistenceError):
        ListingStore().replace('missing', document_for(user))


def test_incomplete_document_is_a_persistence_error(user):
    document = document_for(user)
    del document['regular_price']

    with pytest.raises(PersistenceError):
        ListingStore().create(document)


def test_delete(listing):
    store = ListingStore()
    assert store.delete(listing.id) is True
    assert store.delete(listing.id) is False
    assert not Listing.objects.filter(id=listing.id).exists()
