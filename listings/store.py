# listings/store.py

import logging

from django.db import DatabaseError, transaction
from django.utils import timezone

from .exceptions import PersistenceError
from .models import DOCUMENT_FIELDS, Listing

logger = logging.getLogger(__name__)


class ListingStore:
    """Document-style access to listings: read one, create, full replace, delete."""

    def get(self, listing_id):
        return Listing.objects.filter(id=listing_id).first()

    def create(self, document):
        listing = Listing(user_id=document['user_ref'])
        self._write(listing, document)
        logger.info("Created listing %s for user %s", listing.id, listing.user_ref)
        return listing

    def replace(self, listing_id, document):
        """Overwrite every field of an existing listing. Fields missing from the document are cleared."""
        listing = self.get(listing_id)
        if listing is None:
            raise PersistenceError(f"Listing {listing_id} does not exist")
        if str(document.get('user_ref')) != listing.user_ref:
            raise PersistenceError(f"Listing {listing_id} cannot change owner")
        self._write(listing, document)
        logger.info("Replaced listing %s", listing_id)
        return listing

    def delete(self, listing_id):
        deleted, _ = Listing.objects.filter(id=listing_id).delete()
        if deleted:
            logger.info("Deleted listing %s", listing_id)
        return bool(deleted)

    def _write(self, listing, document):
        for field in DOCUMENT_FIELDS:
            if field == 'user_ref':
                continue
            setattr(listing, field, document.get(field))
        if listing.image_urls is None:
            listing.image_urls = []
        # Server-assigned write time
        listing.timestamp = timezone.now()
        try:
            with transaction.atomic():
                listing.save()
        except DatabaseError as exc:
            logger.exception("Writing listing %s failed", listing.id)
            raise PersistenceError(str(exc)) from exc
