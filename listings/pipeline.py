# listings/pipeline.py
"""
Listing submission pipeline shared by the create and edit flows.

Steps run strictly in order and each one may end the submission:

1. field, price and image-count validation (no side effects)
2. geolocation, from the geocoder or from the submitted coordinates
3. concurrent upload of newly selected images, waiting for every one
   (an edit keeps the stored images the selection does not replace)
4. document assembly
5. persistence (new document or full replace)

The caller's identity, the geocoder, the image store, the listing store and
the notification/navigation sink are all passed in.
"""

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import contextmanager

from django.core.cache import cache
from django.utils.text import get_valid_filename

from .exceptions import (
    ListingError,
    ListingNotFound,
    NotListingOwner,
    PersistenceError,
    SubmissionInProgress,
    UploadError,
    ValidationError,
)
from .form_state import GALLERY_FIELD
from .models import MAX_IMAGES
from .serializers import ListingFormSerializer, first_error
from .sinks import HOME_PATH, category_path

logger = logging.getLogger(__name__)

# Form-only fields that never reach the stored document
TRANSIENT_FIELDS = (GALLERY_FIELD, 'address', 'latitude', 'longitude')


@contextmanager
def submission_guard(key, timeout):
    """Refuse a second submission for the same key while one is running."""
    if not cache.add(key, True, timeout):
        raise SubmissionInProgress()
    try:
        yield
    finally:
        cache.delete(key)


def load_owned_listing(store, listing_id, user_ref, sink, action='edit'):
    """
    Fetch a listing for its owner. Anyone else is sent home with a message,
    and so is everyone when the listing is gone.
    """
    listing = store.get(listing_id)
    if listing is None:
        exc = ListingNotFound()
    elif listing.user_ref != str(user_ref):
        logger.warning("User %s tried to %s listing %s owned by %s",
                       user_ref, action, listing_id, listing.user_ref)
        exc = NotListingOwner(f"You cannot {action} that listing")
    else:
        return listing
    sink.navigate(HOME_PATH)
    sink.error(exc.message)
    raise exc


def assemble_document(form_data, location, geolocation, image_urls, user_ref):
    """Build the stored document from the submitted form and the resolved values."""
    document = dict(form_data)
    for field in TRANSIENT_FIELDS:
        document.pop(field, None)
    document['location'] = location
    document['geolocation'] = geolocation
    document['image_urls'] = list(image_urls)
    document['user_ref'] = str(user_ref)
    if not document.get('offer'):
        document.pop('discounted_price', None)
    return document


class ListingSubmission:

    def __init__(self, user_ref, geocoder, image_store, store, sink,
                 geolocation_enabled=True, max_images=MAX_IMAGES, lock_timeout=120):
        self.user_ref = str(user_ref)
        self.geocoder = geocoder
        self.image_store = image_store
        self.store = store
        self.sink = sink
        self.geolocation_enabled = geolocation_enabled
        self.max_images = min(max_images, MAX_IMAGES)
        self.lock_timeout = lock_timeout

    def create(self, form):
        listing = self._run(form, existing=None)
        self.sink.success("Listing saved")
        self.sink.navigate(category_path(listing.type, listing.id))
        return listing

    def update(self, existing, form):
        """Full replace of ``existing``, which the caller loaded with load_owned_listing."""
        listing = self._run(form, existing=existing)
        self.sink.success("Listing successfully updated!")
        self.sink.navigate(category_path(listing.type, listing.id))
        return listing

    def _run(self, form, existing):
        guard_key = f"listing-submission:{self.user_ref}:{existing.id if existing else 'new'}"
        try:
            with submission_guard(guard_key, self.lock_timeout):
                return self._submit(form, existing)
        except ListingError as exc:
            self.sink.error(exc.message)
            raise

    def _submit(self, form, existing):
        kept_urls = self.kept_image_urls(form, existing)
        self.validate(form, kept_urls)
        location, geolocation = self.resolve_location(form)
        if form.images:
            uploaded_urls, keys = self.upload_images(form.images)
        else:
            uploaded_urls, keys = [], []

        owner_ref = existing.user_ref if existing else self.user_ref
        image_urls = uploaded_urls + kept_urls
        replaced = []
        if existing is not None:
            replaced = [url for url in existing.image_urls or [] if url not in kept_urls]
        document = assemble_document(form.as_dict(), location, geolocation, image_urls, owner_ref)
        try:
            if existing is None:
                listing = self.store.create(document)
            else:
                listing = self.store.replace(existing.id, document)
        except PersistenceError:
            self._discard(keys)
            raise

        # Stored images this edit superseded
        self._discard_urls(replaced)
        return listing

    def kept_image_urls(self, form, existing):
        """
        Stored image URLs an edit carries over. A new cover replaces only the
        stored cover, a new gallery replaces everything, and no selection
        keeps every stored image.
        """
        if existing is None or form.gallery:
            return []
        stored = list(existing.image_urls or [])
        if form.cover_image is not None:
            return stored[1:]
        return stored

    def validate(self, form, kept_urls=()):
        serializer = ListingFormSerializer(data=form.fields)
        if not serializer.is_valid():
            raise ValidationError(first_error(serializer.errors), errors=serializer.errors)

        if form['offer'] and form['discounted_price'] >= form['regular_price']:
            raise ValidationError("Discounted price must be less than regular price")

        total = len(form.images) + len(kept_urls)
        if total > self.max_images:
            raise ValidationError(f"Unable to upload more than {self.max_images} images")
        if not total:
            raise ValidationError("Please select a cover image")

    def resolve_location(self, form):
        """Returns (address text, {"lat", "lng"})."""
        if not self.geolocation_enabled:
            return form['address'], {'lat': form['latitude'], 'lng': form['longitude']}

        result = self.geocoder.geocode(form['address'])
        return result.formatted_address, {'lat': result.lat, 'lng': result.lng}

    def image_key(self, image):
        name = get_valid_filename(getattr(image, 'name', '') or 'image')
        return f"{self.user_ref}-{name}-{uuid.uuid4()}"

    def upload_images(self, images):
        """
        Upload every image at once and wait for all of them.
        Returns (urls, keys) in selection order. If any upload fails the ones
        that succeeded are deleted again and UploadError is raised.
        """
        keys = [self.image_key(image) for image in images]
        uploaded = {}
        failed = []

        with ThreadPoolExecutor(max_workers=len(images)) as executor:
            future_to_key = {
                executor.submit(self.image_store.put, key, image): key
                for key, image in zip(keys, images)
            }
            for future in as_completed(future_to_key):
                key = future_to_key[future]
                try:
                    uploaded[key] = future.result()
                except Exception as exc:
                    logger.error("Image upload %s failed: %s", key, exc)
                    failed.append(key)

        if failed:
            self._discard(list(uploaded))
            raise UploadError()
        return [uploaded[key] for key in keys], keys

    def _discard(self, keys):
        for key in keys:
            try:
                self.image_store.delete(key)
            except Exception:
                logger.exception("Could not remove orphaned image %s", key)

    def _discard_urls(self, urls):
        keys = []
        for url in urls:
            key = self.image_store.key_for_url(url)
            if key is None:
                logger.warning("Not removing %s, it is not a stored listing image", url)
            else:
                keys.append(key)
        self._discard(keys)
