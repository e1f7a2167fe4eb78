# listings/models.py
import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

# Listing type choices
LISTING_TYPE_CHOICES = [
    ('sale', 'Sale'),
    ('rent', 'Rent'),
]

NAME_MIN_LENGTH = 10
NAME_MAX_LENGTH = 32
MIN_ROOMS = 1
MAX_ROOMS = 50
MIN_PRICE = 50
MAX_PRICE = 750_000_000
MAX_IMAGES = 6

# Keys of a stored listing document, in display order
DOCUMENT_FIELDS = (
    'type',
    'name',
    'bedrooms',
    'bathrooms',
    'parking',
    'furnished',
    'offer',
    'regular_price',
    'discounted_price',
    'location',
    'geolocation',
    'image_urls',
    'user_ref',
)


def new_listing_id():
    return uuid.uuid4().hex


class Listing(models.Model):
    id = models.CharField(primary_key=True, max_length=32, default=new_listing_id, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='listings')

    type = models.CharField(max_length=4, choices=LISTING_TYPE_CHOICES, default='rent')
    name = models.CharField(max_length=NAME_MAX_LENGTH)
    bedrooms = models.PositiveSmallIntegerField(default=1)
    bathrooms = models.PositiveSmallIntegerField(default=1)
    parking = models.BooleanField(default=False)
    furnished = models.BooleanField(default=False)

    offer = models.BooleanField(default=False)
    regular_price = models.PositiveBigIntegerField()
    # Only set while offer is true
    discounted_price = models.PositiveBigIntegerField(blank=True, null=True)

    location = models.CharField(max_length=500)
    geolocation = models.JSONField(default=dict)  # {"lat": ..., "lng": ...}
    image_urls = models.JSONField(default=list, blank=True)  # Cloudinary URLs, cover first

    timestamp = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-timestamp']
        verbose_name = "Listing"
        verbose_name_plural = "Listings"

    def __str__(self):
        return f"{self.name} [{self.get_type_display()}]"

    @property
    def user_ref(self):
        return str(self.user_id)

    @property
    def cover_image_url(self):
        return self.image_urls[0] if self.image_urls else None

    def to_document(self):
        """The listing as a plain document; discounted_price only appears with an offer."""
        document = {field: getattr(self, field) for field in DOCUMENT_FIELDS}
        document['geolocation'] = dict(self.geolocation or {})
        document['image_urls'] = list(self.image_urls or [])
        if not self.offer:
            document.pop('discounted_price')
        document['id'] = self.id
        document['timestamp'] = self.timestamp
        return document
