# listings/serializers.py

from rest_framework import serializers

from .models import (
    LISTING_TYPE_CHOICES,
    MAX_PRICE,
    MAX_ROOMS,
    MIN_PRICE,
    MIN_ROOMS,
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
    Listing,
)


class ListingFormSerializer(serializers.Serializer):
    """
    Field rules for a submitted listing form.
    Values have already been parsed by the form state; this only checks them.
    """
    type = serializers.ChoiceField(choices=LISTING_TYPE_CHOICES)
    name = serializers.CharField(min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
    bedrooms = serializers.IntegerField(min_value=MIN_ROOMS, max_value=MAX_ROOMS)
    bathrooms = serializers.IntegerField(min_value=MIN_ROOMS, max_value=MAX_ROOMS)
    parking = serializers.BooleanField()
    furnished = serializers.BooleanField()
    address = serializers.CharField(max_length=500)
    offer = serializers.BooleanField()
    regular_price = serializers.IntegerField(min_value=MIN_PRICE, max_value=MAX_PRICE)
    # Bounds depend on offer, see validate()
    discounted_price = serializers.IntegerField(required=False, allow_null=True)
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)

    def validate(self, attrs):
        if attrs.get('offer'):
            discounted = attrs.get('discounted_price')
            if discounted is None or not MIN_PRICE <= discounted <= MAX_PRICE:
                raise serializers.ValidationError({
                    'discounted_price': [f"Discounted price must be between {MIN_PRICE} and {MAX_PRICE}"]
                })
        return attrs


class ListingSerializer(serializers.ModelSerializer):
    """Public representation of a stored listing."""
    user_ref = serializers.CharField(read_only=True)
    cover_image_url = serializers.CharField(read_only=True)

    class Meta:
        model = Listing
        fields = [
            'id',
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
            'cover_image_url',
            'user_ref',
            'timestamp',
        ]
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if not instance.offer:
            data.pop('discounted_price', None)
        return data


def first_error(errors):
    """Flatten DRF serializer errors into one readable line."""
    for field, messages in errors.items():
        message = messages[0] if isinstance(messages, list) and messages else messages
        if field == 'non_field_errors':
            return str(message)
        return f"{field.replace('_', ' ').capitalize()}: {message}"
    return "Invalid listing details"
