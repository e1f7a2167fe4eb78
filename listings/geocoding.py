# listings/geocoding.py

import logging
from dataclasses import dataclass

import requests
from django.conf import settings

from .exceptions import GeocodingUnavailable, ValidationError

logger = logging.getLogger(__name__)

INVALID_ADDRESS = "Please enter a valid address"
# Shows up in formatted addresses built from a blank form value
PLACEHOLDER_MARKER = "undefined"


@dataclass(frozen=True)
class GeocodedAddress:
    lat: float
    lng: float
    formatted_address: str


class GoogleGeocoder:
    """Free-text address -> coordinates via the Google Geocoding API."""

    def __init__(self, api_key='', url='https://maps.googleapis.com/maps/api/geocode/json',
                 timeout=10, session=None):
        self.api_key = api_key
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls):
        return cls(
            api_key=settings.GEOCODE_API_KEY,
            url=settings.GEOCODE_URL,
            timeout=settings.GEOCODE_TIMEOUT_SECONDS,
        )

    def geocode(self, address):
        logger.info("Geocoding request for: %s", address)
        params = {'address': address.strip()}
        if self.api_key:
            params['key'] = self.api_key

        try:
            response = self.session.get(self.url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("Geocoding error for %r: %s", address, exc)
            raise GeocodingUnavailable() from exc

        status = data.get('status')
        results = data.get('results') or []

        if status == 'ZERO_RESULTS' or (status == 'OK' and not results):
            logger.info("No geocoding results found for %r", address)
            raise ValidationError(INVALID_ADDRESS)
        if status != 'OK':
            # REQUEST_DENIED, OVER_QUERY_LIMIT, ...
            logger.error("Geocoding failed. Status: %s %s", status, data.get('error_message', ''))
            raise GeocodingUnavailable()

        first = results[0]
        formatted = first.get('formatted_address')
        if not formatted or PLACEHOLDER_MARKER in formatted:
            raise ValidationError(INVALID_ADDRESS)

        location = (first.get('geometry') or {}).get('location') or {}
        return GeocodedAddress(
            lat=float(location.get('lat', 0)),
            lng=float(location.get('lng', 0)),
            formatted_address=formatted,
        )
