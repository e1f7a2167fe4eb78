# listings/views.py

import logging

from django.conf import settings
from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated, IsAuthenticatedOrReadOnly
from rest_framework.response import Response

from .exceptions import ListingError
from .form_state import ListingFormState
from .geocoding import GoogleGeocoder
from .models import LISTING_TYPE_CHOICES, Listing
from .pipeline import ListingSubmission, load_owned_listing
from .serializers import ListingSerializer
from .sinks import PROFILE_PATH, ResponseSink
from .storage import CloudinaryImageStore
from .store import ListingStore

logger = logging.getLogger(__name__)

LISTING_TYPES = {value for value, _ in LISTING_TYPE_CHOICES}
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50


def build_submission(request, sink, store):
    return ListingSubmission(
        user_ref=request.user.ref,
        geocoder=GoogleGeocoder.from_settings(),
        image_store=CloudinaryImageStore.from_settings(),
        store=store,
        sink=sink,
        geolocation_enabled=settings.GEOLOCATION_ENABLED,
        lock_timeout=settings.LISTING_SUBMISSION_LOCK_SECONDS,
    )


def _failed(sink, exc):
    return sink.response(exc.status_code, errors=exc.errors)


def _truthy(value):
    return str(value).lower() in ('true', '1', 'yes')


def _page(queryset, request):
    try:
        limit = int(request.query_params.get('limit', DEFAULT_PAGE_SIZE))
    except ValueError:
        limit = DEFAULT_PAGE_SIZE
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    return ListingSerializer(queryset[:limit], many=True).data


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticatedOrReadOnly])
@parser_classes([MultiPartParser, FormParser, JSONParser])
def listing_collection(request):
    if request.method == 'POST':
        return create_listing(request)
    return browse_listings(request)


def browse_listings(request):
    """
    Search listings. Filters: type, offer, parking, furnished, bedrooms (minimum),
    min_price, max_price, search (name or location), limit.
    """
    queryset = Listing.objects.all()
    params = request.query_params

    listing_type = params.get('type')
    if listing_type:
        queryset = queryset.filter(type=listing_type.strip())
    for flag in ('offer', 'parking', 'furnished'):
        if flag in params:
            queryset = queryset.filter(**{flag: _truthy(params[flag])})

    try:
        if params.get('bedrooms'):
            queryset = queryset.filter(bedrooms__gte=int(params['bedrooms']))
        if params.get('min_price'):
            queryset = queryset.filter(regular_price__gte=int(params['min_price']))
        if params.get('max_price'):
            queryset = queryset.filter(regular_price__lte=int(params['max_price']))
    except ValueError:
        return Response({"error": "bedrooms, min_price and max_price must be whole numbers"},
                        status=status.HTTP_400_BAD_REQUEST)

    search = params.get('search')
    if search:
        queryset = queryset.filter(Q(name__icontains=search.strip()) | Q(location__icontains=search.strip()))

    return Response(_page(queryset.order_by('-timestamp'), request))


def create_listing(request):
    """Create flow: a blank form, the submitted fields merged in, then the pipeline."""
    sink = ResponseSink()
    form = ListingFormState.defaults()
    try:
        form.merge(request.data, request.FILES)
    except ListingError as exc:
        sink.error(exc.message)
        return _failed(sink, exc)

    submission = build_submission(request, sink, ListingStore())
    try:
        listing = submission.create(form)
    except ListingError as exc:
        return _failed(sink, exc)

    return sink.response(status.HTTP_201_CREATED, listing=ListingSerializer(listing).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticatedOrReadOnly])
@parser_classes([MultiPartParser, FormParser, JSONParser])
def listing_detail(request, listing_id):
    if request.method == 'GET':
        listing = get_object_or_404(Listing, id=listing_id)
        return Response(ListingSerializer(listing).data)
    if request.method == 'DELETE':
        return delete_listing(request, listing_id)
    return update_listing(request, listing_id)


def update_listing(request, listing_id):
    """Edit flow: the stored listing seeds the form, submitted fields are merged, then the pipeline."""
    store = ListingStore()
    sink = ResponseSink()
    try:
        existing = load_owned_listing(store, listing_id, request.user.ref, sink)
    except ListingError as exc:
        return _failed(sink, exc)

    form = ListingFormState.from_listing(existing.to_document())
    try:
        form.merge(request.data, request.FILES)
    except ListingError as exc:
        sink.error(exc.message)
        return _failed(sink, exc)

    submission = build_submission(request, sink, store)
    try:
        listing = submission.update(existing, form)
    except ListingError as exc:
        return _failed(sink, exc)

    return sink.response(status.HTTP_200_OK, listing=ListingSerializer(listing).data)


def delete_listing(request, listing_id):
    store = ListingStore()
    sink = ResponseSink()
    try:
        load_owned_listing(store, listing_id, request.user.ref, sink, action='delete')
    except ListingError as exc:
        return _failed(sink, exc)

    store.delete(listing_id)
    sink.success("Successfully deleted listing")
    sink.navigate(PROFILE_PATH)
    return sink.response(status.HTTP_200_OK)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def edit_listing_form(request, listing_id):
    """Pre-filled edit form for the owner. Everyone else is redirected and gets no form."""
    sink = ResponseSink()
    try:
        listing = load_owned_listing(ListingStore(), listing_id, request.user.ref, sink)
    except ListingError as exc:
        return _failed(sink, exc)

    form = ListingFormState.from_listing(listing.to_document())
    # Stored images stay unless the edit selects new ones
    return sink.response(
        status.HTTP_200_OK, form=form.as_payload(), listing_id=listing.id, image_urls=list(listing.image_urls),
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_listings(request):
    queryset = Listing.objects.filter(user=request.user).order_by('-timestamp')
    return Response(ListingSerializer(queryset, many=True).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def offer_listings(request):
    queryset = Listing.objects.filter(offer=True).order_by('-timestamp')
    return Response(_page(queryset, request))


@api_view(['GET'])
@permission_classes([AllowAny])
def category_listings(request, listing_type):
    if listing_type not in LISTING_TYPES:
        return Response({"error": "Unknown category"}, status=status.HTTP_404_NOT_FOUND)
    queryset = Listing.objects.filter(type=listing_type).order_by('-timestamp')
    return Response(_page(queryset, request))
