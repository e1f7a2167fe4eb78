import pytest
from django.core.cache import cache

from listings.exceptions import GeocodingUnavailable
from listings.models import Listing
from tests.fakes import FORM_VALUES, make_image

LISTINGS_URL = '/api/listings/'


def detail_url(listing_id):
    return f'{LISTINGS_URL}{listing_id}/'


def create_payload(**overrides):
    payload = {**FORM_VALUES, 'cover_image': make_image('cover.jpg')}
    payload.update(overrides)
    return payload


@pytest.mark.usefixtures('external_services')
class TestCreateListing:

    def test_creates_and_redirects_to_category_page(self, auth_client, user, image_store):
        payload = create_payload(images=[make_image('one.jpg'), make_image('two.jpg')])

        response = auth_client.post(LISTINGS_URL, payload, format='multipart')

        assert response.status_code == 201
        listing = Listing.objects.get()
        assert listing.user == user
        assert len(listing.image_urls) == 3
        assert len(image_store.put_keys) == 3
        assert response.data['redirect'] == f'/category/rent/{listing.id}'
        assert response.data['messages'] == [{'level': 'success', 'text': 'Listing saved'}]
        assert response.data['listing']['id'] == listing.id
        assert 'discounted_price' not in response.data['listing']

    def test_anonymous_caller_is_sent_to_sign_in(self, db, api_client):
        response = api_client.post(LISTINGS_URL, create_payload(), format='multipart')

        assert response.status_code == 401
        assert response.data['redirect'] == '/sign-in'
        assert Listing.objects.count() == 0

    def test_price_error_is_a_bad_request(self, auth_client, geocoder, image_store):
        payload = create_payload(offer='true', regular_price='1000', discounted_price='1200')

        response = auth_client.post(LISTINGS_URL, payload, format='multipart')

        assert response.status_code == 400
        assert response.data['messages'] == [
            {'level': 'error', 'text': 'Discounted price must be less than regular price'}
        ]
        assert geocoder.calls == []
        assert image_store.put_keys == []

    def test_gallery_without_cover_is_refused(self, auth_client):
        payload = dict(FORM_VALUES, images=[make_image('one.jpg')])

        response = auth_client.post(LISTINGS_URL, payload, format='multipart')

        assert response.status_code == 400
        assert response.data['messages'][0]['text'] == 'Please select a cover image first'

    def test_unparseable_field_reports_field_errors(self, auth_client):
        response = auth_client.post(LISTINGS_URL, create_payload(bedrooms='many'), format='multipart')

        assert response.status_code == 400
        assert 'bedrooms' in response.data['errors']

    def test_too_many_images(self, auth_client, image_store):
        gallery = [make_image(f'{n}.jpg') for n in range(6)]

        response = auth_client.post(LISTINGS_URL, create_payload(images=gallery), format='multipart')

        assert response.status_code == 400
        assert image_store.put_keys == []

    def test_failed_upload_is_a_bad_gateway(self, auth_client, image_store):
        image_store.fail_names = {'cover.jpg'}

        response = auth_client.post(LISTINGS_URL, create_payload(), format='multipart')

        assert response.status_code == 502
        assert response.data['messages'] == [{'level': 'error', 'text': 'Unable to upload images'}]
        assert Listing.objects.count() == 0

    def test_geocoder_outage_is_a_bad_gateway(self, auth_client, geocoder):
        geocoder.error = GeocodingUnavailable()

        response = auth_client.post(LISTINGS_URL, create_payload(), format='multipart')

        assert response.status_code == 502

    def test_parallel_submission_is_a_conflict(self, auth_client, user):
        cache.add(f'listing-submission:{user.ref}:new', True, 60)

        response = auth_client.post(LISTINGS_URL, create_payload(), format='multipart')

        assert response.status_code == 409
        assert Listing.objects.count() == 0


@pytest.mark.usefixtures('external_services')
class TestEditListing:

    def test_owner_gets_prefilled_form(self, auth_client, listing):
        response = auth_client.get(f'{detail_url(listing.id)}edit/')

        assert response.status_code == 200
        form = response.data['form']
        assert form['name'] == listing.name
        assert form['address'] == listing.location
        assert form['discounted_price'] == 1800
        assert form['gallery_enabled'] is False
        assert response.data['image_urls'] == listing.image_urls
        assert response.data['listing_id'] == listing.id

    def test_other_user_is_sent_home_without_form(self, other_client, listing):
        response = other_client.get(f'{detail_url(listing.id)}edit/')

        assert response.status_code == 403
        assert 'form' not in response.data
        assert response.data['redirect'] == '/'
        assert response.data['messages'] == [{'level': 'error', 'text': 'You cannot edit that listing'}]

    def test_missing_listing(self, auth_client):
        response = auth_client.get(f'{detail_url("missing")}edit/')

        assert response.status_code == 404
        assert response.data['messages'][0]['text'] == 'Listing does not exist'

    def test_owner_updates_listing(self, auth_client, listing, geocoder):
        payload = {'name': 'Renovated flat by the park', 'cover_image': make_image('new-cover.jpg')}

        response = auth_client.patch(detail_url(listing.id), payload, format='multipart')

        assert response.status_code == 200
        listing.refresh_from_db()
        assert listing.name == 'Renovated flat by the park'
        # Untouched fields come from the stored listing
        assert listing.discounted_price == 1800
        assert '-new-cover.jpg-' in listing.image_urls[0]
        assert listing.image_urls[1] == 'https://img.test/b.jpg'
        assert geocoder.calls == ['1 Main Street, London, UK']
        assert response.data['messages'] == [{'level': 'success', 'text': 'Listing successfully updated!'}]
        assert response.data['redirect'] == f'/category/rent/{listing.id}'

    def test_turning_offer_off_drops_discount(self, auth_client, listing):
        payload = {'offer': 'false', 'cover_image': make_image()}

        response = auth_client.put(detail_url(listing.id), payload, format='multipart')

        assert response.status_code == 200
        listing.refresh_from_db()
        assert listing.offer is False
        assert listing.discounted_price is None

    def test_other_user_cannot_update(self, other_client, listing, image_store):
        payload = {'name': 'Hijacked listing title', 'cover_image': make_image()}

        response = other_client.patch(detail_url(listing.id), payload, format='multipart')

        assert response.status_code == 403
        assert image_store.put_keys == []
        listing.refresh_from_db()
        assert listing.name == 'Cosy flat near the park'

    def test_update_without_images_keeps_stored_ones(self, auth_client, listing, image_store):
        response = auth_client.patch(detail_url(listing.id), {'bedrooms': 3}, format='json')

        assert response.status_code == 200
        listing.refresh_from_db()
        assert listing.bedrooms == 3
        assert listing.image_urls == ['https://img.test/a.jpg', 'https://img.test/b.jpg']
        assert image_store.put_keys == []
        assert image_store.deleted == []

    def test_empty_edit_changes_nothing_but_timestamp(self, auth_client, listing):
        before = listing.to_document()

        response = auth_client.patch(detail_url(listing.id), {}, format='json')

        assert response.status_code == 200
        listing.refresh_from_db()
        after = listing.to_document()
        # The fake geocoder appends the country, standing in for address normalization
        assert after.pop('location') == before.pop('location') + ', UK'
        before.pop('timestamp')
        after.pop('timestamp')
        assert after == before


class TestDeleteListing:

    def test_owner_deletes(self, auth_client, listing):
        response = auth_client.delete(detail_url(listing.id))

        assert response.status_code == 200
        assert response.data['redirect'] == '/profile'
        assert response.data['messages'] == [{'level': 'success', 'text': 'Successfully deleted listing'}]
        assert not Listing.objects.filter(id=listing.id).exists()

    def test_other_user_cannot_delete(self, other_client, listing):
        response = other_client.delete(detail_url(listing.id))

        assert response.status_code == 403
        assert response.data['messages'][0]['text'] == 'You cannot delete that listing'
        assert Listing.objects.filter(id=listing.id).exists()


class TestBrowseListings:

    @pytest.fixture
    def sale_listing(self, other_user):
        return Listing.objects.create(
            user=other_user,
            type='sale',
            name='Detached house with garden',
            bedrooms=4,
            bathrooms=2,
            regular_price=450000,
            location='5 Oak Lane, Leeds, UK',
            geolocation={'lat': 53.8, 'lng': -1.55},
            image_urls=['https://img.test/house.jpg'],
        )

    def test_anyone_can_browse(self, api_client, listing, sale_listing):
        response = api_client.get(LISTINGS_URL)

        assert response.status_code == 200
        assert {item['id'] for item in response.data} == {listing.id, sale_listing.id}

    def test_filters(self, api_client, listing, sale_listing):
        assert [i['id'] for i in api_client.get(LISTINGS_URL, {'type': 'sale'}).data] == [sale_listing.id]
        assert [i['id'] for i in api_client.get(LISTINGS_URL, {'bedrooms': 3}).data] == [sale_listing.id]
        assert [i['id'] for i in api_client.get(LISTINGS_URL, {'max_price': 5000}).data] == [listing.id]
        assert [i['id'] for i in api_client.get(LISTINGS_URL, {'search': 'leeds'}).data] == [sale_listing.id]
        assert [i['id'] for i in api_client.get(LISTINGS_URL, {'parking': 'true'}).data] == [listing.id]

    def test_bad_number_filter(self, api_client):
        response = api_client.get(LISTINGS_URL, {'min_price': 'cheap'})
        assert response.status_code == 400

    def test_limit(self, api_client, listing, sale_listing):
        response = api_client.get(LISTINGS_URL, {'limit': 1})
        assert len(response.data) == 1

    def test_offers(self, api_client, listing, sale_listing):
        response = api_client.get(f'{LISTINGS_URL}offers/')
        assert [item['id'] for item in response.data] == [listing.id]

    def test_category(self, api_client, listing, sale_listing):
        response = api_client.get(f'{LISTINGS_URL}category/rent/')
        assert [item['id'] for item in response.data] == [listing.id]

    def test_unknown_category(self, api_client):
        response = api_client.get(f'{LISTINGS_URL}category/castle/')
        assert response.status_code == 404

    def test_mine(self, auth_client, listing, sale_listing):
        response = auth_client.get(f'{LISTINGS_URL}mine/')
        assert [item['id'] for item in response.data] == [listing.id]

    def test_mine_needs_sign_in(self, api_client):
        response = api_client.get(f'{LISTINGS_URL}mine/')
        assert response.status_code == 401

    def test_detail(self, api_client, listing, sale_listing):
        offer = api_client.get(detail_url(listing.id)).data
        assert offer['discounted_price'] == 1800
        assert offer['cover_image_url'] == 'https://img.test/a.jpg'

        plain = api_client.get(detail_url(sale_listing.id)).data
        assert 'discounted_price' not in plain
        assert plain['user_ref'] == sale_listing.user_ref

    def test_detail_missing(self, api_client, db):
        assert api_client.get(detail_url('missing')).status_code == 404
