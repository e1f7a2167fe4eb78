# listings/urls.py

from django.urls import path
from . import views

urlpatterns = [
    # Browse/search (public) and create (authenticated)
    path('', views.listing_collection, name='listing-collection'),
    path('mine/', views.my_listings, name='my-listings'),
    path('offers/', views.offer_listings, name='offer-listings'),
    path('category/<str:listing_type>/', views.category_listings, name='category-listings'),

    # Detail (public), edit and delete (owner only)
    path('<str:listing_id>/', views.listing_detail, name='listing-detail'),
    path('<str:listing_id>/edit/', views.edit_listing_form, name='edit-listing-form'),
]
