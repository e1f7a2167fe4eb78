# listings/admin.py

from django.contrib import admin
from django.utils.html import format_html

from .models import Listing


@admin.register(Listing)
class ListingAdmin(admin.ModelAdmin):

    def owner_name(self, obj):
        user = obj.user
        return f"{user.get_full_name() or user.username} ({user.email})"
    owner_name.short_description = "Owner"
    owner_name.admin_order_field = 'user__email'

    def price(self, obj):
        if obj.offer and obj.discounted_price is not None:
            return format_html(
                "<s>${}</s> <strong>${}</strong>",
                f"{obj.regular_price:,}",
                f"{obj.discounted_price:,}",
            )
        suffix = " / Month" if obj.type == 'rent' else ""
        return f"${obj.regular_price:,}{suffix}"
    price.short_description = "Price"
    price.admin_order_field = 'regular_price'

    def short_location(self, obj):
        addr = obj.location or ""
        return addr[:50] + "..." if len(addr) > 50 else addr
    short_location.short_description = "Location"
    short_location.admin_order_field = 'location'

    def image_thumbnail(self, obj):
        if not obj.cover_image_url:
            return "No"
        return format_html(
            '<img src="{}" style="width: 80px; height: 60px; object-fit: cover; border-radius: 4px;" />',
            obj.cover_image_url
        )
    image_thumbnail.short_description = "Cover"

    def image_count(self, obj):
        return len(obj.image_urls or [])
    image_count.short_description = "Images"

    list_display = (
        'name',
        'type',
        'owner_name',
        'price',
        'offer',
        'bedrooms',
        'bathrooms',
        'short_location',
        'image_thumbnail',
        'image_count',
        'timestamp',
    )
    list_filter = ('type', 'offer', 'parking', 'furnished', 'timestamp')
    search_fields = ('name', 'location', 'user__email', 'user__username')
    readonly_fields = ('id', 'user', 'timestamp', 'image_thumbnail')
    fieldsets = (
        ("Basic Information", {
            "fields": ("id", "user", "type", "name", "bedrooms", "bathrooms", "parking", "furnished")
        }),
        ("Pricing", {
            "fields": ("regular_price", "offer", "discounted_price")
        }),
        ("Location", {
            "fields": ("location", "geolocation")
        }),
        ("Images", {
            "fields": ("image_thumbnail", "image_urls"),
            "classes": ("collapse",)
        }),
        ("Metadata", {
            "fields": ("timestamp",),
            "classes": ("collapse",)
        }),
    )
