import django.db.models.deletion
import django.utils.timezone
import listings.models
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Listing',
            fields=[
                ('id', models.CharField(default=listings.models.new_listing_id, editable=False, max_length=32, primary_key=True, serialize=False)),
                ('type', models.CharField(choices=[('sale', 'Sale'), ('rent', 'Rent')], default='rent', max_length=4)),
                ('name', models.CharField(max_length=32)),
                ('bedrooms', models.PositiveSmallIntegerField(default=1)),
                ('bathrooms', models.PositiveSmallIntegerField(default=1)),
                ('parking', models.BooleanField(default=False)),
                ('furnished', models.BooleanField(default=False)),
                ('offer', models.BooleanField(default=False)),
                ('regular_price', models.PositiveBigIntegerField()),
                ('discounted_price', models.PositiveBigIntegerField(blank=True, null=True)),
                ('location', models.CharField(max_length=500)),
                ('geolocation', models.JSONField(default=dict)),
                ('image_urls', models.JSONField(blank=True, default=list)),
                ('timestamp', models.DateTimeField(default=django.utils.timezone.now)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='listings', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Listing',
                'verbose_name_plural': 'Listings',
                'ordering': ['-timestamp'],
            },
        ),
    ]
