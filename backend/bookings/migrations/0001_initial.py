import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Booking',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('pickup_latitude', models.FloatField()),
                ('pickup_longitude', models.FloatField()),
                ('pickup_address', models.CharField(blank=True, default='', max_length=255)),
                ('destination_latitude', models.FloatField()),
                ('destination_longitude', models.FloatField()),
                ('destination_address', models.CharField(blank=True, default='', max_length=255)),
                ('user_latitude_at_booking', models.FloatField(blank=True, null=True)),
                ('user_longitude_at_booking', models.FloatField(blank=True, null=True)),
                ('preferred_fare', models.DecimalField(decimal_places=2, max_digits=10)),
                ('driver_offer_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('driver_offer_at', models.DateTimeField(blank=True, null=True)),
                ('driver_offer_message', models.TextField(blank=True, default='')),
                ('agreed_fare', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('estimated_distance', models.PositiveIntegerField(blank=True, null=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('offer_made', 'Offer Made'), ('accepted', 'Accepted'), ('in_progress', 'In Progress'), ('completed', 'Completed'), ('cancelled', 'Cancelled'), ('expired', 'Expired')], db_index=True, default='pending', max_length=20)),
                ('version', models.PositiveIntegerField(default=0)),
                ('user_confirmed_completion', models.BooleanField(default=False)),
                ('driver_confirmed_completion', models.BooleanField(default=False)),
                ('completion_latitude', models.FloatField(blank=True, null=True)),
                ('completion_longitude', models.FloatField(blank=True, null=True)),
                ('cancelled_by', models.CharField(blank=True, choices=[('user', 'User'), ('driver', 'Driver'), ('system', 'System')], max_length=10, null=True)),
                ('cancellation_reason', models.TextField(blank=True, default='')),
                ('rating', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('rating_comment', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField()),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('accepted_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('expires_at', models.DateTimeField(db_index=True)),
                ('driver', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='driver_bookings', to=settings.AUTH_USER_MODEL)),
                ('notified_drivers', models.ManyToManyField(blank=True, related_name='notified_bookings', to=settings.AUTH_USER_MODEL)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bookings', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'bookings',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['user', '-created_at'], name='bookings_user_id_0c1bb5_idx'),
                    models.Index(fields=['driver', '-created_at'], name='bookings_driver__4b8f2e_idx'),
                    models.Index(fields=['pickup_latitude', 'pickup_longitude'], name='bookings_pickup__9d3a71_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('status__in', ['pending', 'offer_made', 'accepted', 'in_progress'])), fields=('user',), name='one_active_booking_per_user'),
                    models.CheckConstraint(condition=models.Q(('preferred_fare__gte', 0)), name='preferred_fare_non_negative'),
                    models.CheckConstraint(condition=models.Q(('rating__isnull', True), models.Q(('rating__gte', 1), ('rating__lte', 5)), _connector='OR'), name='rating_between_1_and_5'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Review',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('rating', models.PositiveSmallIntegerField()),
                ('comment', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('booking', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='review', to='bookings.booking')),
                ('driver', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reviews_received', to=settings.AUTH_USER_MODEL)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reviews_given', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'reviews',
                'ordering': ['-created_at'],
            },
        ),
    ]
