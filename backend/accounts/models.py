from django.db import models
from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    """Extended user model with role selection, push address and trip stats"""
    ROLE_CHOICES = [
        ('passenger', 'Passenger'),
        ('driver', 'Driver'),
        ('operator', 'Operator'),
        ('admin', 'Admin'),
    ]
    
    # Role & basic info
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='passenger')
    phone_number = models.CharField(max_length=15, blank=True)

    # Push notification address (device token); drivers without one are never notified
    fcm_token = models.CharField(max_length=255, null=True, blank=True)

    # Completed trips as a passenger
    trip_count = models.PositiveIntegerField(default=0)

    # Running mean of ratings received as a driver
    rating = models.FloatField(default=0.0)
    num_reviews = models.PositiveIntegerField(default=0)
    
    class Meta:
        db_table = 'users'
        
    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"

    @property
    def display_name(self) -> str:
        full_name = self.get_full_name()
        return full_name or self.username

    @property
    def is_administrative(self) -> bool:
        return self.role == 'admin' or self.is_staff
