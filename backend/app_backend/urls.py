from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

from .views import health_check

urlpatterns = [
    path('admin/', admin.site.urls),
    path("health/", health_check), # Health check endpoint
    
    # Authentication endpoints (at /api/auth/)
    path('api/auth/', include('accounts.urls')),  # register, login, refresh, notification address
    
    # Passenger booking APIs (create, active, offer response, rate, history)
    path('api/passenger/', include('passengers.urls')),
    
    # Driver booking APIs (nearby, respond, history)
    path('api/driver/', include('drivers.urls')),
    
    # Shared booking endpoints (at /api/bookings/): detail, complete, cancel
    path('api/bookings/', include('bookings.urls')),
]

# Serve media files in development
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
