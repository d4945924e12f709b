"""URL configuration for the travelbook project.

Only the thin surface the hosted backend cannot serve lives here: booking
quotes and cancellations, and the webhook that feeds realtime row changes.
"""
from django.urls import path, include  # type: ignore

# API versioning. v1 is our initial version; future versions can be added here.

urlpatterns = [
    path('api/v1/bookings/', include('apps.bookings.urls')),
    path('realtime/', include('apps.realtime.urls')),
]
