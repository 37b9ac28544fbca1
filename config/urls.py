"""URL configuration for the court booking service.

Only the payment provider webhook is routed here; the booking UI talks to
the core through its own layer.
"""
from django.urls import path, include  # type: ignore

urlpatterns = [
    path('api/v1/payments/', include('apps.payments.urls')),
]
