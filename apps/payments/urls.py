from django.urls import path  # type: ignore

from .views import PaymentWebhookView

app_name = "payments"

urlpatterns = [
    path("webhook/", PaymentWebhookView.as_view(), name="webhook"),
]
