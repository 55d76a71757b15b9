"""
PATH: payments/urls.py
"""

from django.urls import path

from payments.views import PagarmeWebhookView

app_name = "payments"

urlpatterns = [
    path("webhook/pagarme/", PagarmeWebhookView.as_view(), name="pagarme-webhook"),
]
