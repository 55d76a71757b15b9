# shipping/urls.py

from django.urls import path

from shipping.views import FreightQuoteView

app_name = "shipping"

urlpatterns = [
    path("quote/", FreightQuoteView.as_view(), name="quote"),
]
