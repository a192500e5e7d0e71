"""Root URL configuration for policy_decoder_tool."""

from django.urls import include, path

urlpatterns = [
    path('', include('policy_decoder.urls')),
]
