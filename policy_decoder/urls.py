"""URL configuration for the policy decoder app.

``app_name`` allows namespacing from the project URL configuration.
"""

from django.urls import path

from . import views

app_name = 'policy_decoder'

urlpatterns = [
    path('', views.home, name='home'),
    path('card/', views.policy_card, name='card'),
    path('api/analyze', views.api_analyze, name='api_analyze'),
]
