from django.urls import path

from .views import RelayPrepareView, RelayCompleteView, HealthView

urlpatterns = [
    path('click/prepare', RelayPrepareView.as_view(), name='relay-click-prepare'),
    path('click/complete', RelayCompleteView.as_view(), name='relay-click-complete'),
    path('health', HealthView.as_view(), name='relay-health'),
]
